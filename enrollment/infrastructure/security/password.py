from __future__ import annotations

from passlib.context import CryptContext

from enrollment.settings import get_settings

_pwd = CryptContext(schemes=["bcrypt"], deprecated="auto")

# Compared against when the identity does not exist, so a lookup miss
# costs the same as a wrong password.
_DUMMY_HASH: str | None = None


def hash_password(plain: str, *, rounds: int | None = None) -> str:
    """Hash a credential secret with bcrypt (settings.bcrypt_rounds by default)."""
    if rounds is None:
        rounds = int(get_settings().bcrypt_rounds)
    return _pwd.hash(plain, rounds=rounds)


def verify_password(plain: str, password_hash: str | None) -> bool:
    """
    Verify a secret against a stored bcrypt hash. A missing or malformed
    hash never verifies but still pays for one bcrypt round trip.
    """
    global _DUMMY_HASH
    if not password_hash:
        if _DUMMY_HASH is None:
            _DUMMY_HASH = hash_password("dummy-secret")
        _pwd.verify(plain, _DUMMY_HASH)
        return False
    try:
        return _pwd.verify(plain, password_hash)
    except ValueError:
        return False
