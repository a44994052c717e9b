# enrollment/domain/services.py
from __future__ import annotations

import hmac
import secrets

from enrollment.domain.entities import Purpose, normalize_email

RESET_KEY_SUFFIX = "#reset"


def generate_numeric_code(length: int = 6) -> str:
    """Zero-padded numeric code of ``length`` digits."""
    if length < 1:
        raise ValueError("code length must be positive")
    return f"{secrets.randbelow(10**length):0{length}d}"


def is_well_formed_code(code: str, length: int) -> bool:
    return len(code) == length and code.isascii() and code.isdigit()


def secure_compare(a: str, b: str) -> bool:
    """
    Constant-time comparison for secrets.
    Accepts strings; falls back to bytes if needed.
    """
    try:
        return hmac.compare_digest(a, b)
    except TypeError:
        return hmac.compare_digest(a.encode("utf-8"), b.encode("utf-8"))


def token_key(email: str, purpose: Purpose) -> str:
    """
    Registration tokens live under the bare normalized email, reset tokens
    under the email plus RESET_KEY_SUFFIX, so both share one namespace.
    """
    key = normalize_email(email)
    if Purpose(purpose) is Purpose.RESET:
        return key + RESET_KEY_SUFFIX
    return key
