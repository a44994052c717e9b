from __future__ import annotations

from typing import Optional

from psycopg import errors as pg_errors
from psycopg_pool import AsyncConnectionPool

from enrollment.domain.entities import Identity, normalize_email
from enrollment.domain.errors import ConflictError, NotFoundError
from enrollment.domain.ports.identity_directory import IdentityDirectoryPort

_COLUMNS = "id, email, first_name, last_name, password_hash, is_admin, created_at"


def _row_to_identity(row: tuple) -> Identity:
    id_, email, first_name, last_name, password_hash, is_admin, created_at = row
    return Identity(
        id=str(id_),
        email=str(email),
        first_name=first_name,
        last_name=last_name,
        password_hash=password_hash,
        is_admin=bool(is_admin),
        created_at=created_at,
    )


class PgIdentityDirectory(IdentityDirectoryPort):
    """
    Postgres implementation of IdentityDirectoryPort.

    Each call borrows a connection from the pool; the pool commits on a
    clean exit and rolls back on error. Emails are stored normalized and
    protected by a unique index.
    """

    def __init__(self, pool: AsyncConnectionPool) -> None:
        self._pool = pool

    async def exists_by_email(self, email: str) -> bool:
        sql = "SELECT 1 FROM identities WHERE email = %s"
        async with self._pool.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(sql, (normalize_email(email),))
                return await cur.fetchone() is not None

    async def get_by_email(self, email: str) -> Optional[Identity]:
        sql = f"SELECT {_COLUMNS} FROM identities WHERE email = %s"
        async with self._pool.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(sql, (normalize_email(email),))
                row = await cur.fetchone()
        return _row_to_identity(row) if row else None

    async def get_by_id(self, identity_id: str) -> Optional[Identity]:
        sql = f"SELECT {_COLUMNS} FROM identities WHERE id::text = %s"
        async with self._pool.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(sql, (identity_id,))
                row = await cur.fetchone()
        return _row_to_identity(row) if row else None

    async def create(self, identity: Identity) -> Identity:
        sql = f"""
        INSERT INTO identities (email, first_name, last_name, password_hash, is_admin)
        VALUES (%s, %s, %s, %s, %s)
        RETURNING {_COLUMNS}
        """
        try:
            async with self._pool.connection() as conn:
                async with conn.cursor() as cur:
                    await cur.execute(
                        sql,
                        (
                            identity.email,
                            identity.first_name,
                            identity.last_name,
                            identity.password_hash,
                            identity.is_admin,
                        ),
                    )
                    row = await cur.fetchone()
        except pg_errors.UniqueViolation as e:
            raise ConflictError() from e

        if not row:
            raise RuntimeError("insert into identities returned no row")
        return _row_to_identity(row)

    async def update_secret(self, email: str, password_hash: str) -> None:
        sql = """
        UPDATE identities
        SET password_hash = %s, updated_at = now()
        WHERE email = %s
        """
        async with self._pool.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(sql, (password_hash, normalize_email(email)))
                if cur.rowcount == 0:
                    raise NotFoundError()
