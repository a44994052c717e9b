# tests/integration/conftest.py
import os
from pathlib import Path

import pytest
import pytest_asyncio
from psycopg_pool import AsyncConnectionPool, PoolTimeout
from redis.asyncio import Redis
from redis.exceptions import RedisError

MIGRATIONS = Path(__file__).resolve().parents[2] / "migrations"


@pytest_asyncio.fixture
async def redis_client():
    r = Redis.from_url(
        os.environ.get("REDIS_URL", "redis://redis:6379/0"),
        encoding="utf-8",
        decode_responses=True,
    )
    try:
        await r.ping()
    except (RedisError, OSError):
        await r.aclose()
        pytest.skip("redis is not reachable")
    try:
        yield r
    finally:
        await r.aclose()


@pytest_asyncio.fixture
async def pg_pool():
    pool = AsyncConnectionPool(
        os.environ.get("DATABASE_URL", "postgresql://app:app@db:5432/app")
        + "?connect_timeout=3",
        min_size=1,
        max_size=2,
        timeout=5,
        open=False,
    )
    try:
        await pool.open(wait=True, timeout=5)
    except PoolTimeout:
        await pool.close()
        pytest.skip("postgres is not reachable")
    try:
        async with pool.connection() as conn:
            for path in sorted(MIGRATIONS.glob("*.sql")):
                await conn.execute(path.read_text(encoding="utf-8"))
        yield pool
    finally:
        await pool.close()
