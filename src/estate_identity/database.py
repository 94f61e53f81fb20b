"""
═══════════════════════════════════════════════════════════════════════════════
Estate Identity — PostgreSQL-хранилище учётных записей
═══════════════════════════════════════════════════════════════════════════════

Один asyncpg-пул на процесс. ``DATABASE_COMMAND_TIMEOUT`` ограничивает каждый
запрос репозитория: кешей и повторов поверх пула нет.
Пул не создаётся, если работает memory store (см. ``main.lifespan``).
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import asyncpg

from estate_identity.config import get_settings

logger = logging.getLogger(__name__)

_pool: asyncpg.Pool | None = None


async def get_pool() -> asyncpg.Pool:
    """Пул создаётся лениво, при первом запросе соединения."""
    global _pool
    if _pool is None:
        settings = get_settings()
        _pool = await asyncpg.create_pool(
            dsn=settings.database_url,
            min_size=settings.database_pool_min,
            max_size=settings.database_pool_max,
            command_timeout=settings.database_command_timeout,
        )
        logger.info(
            "Users DB pool ready (size %d..%d, command timeout %ss)",
            settings.database_pool_min,
            settings.database_pool_max,
            settings.database_command_timeout,
        )
    return _pool


async def close_pool() -> None:
    global _pool
    if _pool is not None:
        await _pool.close()
        _pool = None
        logger.info("Users DB pool closed")


def pool_is_active() -> bool:
    """False — запросы обслуживает memory store."""
    return _pool is not None


@asynccontextmanager
async def get_connection() -> AsyncGenerator[asyncpg.Connection, None]:
    pool = await get_pool()
    async with pool.acquire() as conn:
        yield conn


async def check_connection() -> bool:
    """``SELECT 1`` для /api/health; без активного пула — False, пул не создаётся."""
    if _pool is None:
        return False
    try:
        async with get_connection() as conn:
            return await conn.fetchval("SELECT 1") == 1
    except Exception as e:
        logger.error("Users DB health check failed: %s", e)
        return False
