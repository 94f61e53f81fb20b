"""
═══════════════════════════════════════════════════════════════════════════════
Estate Identity — Главная точка входа сервиса (Application Entry Point)
═══════════════════════════════════════════════════════════════════════════════

Фабрика приложения (Application Factory Pattern): роутеры /api/auth и
/api/health, обработчики ошибок, жизненный цикл хранилища и NATS.

Все ответы об ошибках — JSON ``{"message": ...}`` (+ поля из details),
без трассировок.
"""

from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager

import uvicorn
from fastapi import APIRouter, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from estate_identity import __version__
from estate_identity.config import get_settings
from estate_identity.database import close_pool, get_pool
from estate_identity.exceptions import IdentityError

from estate_identity.api.auth import router as auth_router
from estate_identity.api.health import router as health_router

# ═══════════════════════════════════════════════════════════════════════════════
# Настройка логирования
# ═══════════════════════════════════════════════════════════════════════════════
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)

STATUS_MAP = {
    "IDENTITY_VALIDATION_ERROR": 400,
    "IDENTITY_AUTH_ERROR": 401,
    "IDENTITY_NOT_FOUND": 404,
    "IDENTITY_CONFLICT": 409,
    "IDENTITY_INTERNAL_ERROR": 500,
}


# ═══════════════════════════════════════════════════════════════════════════════
# Автоматическое применение SQL-миграций
# ═══════════════════════════════════════════════════════════════════════════════

async def _apply_migrations(pool) -> None:
    """Применяет SQL-миграции из ``estate_identity/db/migrations/``."""
    from pathlib import Path

    migrations_dir = Path(__file__).parent / "db" / "migrations"
    if not migrations_dir.is_dir():
        logger.info("No migrations directory found — skipping")
        return

    sql_files = sorted(migrations_dir.glob("*.sql"))
    if not sql_files:
        logger.info("No SQL migration files found — skipping")
        return

    async with pool.acquire() as conn:
        await conn.execute("""
            CREATE TABLE IF NOT EXISTS _applied_migrations (
                filename TEXT PRIMARY KEY,
                applied_at TIMESTAMPTZ DEFAULT NOW()
            )
        """)

        rows = await conn.fetch("SELECT filename FROM _applied_migrations")
        applied = {row["filename"] for row in rows}

        for sql_file in sql_files:
            if sql_file.name in applied:
                continue

            logger.info(f"📄 Applying migration: {sql_file.name}")
            sql_text = sql_file.read_text(encoding="utf-8")
            async with conn.transaction():
                await conn.execute(sql_text)
                await conn.execute(
                    "INSERT INTO _applied_migrations (filename) VALUES ($1)",
                    sql_file.name,
                )
            logger.info(f"✅ Migration applied: {sql_file.name}")

    logger.info(f"✅ Identity migrations up to date ({len(sql_files)} files checked)")


# ═══════════════════════════════════════════════════════════════════════════════
# Lifespan — управление жизненным циклом
# ═══════════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup:
        1. IDENTITY_STORE=memory — сразу in-memory хранилище.
        2. Иначе пул PostgreSQL + миграции. При auto недоступность БД
           переключает на memory store, при postgres — ошибка запуска.
        3. NATS publisher (если EVENTS_ENABLED).

    Shutdown: NATS → пул БД.
    """
    settings = get_settings()
    logger.info(f"🚀 Estate Identity v{__version__} starting (store={settings.identity_store})...")

    from estate_identity.memory_store import activate_identity_memory_store

    if settings.identity_store == "memory":
        activate_identity_memory_store()
    else:
        try:
            pool = await get_pool()
            logger.info("✅ Identity database pool initialized")
        except Exception as e:
            if settings.identity_store == "postgres":
                raise
            logger.warning(f"⚠️  Identity DB not available — activating memory store: {e}")
            activate_identity_memory_store()
        else:
            await _apply_migrations(pool)

    if settings.events_enabled:
        from estate_identity.events import connect as nats_connect
        await nats_connect()

    yield

    try:
        from estate_identity.events import disconnect as nats_disconnect
        await nats_disconnect()
    except Exception as e:
        logger.warning(f"NATS disconnect failed: {e}")
    await close_pool()
    logger.info("🛑 Estate Identity stopped")


# ═══════════════════════════════════════════════════════════════════════════════
# Фабрика приложения
# ═══════════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    """Создаёт и конфигурирует FastAPI-приложение."""
    settings = get_settings()

    app = FastAPI(
        redirect_slashes=False,
        title="Estate Identity",
        description=(
            "Identity core of the real-estate marketplace: signup, "
            "password / OTP login, uniqueness and verification checks."
        ),
        version=__version__,
        lifespan=lifespan,
        docs_url=None if settings.is_production else "/docs",
        redoc_url=None if settings.is_production else "/redoc",
        openapi_url=None if settings.is_production else "/api/openapi.json",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Accept", "X-Request-ID"],
    )

    api_router = APIRouter(prefix="/api")
    api_router.include_router(auth_router)
    api_router.include_router(health_router)
    app.include_router(api_router)

    # ── Глобальный обработчик IdentityError ──────────────────────────────
    @app.exception_handler(IdentityError)
    async def identity_error_handler(request: Request, exc: IdentityError) -> JSONResponse:
        """Маппинг кодов Identity на HTTP-статусы."""
        status_code = STATUS_MAP.get(exc.code, 500)
        return JSONResponse(
            status_code=status_code,
            content={"message": exc.message, **exc.details},
        )

    # ── Тело запроса не разобрано (не JSON / не объект / неверный тип) ──
    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        logger.info("Rejected malformed body on %s: %s", request.url.path, exc.errors())
        return JSONResponse(status_code=400, content={"message": "Invalid request body"})

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        message = "Method not allowed" if exc.status_code == 405 else str(exc.detail)
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": message},
            headers=getattr(exc, "headers", None),
        )

    return app


# ═══════════════════════════════════════════════════════════════════════════════
# Module-level singleton
# ═══════════════════════════════════════════════════════════════════════════════
app = create_app()


def main() -> None:
    """Запускает сервис через Uvicorn."""
    settings = get_settings()
    logger.info(f"Starting Estate Identity on {settings.api_host}:{settings.api_port}")
    uvicorn.run(
        "estate_identity.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=False,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
