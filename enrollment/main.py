import asyncio
import logging
from contextlib import asynccontextmanager, suppress

from fastapi import FastAPI

from enrollment.application.workflow import CodePolicy, EnrollmentWorkflow
from enrollment.domain.ports.email_port import EmailPort
from enrollment.infrastructure.db.identity_directory import PgIdentityDirectory
from enrollment.infrastructure.db.pool import close_pool, get_pool
from enrollment.infrastructure.email.code_delivery import EmailCodeDelivery
from enrollment.infrastructure.email.console import ConsoleEmailSender
from enrollment.infrastructure.email.http_smtp_adapter import HttpSmtpEmailAdapter
from enrollment.infrastructure.redis_cache.pool import close_redis, get_redis
from enrollment.infrastructure.security.password import hash_password
from enrollment.infrastructure.stores.factory import build_stores
from enrollment.infrastructure.sweeper import ExpirySweeper
from enrollment.logging import setup_logging
from enrollment.presentation.api import api
from enrollment.presentation.errors import install_error_handlers
from enrollment.settings import Settings, get_settings

logger = logging.getLogger(__name__)

settings = get_settings()


def build_email_port(settings: Settings) -> EmailPort:
    if settings.email_backend == "console":
        return ConsoleEmailSender()
    return HttpSmtpEmailAdapter(
        base_url=settings.smtp_base_url,
        timeout=settings.smtp_timeout_seconds,
        sender=settings.email_sender,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    # startup
    pool = get_pool()
    await pool.open()

    redis_factory = get_redis if settings.store_backend == "redis" else None
    stores = build_stores(settings, redis_factory=redis_factory)
    email = build_email_port(settings)
    directory = PgIdentityDirectory(pool)

    app.state.directory = directory
    app.state.sessions = stores.sessions
    app.state.workflow = EnrollmentWorkflow(
        tokens=stores.tokens,
        pending=stores.pending,
        directory=directory,
        delivery=EmailCodeDelivery(email, code_ttl_seconds=settings.code_ttl_seconds),
        sessions=stores.sessions,
        hash_password=hash_password,
        policy=CodePolicy(
            code_length=settings.code_length,
            code_ttl_seconds=settings.code_ttl_seconds,
            pending_ttl_seconds=settings.pending_ttl_seconds,
        ),
    )

    sweeper = ExpirySweeper(
        {
            "verification_tokens": stores.tokens,
            "pending_enrollments": stores.pending,
            "sessions": stores.sessions,
        },
        interval=settings.sweep_interval_seconds,
    )
    sweeper_task = asyncio.create_task(sweeper.run_forever())
    logger.info("application started", extra={"store_backend": settings.store_backend})

    try:
        yield
    finally:
        # shutdown
        sweeper_task.cancel()
        with suppress(asyncio.CancelledError):
            await sweeper_task
        await email.aclose()
        await close_redis()
        await close_pool()
        logger.info("application stopped")


def create_app() -> FastAPI:
    setup_logging(settings.log_level)
    app = FastAPI(title="Enrollment API", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    install_error_handlers(app)
    app.include_router(api)
    return app


app = create_app()
