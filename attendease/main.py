"""
Application factory for the FastAPI app.
"""

from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from attendease.api.errors import register_exception_handlers
from attendease.api.v1.router import router as api_v1_router
from attendease.config.database import get_engine, get_session_factory, init_db
from attendease.config.logging import get_logger, setup_logging
from attendease.config.redis import RedisManager
from attendease.config.settings import settings
from attendease.core.middleware import register_middlewares
from attendease.services.notification.email_sender import EmailSender, SmtpEmailSender
from attendease.services.notification.fanout_service import FanoutService
from attendease.services.notification.push_sender import FirebasePushSender, PushSender
from attendease.services.notification.realtime import RealtimeTransport, RedisRealtimeTransport

logger = get_logger(__name__)


def create_app(
    *,
    session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
    transport: Optional[RealtimeTransport] = None,
    push_sender: Optional[PushSender] = None,
    email_sender: Optional[EmailSender] = None,
) -> FastAPI:
    """
    Build the application.

    - Configures title, version, debug mode from Settings.
    - Registers CORS, core middleware, and exception handlers.
    - Wires the database session factory and the notification adapters;
      any of them can be injected, otherwise they are built from Settings.
    - Includes the versioned API router under /api/v1.
    """
    app = FastAPI(
        title=settings.APP_NAME,
        debug=settings.DEBUG,
        version=settings.API_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_middlewares(app)
    register_exception_handlers(app)

    app.include_router(api_v1_router, prefix=settings.API_V1_STR)

    owns_engine = session_factory is None
    session_factory = session_factory or get_session_factory()

    redis_manager: Optional[RedisManager] = None
    if transport is None:
        redis_manager = RedisManager()
        transport = RedisRealtimeTransport(redis_manager)

    app.state.session_factory = session_factory
    app.state.redis = redis_manager
    app.state.transport = transport
    app.state.fanout = FanoutService(
        session_factory=session_factory,
        transport=transport,
        push_sender=push_sender or FirebasePushSender(session_factory),
        email_sender=email_sender or SmtpEmailSender(),
    )

    @app.on_event("startup")
    async def on_startup() -> None:
        # Schema bootstrap for dev/demo only; production uses migrations
        if owns_engine and not settings.is_production():
            await init_db(get_engine())
        logger.info(f"{settings.APP_NAME} started in {settings.ENVIRONMENT} mode")

    @app.on_event("shutdown")
    async def on_shutdown() -> None:
        if redis_manager is not None:
            await redis_manager.close()
        if owns_engine:
            await get_engine().dispose()

    @app.get("/health", tags=["Health"])
    async def health() -> dict:
        redis_status = await redis_manager.check_connection() if redis_manager else None
        return {
            "status": "ok",
            "environment": settings.ENVIRONMENT,
            "version": settings.API_VERSION,
            "redis": redis_status,
        }

    return app


setup_logging()
app = create_app()
