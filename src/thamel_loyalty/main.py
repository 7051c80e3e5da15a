"""
FastAPI application factory for the Thamel loyalty API
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .admin_routes import router as admin_router
from .booking_routes import router as booking_router
from .config import config
from .db import init_db
from .exceptions import register_exception_handlers
from .identity_routes import router as identity_router
from .logging_config import RequestIDMiddleware, setup_logging
from .rewards_routes import router as rewards_router
from .services.email_provider import build_email_provider
from .services.push_provider import build_push_provider
from .services.scheduled_jobs import start_scheduler, stop_scheduler

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    scheduler = None
    if config.ENABLE_SCHEDULER:
        scheduler = start_scheduler()
    logger.info(f"Thamel loyalty API started (env={config.ENV})")
    try:
        yield
    finally:
        if scheduler is not None:
            stop_scheduler(scheduler)
        logger.info("Thamel loyalty API stopped")


def create_app() -> FastAPI:
    setup_logging(env=config.ENV, log_level=config.LOG_LEVEL)

    app = FastAPI(title="Thamel Loyalty API", version=__version__, lifespan=lifespan)

    # Providers live on app.state so routes receive them through dependencies
    app.state.email_provider = build_email_provider(config)
    app.state.push_provider = build_push_provider(config)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(identity_router)
    app.include_router(booking_router)
    app.include_router(rewards_router)
    app.include_router(admin_router)

    @app.get("/health")
    def health():
        """Health check endpoint for load balancers and monitoring"""
        return {"status": "healthy", "service": "thamel-loyalty"}

    return app


app = create_app()
