"""
Quill API - Main Application Entry Point

FastAPI application for the Quill blog: accounts, sessions, posts and comments.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI

from quill.config import settings

# Import logging configuration to initialize loguru
# This must be imported early to ensure all subsequent imports use the configured logger
import quill.core.logging  # noqa: F401
from loguru import logger

from quill.api.routes import admin, auth, blogs, comments, health
from quill.core.exception_handlers import register_exception_handlers
from quill.core.middleware import setup_middleware
from quill.db.session import Database


def create_app(database: Optional[Database] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        database: Storage client to use; built from settings at startup when omitted

    Returns:
        Configured FastAPI instance
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        db = database or Database.from_settings(settings)
        app.state.database = db
        if settings.DB_AUTO_CREATE:
            await db.create_all()

        logger.info("🚀 Quill API starting...")
        logger.info(f"📝 Environment: {settings.ENV}")
        logger.info(f"🔐 Identity provider: {settings.IDENTITY_PROVIDER}")
        if settings.ENV == "production" and settings.SECRET_KEY.startswith("your_secret_key"):
            logger.warning("SECRET_KEY is the development placeholder")

        yield

        await db.dispose()
        logger.info("👋 Quill API shutting down...")

    app = FastAPI(
        title="Quill API",
        description="Blog publishing API with cookie sessions and author-only mutations",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    setup_middleware(app)
    register_exception_handlers(app)

    app.include_router(auth.router)
    app.include_router(blogs.router)
    app.include_router(comments.router)
    app.include_router(admin.router)
    app.include_router(health.router)

    return app


app = create_app()
