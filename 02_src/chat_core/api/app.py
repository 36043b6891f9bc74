"""FastAPI application setup."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from ..app import Application
from ..config import cors_origins
from .routes import (
    create_accounts_router,
    create_attachments_router,
    create_live_router,
    create_messaging_router,
    create_system_router,
)


# Global application instance
_app: Application | None = None


def get_app() -> Application:
    """Get the global application instance."""
    global _app
    if not _app:
        _app = Application()
    return _app


def create_fastapi_app(application: Application | None = None) -> FastAPI:
    """Create and configure FastAPI application.

    Args:
        application: Application to serve. Defaults to the global instance.
    """
    application = application or get_app()

    @asynccontextmanager
    async def lifespan(fastapi_app: FastAPI):
        """Manage application lifespan."""
        await application.start()
        yield
        await application.stop()

    fastapi_app = FastAPI(
        title="Arena Chat API",
        description="Direct messaging with live delivery",
        version="0.1.0",
        lifespan=lifespan,
    )

    origins = cors_origins()
    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials="*" not in origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    fastapi_app.include_router(create_system_router())
    fastapi_app.include_router(create_accounts_router(application))
    fastapi_app.include_router(create_messaging_router(application))
    fastapi_app.include_router(create_attachments_router(application))
    fastapi_app.include_router(create_live_router(application))

    fastapi_app.mount(
        "/uploads",
        StaticFiles(directory=application.uploads_dir, check_dir=False),
        name="uploads",
    )

    return fastapi_app
