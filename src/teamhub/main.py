# TeamHub Chat - Real-Time Team Collaboration Backend
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""TeamHub Chat - Main Application Module."""

import logging
from collections.abc import AsyncGenerator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager

import uvicorn
from beartype import beartype
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .api.v1 import chat_socket_router
from .api.v1 import router as v1_router
from .core.config import Settings, get_settings
from .core.logging_utils import configure_logging
from .services.message_store import MessageStore
from .websocket.runtime import ChatRuntime

logger = logging.getLogger(__name__)


def build_lifespan(
    settings: Settings, store: MessageStore | None
) -> Callable[[FastAPI], AbstractAsyncContextManager[None]]:
    """Lifespan that owns the chat runtime for the life of the app."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        # Startup
        logger.info("Starting %s in %s mode", settings.app_name, settings.api_env)
        runtime = ChatRuntime.build(settings, store)
        await runtime.start()
        app.state.chat = runtime

        yield

        # Shutdown
        logger.info("Shutting down %s", settings.app_name)
        await runtime.stop()
        app.state.chat = None

    return lifespan


@beartype
def create_app(
    settings: Settings | None = None,
    store: MessageStore | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Settings to use instead of the environment-derived ones
        store: Message store to use instead of the configured backend

    Returns:
        FastAPI: Configured application instance
    """
    settings = settings if settings is not None else get_settings()
    configure_logging(level=settings.log_level)

    app = FastAPI(
        title=settings.app_name,
        description="Real-time chat core for the TeamHub collaboration backend",
        version=__version__,
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
        openapi_url="/openapi.json" if not settings.is_production else None,
        lifespan=build_lifespan(settings, store),
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api_cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include API routers
    app.include_router(v1_router)
    app.include_router(chat_socket_router)

    # Root endpoint
    @app.get("/")
    async def root() -> dict[str, str]:
        """Root endpoint returning API information."""
        return {
            "name": settings.app_name,
            "version": __version__,
            "status": "operational",
            "environment": settings.api_env,
        }

    return app


# Create the application instance
app = create_app()


@beartype
def main() -> None:
    """Run the main application entry point."""
    settings = get_settings()

    uvicorn.run(
        "teamhub.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.is_development,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
