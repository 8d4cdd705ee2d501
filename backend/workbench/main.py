#!/usr/bin/env python3
"""
Workbench - Main FastAPI Application

Serves the sandbox container and file editing API.
"""

import argparse
import logging
import sys
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from workbench import __version__
from workbench.config import ServerConfig, get_settings
from workbench.config.logging_config import LoggingConfig
from workbench.utils.exceptions import register_exception_handlers
from workbench.api import container_router, container_service, file_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifecycle

    Containers are left running on shutdown; port reservations are
    rebuilt from runtime labels on the next start.
    """
    settings = get_settings()
    logger.info("=" * 80)
    logger.info(f"Starting {settings.app_name}...")
    logger.info("=" * 80)

    if await container_service.manager.check_runtime_available():
        logger.info(f"Container runtime '{settings.runtime_binary}' is available")
    else:
        logger.warning(f"Container runtime '{settings.runtime_binary}' is not available; container operations will fail")

    logger.info("Application startup complete")
    logger.info(f"Documentation: http://{settings.host}:{settings.port}/docs")
    logger.info("=" * 80)

    yield

    logger.info("Application shutdown complete (containers preserved)")


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application

    Returns:
        Configured FastAPI instance
    """
    settings = get_settings()
    app = FastAPI(
        title=settings.app_name,
        version=__version__,
        description="Per-session application sandboxes on a container runtime",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    app.include_router(container_router, prefix="/api")
    app.include_router(file_router, prefix="/api")

    @app.get("/health", tags=["health"])
    async def health():
        return await container_service.health()

    return app


def run_api(host: str, port: int, reload: bool = False):
    """
    Run the API server with the given configuration
    """
    try:
        uvicorn.run(
            "workbench.main:app",
            host=host,
            port=port,
            reload=reload,
        )
    except Exception as e:
        logger.error(f"Failed to start API server: {e}")
        raise


def main() -> None:
    """
    Workbench server entry point
    """
    parser = argparse.ArgumentParser(prog='workbench-server',
                                     description='Workbench sandbox server')
    parser.add_argument("--host", type=str, default=ServerConfig.HOST)
    parser.add_argument("--port", type=int, default=ServerConfig.PORT)
    parser.add_argument("--reload", action="store_true", default=ServerConfig.RELOAD)
    args = parser.parse_args()

    LoggingConfig().setup_logging()

    try:
        logger.info(f"  - Server URL: http://{args.host}:{args.port}")
        logger.info(f"  - Health Check: http://{args.host}:{args.port}/health")
        run_api(host=args.host, port=args.port, reload=args.reload)
    except KeyboardInterrupt:
        logger.info("Shutting down Workbench gracefully...")
    except Exception as e:
        logger.error(f"Application startup failed: {e}")
        sys.exit(1)


# Create the app instance
app = create_app()

if __name__ == "__main__":
    main()
