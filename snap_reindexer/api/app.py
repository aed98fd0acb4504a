"""FastAPI application for snap-reindexer."""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from .config import settings
from .routers import health, pipeline
from .. import __version__
from .._queue import create_work_queue
from .._utils import configure_logging, logger
from ..cluster import ClusterClient
from ..config import ReindexerConfig


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the cluster and queue clients for the app's lifetime."""
    config = ReindexerConfig.from_env()
    configure_logging(config.log_level, config.log_file)

    app.state.config = config
    app.state.cluster = ClusterClient(config.cluster)
    app.state.queue = create_work_queue("redis", config.queue)
    logger.info(f"API connected to {config.cluster.host} and {config.queue.redis_url}")

    yield

    logger.info("Shutting down API clients...")
    await app.state.queue.close()
    await app.state.cluster.close()


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        lifespan=lifespan,
        docs_url=f"{settings.api_prefix}/docs",
        openapi_url=f"{settings.api_prefix}/openapi.json",
    )

    app.include_router(health.router, prefix=settings.api_prefix)
    app.include_router(pipeline.router, prefix=settings.api_prefix)

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "name": settings.api_title,
            "version": __version__,
            "docs": f"{settings.api_prefix}/docs"
        }

    return app


app = create_app()
