"""Interaction store HTTP service: FastAPI application."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from interaction_store import __version__
from interaction_store.api import interactions, mcps, steps
from interaction_store.bootstrap import Services, build_services
from interaction_store.config import Settings

logger = logging.getLogger(__name__)


def create_app(services: Services | None = None, settings: Settings | None = None) -> FastAPI:
    """Build the app.

    With *services* given (tests), the caller owns them and they are not
    closed on shutdown.  Otherwise they are built from *settings* at startup
    and every repository is closed when the app stops.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if services is not None:
            app.state.services = services
            yield
            return
        cfg = settings or Settings()
        app.state.services = build_services(cfg)
        logger.info("Interaction store started")
        try:
            yield
        finally:
            app.state.services.close()
            logger.info("Interaction store stopped")

    app = FastAPI(
        title="Interaction Store",
        description="Persistent state for multi-agent interactions",
        version=__version__,
        lifespan=lifespan,
    )
    if services is not None:
        app.state.services = services

    app.include_router(interactions.router)
    app.include_router(mcps.router)
    app.include_router(steps.router)

    @app.get("/health")
    def health(request: Request):
        checks = request.app.state.services.ping()
        healthy = all(checks.values())
        return JSONResponse(
            {"status": "healthy" if healthy else "unhealthy", "checks": checks},
            status_code=200 if healthy else 503,
        )

    return app


if __name__ == "__main__":
    import uvicorn

    settings = Settings()
    logging.basicConfig(level=settings.log_level)
    uvicorn.run(create_app(settings=settings), host=settings.host, port=settings.port)
