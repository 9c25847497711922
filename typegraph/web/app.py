"""FastAPI application factory."""

from __future__ import annotations

from fastapi import FastAPI

from typegraph import __version__
from typegraph.web.api import router
from typegraph.web.api_graph import router as graph_router


def create_app() -> FastAPI:
    app = FastAPI(title="typegraph", version=__version__)

    # Scan and session routes
    app.include_router(router)

    # Build, filter and export routes
    app.include_router(graph_router)
    return app
