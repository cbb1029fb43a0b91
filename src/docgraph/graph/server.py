"""HTTP boundary serving the graph payload to the visualization client.

``create_app`` builds a FastAPI application around a store factory. A
fresh store is opened for every request and closed afterwards, so the
app never shares a database connection across worker threads.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from docgraph import __version__
from docgraph.exceptions import DocgraphError
from docgraph.graph.export import GraphExporter

if TYPE_CHECKING:
    from collections.abc import Callable

    from docgraph.store.base import BaseIndexStore

__all__ = ["create_app"]

logger = logging.getLogger(__name__)


def create_app(
    store_factory: Callable[[], BaseIndexStore],
    *,
    allowed_origins: list[str] | None = None,
) -> FastAPI:
    """Create the graph API application.

    Args:
        store_factory: Zero-argument callable opening the index store.
        allowed_origins: CORS origins allowed to fetch the payload.

    Returns:
        Configured FastAPI app exposing ``/api/graph-data`` and ``/health``.
    """
    app = FastAPI(title="docgraph", version=__version__)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins or ["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    @app.get("/health", tags=["Health"])
    def health() -> dict[str, str]:
        return {"status": "healthy", "version": __version__}

    @app.get("/api/graph-data", tags=["Graph"])
    def graph_data() -> Any:
        try:
            store = store_factory()
            try:
                payload = GraphExporter(store).export().to_dict()
            finally:
                store.close()
        except DocgraphError as e:
            logger.error("Graph export failed: %s", e)
            return JSONResponse({"error": str(e)}, status_code=500)
        return payload

    return app
