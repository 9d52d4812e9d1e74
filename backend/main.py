"""
main.py
=======
FastAPI application entry point for the pope-search service.

Run locally:
  uvicorn backend.main:app --reload --port 8000

The lifespan handler opens the vector store, loads the corpus when the
collection is empty and builds the RAG pipeline once at startup, so nothing is
re-created per request.  Tests inject a ready pipeline and store through
``create_app`` instead.
"""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend.api.health import router as health_router
from backend.api.search import router as search_router
from chat_pipeline import __version__
from chat_pipeline.config import Settings, configure_logging, load_settings

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------

def create_app(
    pipeline: Optional[Any] = None,
    store: Optional[Any] = None,
    settings: Optional[Settings] = None,
) -> FastAPI:

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Build the pipeline (and ingest the corpus) before the first request."""
        logger.info("Pope-search backend starting up…")
        app_settings = app.state.settings
        if app.state.pipeline is None:
            from chat_pipeline.chroma_client import ChromaVectorStore
            from chat_pipeline.factory import build_rag_pipeline
            from chat_pipeline.ingestor import ingest_if_empty, read_json_corpus

            if app.state.store is None:
                app.state.store = ChromaVectorStore.from_settings(app_settings)
            ingest_if_empty(lambda: read_json_corpus(app_settings.popes_data_path), app.state.store)
            app.state.pipeline = build_rag_pipeline(app_settings, store=app.state.store)

        logger.info("All components initialised. Ready.")
        yield

        logger.info("Pope-search backend shutting down.")

    app = FastAPI(
        title       = "Pope Search API",
        description = (
            "Retrieval-augmented pope search with Chroma-filtered context, "
            "conversation memory and structured LLM output."
        ),
        version     = __version__,
        docs_url    = "/docs",
        redoc_url   = "/redoc",
        lifespan    = lifespan,
    )
    app.state.settings = settings or load_settings()
    app.state.pipeline = pipeline
    app.state.store = store

    # ── CORS ──────────────────────────────────────────────────────────────
    origins = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]
    if os.getenv("FRONTEND_URL"):
        origins.append(os.getenv("FRONTEND_URL"))
    app.add_middleware(
        CORSMiddleware,
        allow_origins     = origins,
        allow_credentials = True,
        allow_methods     = ["*"],
        allow_headers     = ["*"],
    )

    # ── Routers ───────────────────────────────────────────────────────────
    app.include_router(health_router)
    app.include_router(search_router)

    return app


def get_app() -> FastAPI:
    """Build the app from environment settings with logging configured."""
    settings = load_settings()
    configure_logging(settings.log_level)
    return create_app(settings=settings)


app = get_app()
