"""
api/health.py
=============
GET /api/health — liveness and readiness probe for the pope-search backend.
"""

import logging

from fastapi import APIRouter, Request

from chat_pipeline import __version__
from chat_pipeline.errors import StoreUnavailableError

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/api/health")
async def health_check(request: Request):
    """Return service status and component readiness flags."""
    state = request.app.state
    store = state.store

    store_ready = False
    store_count = 0
    if store is not None:
        try:
            store_count = store.count()
            store_ready = store_count > 0
        except StoreUnavailableError as exc:
            logger.warning("Health check: vector store unavailable (%s)", exc)

    return {
        "status":           "ok",
        "pipeline_ready":   state.pipeline is not None,
        "store_ready":      store_ready,
        "store_doc_count":  store_count,
        "llm_provider":     state.settings.llm_provider,
        "llm_model":        state.settings.llm_model or None,
        "api_version":      __version__,
    }
