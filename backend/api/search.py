"""
api/search.py
=============
POST /api/popes/search
----------------------
JSON body (see schemas.response.SearchBody):
  • query          : free-text question, searched over the whole corpus
  • pontiff_number : search the pope with this number (takes precedence)
  • session_id     : continue an existing conversation

Runs one turn of the RAG pipeline and returns the parsed Pope.

Error mapping:
  BackendError / EmptyResponseError → 502
  ParseFailure                      → 422 (raw LLM text included)
  StoreUnavailableError             → 503
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Request, status
from fastapi.responses import JSONResponse

from backend.schemas.response import ErrorResponse, PopeResponse, SearchBody
from chat_pipeline.errors import BackendError, EmptyResponseError, ParseFailure, StoreUnavailableError
from chat_pipeline.ingestor import PONTIFF_NUMBER_KEY
from chat_pipeline.memory import new_session_id
from chat_pipeline.prompts import POPE_BY_NUMBER_PROMPT, load_prompt, render_prompt
from chat_pipeline.retriever import Operator, RetrievalPredicate, build_query

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Endpoint
# ---------------------------------------------------------------------------

@router.post("/api/popes/search", response_model=PopeResponse)
async def search_pope(body: SearchBody, request: Request):
    """Ask the pipeline for one pope, optionally inside an existing conversation."""
    state = request.app.state
    pipeline = state.pipeline
    if pipeline is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Pipeline not initialised.",
        )

    format_instructions = pipeline.parser.format_instructions

    if body.pontiff_number is not None:
        prompt = render_prompt(
            load_prompt(POPE_BY_NUMBER_PROMPT, state.settings.prompts_dir),
            searched_pope_pontiff_number=body.pontiff_number,
            format=format_instructions,
        )
        search_request = build_query(
            RetrievalPredicate(PONTIFF_NUMBER_KEY, Operator.GTE, body.pontiff_number),
            top_k=state.settings.retrieval_top_k,
        )
    else:
        prompt = f"{body.query.strip()}\n\n{format_instructions}"
        search_request = build_query(None, top_k=state.settings.retrieval_top_k)

    session_id = body.session_id or new_session_id()
    try:
        pope = await asyncio.to_thread(pipeline.run, prompt, session_id, search_request)
    except ParseFailure as exc:
        logger.error("Unparseable LLM answer: %s", exc)
        return _error(status.HTTP_422_UNPROCESSABLE_ENTITY, "parse_failure", str(exc), exc.raw_text)
    except (BackendError, EmptyResponseError) as exc:
        logger.error("LLM backend failed: %s", exc, exc_info=True)
        return _error(status.HTTP_502_BAD_GATEWAY, "backend_error", str(exc))
    except StoreUnavailableError as exc:
        logger.error("Vector store unavailable: %s", exc, exc_info=True)
        return _error(status.HTTP_503_SERVICE_UNAVAILABLE, "store_unavailable", str(exc))

    return PopeResponse(session_id=session_id, pope=pope)


# ---------------------------------------------------------------------------
# Helper
# ---------------------------------------------------------------------------

def _error(status_code: int, error: str, detail: str, raw_text: Optional[str] = None) -> JSONResponse:
    payload = ErrorResponse(error=error, detail=detail, raw_text=raw_text)
    return JSONResponse(status_code=status_code, content=payload.model_dump())
