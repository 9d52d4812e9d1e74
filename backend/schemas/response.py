"""
schemas/response.py
===================
Pydantic v2 request / response models for the pope-search API.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from chat_pipeline.records import Pope


def _utc_now() -> str:
    return datetime.now(UTC).isoformat(timespec="seconds").replace("+00:00", "Z")


# ---------------------------------------------------------------------------
# Request
# ---------------------------------------------------------------------------

class SearchBody(BaseModel):
    query: Optional[str] = Field(None, description="Free-text question; ignored when pontiff_number is set")
    pontiff_number: Optional[int] = Field(None, ge=1, description="Search the pope with this number")
    session_id: Optional[str] = Field(None, description="Conversation to continue; a new one when omitted")

    @model_validator(mode="after")
    def _require_query_or_number(self) -> "SearchBody":
        if self.pontiff_number is None and not (self.query or "").strip():
            raise ValueError("Either query or pontiff_number must be provided")
        return self


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------

class PopeResponse(BaseModel):
    session_id: str
    pope: Pope
    timestamp: str = Field(default_factory=_utc_now)

    @field_validator("timestamp", mode="before")
    @classmethod
    def _ensure_utc_string(cls, v: Any) -> str:
        if isinstance(v, datetime):
            return v.astimezone(UTC).isoformat(timespec="seconds").replace("+00:00", "Z")
        return str(v)


class ErrorResponse(BaseModel):
    error: str
    detail: Optional[str] = None
    raw_text: Optional[str] = None
    timestamp: str = Field(default_factory=_utc_now)
