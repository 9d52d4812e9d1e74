# backend/schemas/__init__.py
from backend.schemas.response import ErrorResponse, PopeResponse, SearchBody

__all__ = ["ErrorResponse", "PopeResponse", "SearchBody"]
