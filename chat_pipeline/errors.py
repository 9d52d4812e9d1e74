"""
errors.py
=========
Failure taxonomy shared by every pipeline component.

  BackendError          — transport / provider failure (transient, caller may retry)
  EmptyResponseError    — backend answered with no usable content (fatal for the call)
  ParseFailure          — answer text does not match the target schema (fatal for the call)
  StoreUnavailableError — vector store unreachable during ingestion or retrieval (fatal)

None of these are retried inside the pipeline.
"""

from __future__ import annotations


class PipelineError(RuntimeError):
    """Base class for all chat pipeline failures."""


class BackendError(PipelineError):
    """Raised when the LLM backend call fails."""


class EmptyResponseError(PipelineError):
    """Raised when the LLM backend returns no content."""


class ParseFailure(PipelineError):
    """Raised when generated text cannot be converted into the target record."""

    def __init__(self, message: str, raw_text: str = ""):
        super().__init__(message)
        self.raw_text = raw_text


class StoreUnavailableError(PipelineError):
    """Raised when the vector store cannot be reached."""
