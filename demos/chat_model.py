"""
chat_model.py
=============
Ask the configured chat backend who the actual pope is.

  python -m demos.chat_model --provider ollama
"""

from __future__ import annotations

import argparse
import logging
from typing import Any, List, Optional

from chat_pipeline.config import configure_logging, load_settings
from chat_pipeline.errors import PipelineError
from chat_pipeline.llm_engine import PROVIDERS, ChatBackend

logger = logging.getLogger(__name__)

SYSTEM_TEXT = (
    "You are a helpful assistant that helps people find information. "
    "You don't provide any explanations, just the answers. "
    "For simple answers, no punctuation is needed."
)
USER_TEXT = "Who is the actual pope? Roman numbers could be used if necessary."


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Single system + user exchange with a chat model")
    parser.add_argument("--provider", choices=sorted(PROVIDERS), help="LLM provider (LLM_PROVIDER)")
    parser.add_argument("--model", help="Model identifier (LLM_MODEL)")
    return parser


def main(argv: Optional[List[str]] = None, backend: Optional[Any] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = load_settings()
    if args.provider:
        settings.llm_provider = args.provider
    if args.model:
        settings.llm_model = args.model
    configure_logging(settings.log_level)

    try:
        backend = backend or ChatBackend.from_settings(settings)
        answer = backend.call(SYSTEM_TEXT, USER_TEXT)
    except PipelineError as exc:
        logger.error("Chat model call failed: %s", exc, exc_info=True)
        return 1

    logger.info("The actual pope is '%s'.", answer)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
