"""
rag.py
======
Retrieval-augmented pope search.

  1. Load resources/data/popes.json into the Chroma collection if it is empty
  2. Restrict retrieval to popes with pontiffNumber >= the searched number
  3. Ask for that pope (structured output), then for the next ones, within
     one conversation

  python -m demos.rag --pontiff-number 265 --next 2
"""

from __future__ import annotations

import argparse
import logging
from typing import Any, List, Optional

from chat_pipeline.config import configure_logging, load_settings
from chat_pipeline.errors import ParseFailure, PipelineError
from chat_pipeline.factory import build_rag_pipeline
from chat_pipeline.prompts import NEXT_POPE_PROMPT, POPE_BY_NUMBER_PROMPT, load_prompt, render_prompt

from demos._runner import search_popes

logger = logging.getLogger(__name__)


def main(
    argv: Optional[List[str]] = None,
    backend: Optional[Any] = None,
    store: Optional[Any] = None,
) -> int:
    parser = argparse.ArgumentParser(description="Retrieval-augmented pope search")
    parser.add_argument("--pontiff-number", type=int, dest="pontiff_number",
                        help="Pontiff number of the searched pope (SEARCHED_POPE_PONTIFF_NUMBER)")
    parser.add_argument("--next", type=int, dest="next_count",
                        help="Number of follow-up searches (NEXT_SEARCHED_POPES_NUMBER)")
    args = parser.parse_args(argv)

    settings = load_settings()
    if args.pontiff_number is not None:
        settings.searched_pope_pontiff_number = args.pontiff_number
    if args.next_count is not None:
        settings.next_searched_popes_number = args.next_count
    configure_logging(settings.log_level)

    try:
        pipeline = build_rag_pipeline(settings, backend=backend, store=store)
        first_prompt = render_prompt(
            load_prompt(POPE_BY_NUMBER_PROMPT, settings.prompts_dir),
            searched_pope_pontiff_number=settings.searched_pope_pontiff_number,
            format=pipeline.parser.format_instructions,
        )
        search_popes(
            pipeline,
            first_prompt,
            load_prompt(NEXT_POPE_PROMPT, settings.prompts_dir),
            settings.next_searched_popes_number,
            label=f"#{settings.searched_pope_pontiff_number}",
        )
    except ParseFailure as exc:
        logger.error("Unparseable answer: %s\n%s", exc, exc.raw_text)
        return 1
    except PipelineError as exc:
        logger.error("RAG pope search failed: %s", exc, exc_info=True)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
