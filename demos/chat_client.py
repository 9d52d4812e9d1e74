"""
chat_client.py
==============
Search a pope by name with conversation memory and structured output, then
ask for the next ones in the same conversation.

  python -m demos.chat_client --searched-pope actual --next 2
"""

from __future__ import annotations

import argparse
import logging
from typing import Any, List, Optional

from chat_pipeline.config import configure_logging, load_settings
from chat_pipeline.errors import ParseFailure, PipelineError
from chat_pipeline.factory import build_chat_pipeline
from chat_pipeline.prompts import NEXT_POPE_PROMPT, POPE_BY_NAME_PROMPT, load_prompt, render_prompt

from demos._runner import search_popes

logger = logging.getLogger(__name__)


def main(argv: Optional[List[str]] = None, backend: Optional[Any] = None) -> int:
    parser = argparse.ArgumentParser(description="Pope search with memory and structured output")
    parser.add_argument("--searched-pope", help="Pope to search, e.g. 'actual' or 'first' (SEARCHED_POPE)")
    parser.add_argument("--next", type=int, dest="next_count",
                        help="Number of follow-up searches (NEXT_SEARCHED_POPES_NUMBER)")
    args = parser.parse_args(argv)

    settings = load_settings()
    if args.searched_pope:
        settings.searched_pope = args.searched_pope
    if args.next_count is not None:
        settings.next_searched_popes_number = args.next_count
    configure_logging(settings.log_level)

    try:
        pipeline = build_chat_pipeline(settings, backend=backend)
        first_prompt = render_prompt(
            load_prompt(POPE_BY_NAME_PROMPT, settings.prompts_dir),
            searched_pope=settings.searched_pope,
            format=pipeline.parser.format_instructions,
        )
        search_popes(
            pipeline,
            first_prompt,
            load_prompt(NEXT_POPE_PROMPT, settings.prompts_dir),
            settings.next_searched_popes_number,
            label=settings.searched_pope,
        )
    except ParseFailure as exc:
        logger.error("Unparseable answer: %s\n%s", exc, exc.raw_text)
        return 1
    except PipelineError as exc:
        logger.error("Pope search failed: %s", exc, exc_info=True)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
