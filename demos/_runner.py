"""Shared search loop for the structured-output demos."""

from __future__ import annotations

import logging
from typing import List, Optional

from chat_pipeline.errors import PipelineError, ParseFailure
from chat_pipeline.pipeline import ChatPipeline
from chat_pipeline.records import Pope

logger = logging.getLogger(__name__)


def search_popes(
    pipeline: ChatPipeline[Pope],
    first_prompt: str,
    next_prompt: str,
    next_count: int,
    label: str,
    session_id: Optional[str] = None,
) -> List[Pope]:
    """
    Ask for one pope, then ``next_count`` successors in the same conversation.

    A failure on the first search propagates.  A failing follow-up is logged
    and the loop moves on to the next one.
    """
    pope = pipeline.run(first_prompt, session_id)
    session_id = pipeline.last_session_id
    logger.info("The %s pope is: %s", label, pope)
    popes = [pope]

    for idx in range(next_count):
        try:
            pope = pipeline.run(next_prompt, session_id)
        except ParseFailure as exc:
            logger.error("Follow-up search %d/%d returned unparseable text: %s\n%s",
                         idx + 1, next_count, exc, exc.raw_text)
            continue
        except PipelineError as exc:
            logger.error("Follow-up search %d/%d failed: %s", idx + 1, next_count, exc)
            continue
        logger.info("The next pope is: %s", pope)
        popes.append(pope)

    return popes
