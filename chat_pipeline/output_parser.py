"""
output_parser.py
================
Turn raw LLM text into a validated pydantic record.

The JSON schema is derived once from the target model and embedded in the
format instructions sent to the LLM.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Generic, Type, TypeVar

from pydantic import BaseModel, ValidationError

from chat_pipeline.errors import ParseFailure

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

_FENCE_RE = re.compile(r"^```[a-zA-Z0-9_-]*\s*\n?(.*?)\n?```$", re.DOTALL)

_FORMAT_TEMPLATE = """Your response should be in JSON format.
Do not include any explanations, only provide a RFC8259 compliant JSON response following this format without deviation.
Do not include markdown code blocks in your response.
Remove the ```json markdown from the output.
Here is the JSON Schema instance your output must adhere to:
```{schema}```
"""


class StructuredOutputParser(Generic[T]):
    """Parse LLM answers into instances of ``model``."""

    def __init__(self, model: Type[T]):
        self.model = model
        self.schema = model.model_json_schema(by_alias=True)
        self._format = _FORMAT_TEMPLATE.format(schema=json.dumps(self.schema, indent=2, sort_keys=True))

    @property
    def format_instructions(self) -> str:
        return self._format

    def parse(self, raw_text: str) -> T:
        text = (raw_text or "").strip()
        fenced = _FENCE_RE.match(text)
        if fenced:
            text = fenced.group(1).strip()

        try:
            return self.model.model_validate_json(text)
        except ValidationError as exc:
            logger.debug("Unparseable %s payload: %s", self.model.__name__, raw_text)
            raise ParseFailure(
                f"Response does not match {self.model.__name__}: {exc.error_count()} error(s). {exc}",
                raw_text=raw_text,
            ) from exc
