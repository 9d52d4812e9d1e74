"""
prompts.py
==========
Prompt templates stored as text files.

Placeholders use ``{name}``; rendering with a missing variable raises KeyError.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

from chat_pipeline.config import RESOURCES_DIR

_BUNDLED_PROMPTS_DIR = RESOURCES_DIR / "prompts"

SYSTEM_PROMPT         = "system-prompt.txt"
POPE_BY_NUMBER_PROMPT = "pope-by-number-prompt.txt"
POPE_BY_NAME_PROMPT   = "pope-by-name-prompt.txt"
NEXT_POPE_PROMPT      = "next-pope-prompt.txt"


def load_prompt(name: str, prompts_dir: Optional[Union[str, Path]] = None) -> str:
    path = Path(prompts_dir or _BUNDLED_PROMPTS_DIR) / name
    try:
        return path.read_text(encoding="utf-8").strip()
    except OSError as exc:
        raise FileNotFoundError(f"Unable to read prompt '{name}' from {path.parent}") from exc


def render_prompt(template: str, **variables: object) -> str:
    return template.format(**variables)
