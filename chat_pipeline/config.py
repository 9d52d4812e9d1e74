"""
config.py
=========
Runtime settings read from the environment.

A ``.env`` file in the project root is loaded first (values already present in
the environment win).  Every demo and the HTTP backend build their components
from one ``Settings`` instance; nothing in the core reads the environment on
its own.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv  # type: ignore

PROJECT_ROOT = Path(__file__).resolve().parent.parent
RESOURCES_DIR = Path(__file__).resolve().parent / "resources"

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


def _clean_env(name: str, default: str = "") -> str:
    value = os.getenv(name, default)
    return value.strip().strip('"').strip("'")


def _int_env(name: str, default: int) -> int:
    raw = _clean_env(name, "")
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


def _float_env(name: str, default: float) -> float:
    raw = _clean_env(name, "")
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc


@dataclass
class Settings:
    # LLM backend
    llm_provider: str = "mistral"
    llm_model: str = ""
    llm_base_url: str = ""
    llm_api_key: str = ""
    llm_timeout: float = 120.0

    # Vector store
    chroma_host: str = ""
    chroma_port: int = 8000
    chroma_persist_dir: str = "./chroma_db"
    chroma_collection: str = "popes"
    embedding_backend: str = "sentence_transformers"
    local_embed_model: str = "all-MiniLM-L6-v2"
    retrieval_top_k: int = 4

    # Conversation memory
    memory_max_messages: int = 20

    # Resources
    prompts_dir: str = str(RESOURCES_DIR / "prompts")
    popes_data_path: str = str(RESOURCES_DIR / "data" / "popes.json")

    # Searches
    searched_pope_pontiff_number: int = 267
    searched_pope: str = "actual"
    next_searched_popes_number: int = 0

    log_level: str = "INFO"


def load_settings(env_file: Optional[str] = None) -> Settings:
    """
    Build ``Settings`` from environment variables.

    Priority (highest to lowest):
    1. Process environment
    2. ``.env`` file (project root unless ``env_file`` is given)
    3. Dataclass defaults
    """
    load_dotenv(env_file or PROJECT_ROOT / ".env", override=False)

    defaults = Settings()
    return Settings(
        llm_provider      = _clean_env("LLM_PROVIDER", defaults.llm_provider).lower(),
        llm_model         = _clean_env("LLM_MODEL", defaults.llm_model),
        llm_base_url      = _clean_env("LLM_BASE_URL", defaults.llm_base_url),
        llm_api_key       = _clean_env("LLM_API_KEY", defaults.llm_api_key),
        llm_timeout       = _float_env("LLM_TIMEOUT", defaults.llm_timeout),
        chroma_host       = _clean_env("CHROMA_HOST", defaults.chroma_host),
        chroma_port       = _int_env("CHROMA_PORT", defaults.chroma_port),
        chroma_persist_dir = _clean_env("CHROMA_PERSIST_DIR", defaults.chroma_persist_dir),
        chroma_collection = _clean_env("CHROMA_COLLECTION", defaults.chroma_collection),
        embedding_backend = _clean_env("EMBEDDING_BACKEND", defaults.embedding_backend).lower(),
        local_embed_model = _clean_env("LOCAL_EMBED_MODEL", defaults.local_embed_model),
        retrieval_top_k   = _int_env("RETRIEVAL_TOP_K", defaults.retrieval_top_k),
        memory_max_messages = _int_env("MEMORY_MAX_MESSAGES", defaults.memory_max_messages),
        prompts_dir       = _clean_env("PROMPTS_DIR", defaults.prompts_dir),
        popes_data_path   = _clean_env("POPES_DATA_PATH", defaults.popes_data_path),
        searched_pope_pontiff_number = _int_env(
            "SEARCHED_POPE_PONTIFF_NUMBER", defaults.searched_pope_pontiff_number
        ),
        searched_pope     = _clean_env("SEARCHED_POPE", defaults.searched_pope),
        next_searched_popes_number = _int_env(
            "NEXT_SEARCHED_POPES_NUMBER", defaults.next_searched_popes_number
        ),
        log_level         = _clean_env("LOG_LEVEL", defaults.log_level).upper(),
    )


def configure_logging(level: str = "INFO") -> None:
    """Install the root handler.  Only entry points call this."""
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)
