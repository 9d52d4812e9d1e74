"""Pytest configuration and shared fixtures."""
from __future__ import annotations

import json
from pathlib import Path
from typing import List, Optional, Sequence

import chromadb
import pytest

from chat_pipeline.chroma_client import ChromaVectorStore
from chat_pipeline.config import Settings
from chat_pipeline.embedder import Embedder
from chat_pipeline.messages import Message


POPE_267 = {
    "pontiffNumber": 267,
    "pontiffStartDate": "2013-03-13",
    "pontiffEndDate": None,
    "birthDate": "1936-12-17",
    "deathDate": None,
    "englishName": "Francis",
    "latinName": "Franciscus",
    "personalName": "Jorge Mario Bergoglio",
    "nationalities": ["Argentine"],
}


class FakeBackend:
    """Chat backend double: records every request and replays canned answers."""

    def __init__(self, *answers: str, error: Optional[Exception] = None):
        self.answers: List[str] = list(answers)
        self.error = error
        self.requests: List[Sequence[Message]] = []

    def complete(self, messages, model=None) -> str:
        self.requests.append(tuple(messages))
        if self.error is not None:
            raise self.error
        if len(self.answers) > 1:
            return self.answers.pop(0)
        return self.answers[0]

    def call(self, system_text: str, user_text: str) -> str:
        return self.complete([Message.system(system_text), Message.user(user_text)])


@pytest.fixture
def pope_json() -> str:
    return json.dumps(POPE_267)


@pytest.fixture
def chroma_dir(tmp_path: Path) -> Path:
    d = tmp_path / "chroma"
    d.mkdir(parents=True, exist_ok=True)
    return d


@pytest.fixture
def store(chroma_dir: Path) -> ChromaVectorStore:
    """Empty on-disk collection using the deterministic hash embedder."""
    client = chromadb.PersistentClient(path=str(chroma_dir))
    return ChromaVectorStore(client, "popes", Embedder("hash"))


@pytest.fixture
def settings(chroma_dir: Path) -> Settings:
    return Settings(
        llm_provider       = "ollama",
        chroma_persist_dir = str(chroma_dir),
        embedding_backend  = "hash",
    )


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch):
    """Ensure tests run with no leftover configuration variables."""
    for var in [
        "LLM_PROVIDER", "LLM_MODEL", "LLM_BASE_URL", "LLM_API_KEY", "LLM_TIMEOUT",
        "MISTRAL_AI_API_KEY", "OPENAI_API_KEY",
        "CHROMA_HOST", "CHROMA_PORT", "CHROMA_PERSIST_DIR", "CHROMA_COLLECTION",
        "EMBEDDING_BACKEND", "LOCAL_EMBED_MODEL", "RETRIEVAL_TOP_K", "MEMORY_MAX_MESSAGES",
        "PROMPTS_DIR", "POPES_DATA_PATH", "SEARCHED_POPE_PONTIFF_NUMBER", "SEARCHED_POPE",
        "NEXT_SEARCHED_POPES_NUMBER", "LOG_LEVEL",
    ]:
        monkeypatch.delenv(var, raising=False)
    yield
