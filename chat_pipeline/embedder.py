"""
embedder.py
===========
Convert text strings into dense embedding vectors.

Backends (selected with EMBEDDING_BACKEND):
  sentence_transformers — all-MiniLM-L6-v2 by default (local, offline once cached)
  hash                  — deterministic token-hash vectors (no model download)
"""

from __future__ import annotations

import hashlib
import logging
from threading import Lock
from typing import Any, Dict, List

logger = logging.getLogger(__name__)

_HASH_DIM = 256

_st_models: Dict[str, Any] = {}
_model_lock = Lock()


# ---------------------------------------------------------------------------
# Backends
# ---------------------------------------------------------------------------

def _embed_st(texts: List[str], model_name: str) -> List[List[float]]:
    model = _st_models.get(model_name)
    if model is None:
        with _model_lock:
            model = _st_models.get(model_name)
            if model is None:
                from sentence_transformers import SentenceTransformer  # type: ignore

                model = _st_models[model_name] = SentenceTransformer(model_name)
                logger.info("Embedder backend: sentence_transformers (%s)", model_name)

    vecs = model.encode(
        texts,
        batch_size=32,
        show_progress_bar=False,
        convert_to_numpy=True,
        normalize_embeddings=True,
    )
    return [v.tolist() for v in vecs]


def _embed_hash(texts: List[str], dim: int = _HASH_DIM) -> List[List[float]]:
    """Deterministic bag-of-tokens vectors, L2-normalised."""
    vectors: List[List[float]] = []
    for text in texts:
        values = [0.0] * dim
        for token in text.lower().split():
            digest = hashlib.sha256(token.encode("utf-8", errors="ignore")).digest()
            idx = int.from_bytes(digest[:2], "big") % dim
            sign = 1.0 if digest[2] % 2 == 0 else -1.0
            values[idx] += sign

        norm = sum(v * v for v in values) ** 0.5
        if norm > 0:
            values = [v / norm for v in values]
        else:
            # an all-zero vector has no cosine distance; pin it to one axis
            values[0] = 1.0
        vectors.append(values)
    return vectors


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

class Embedder:
    """Text → vector adapter used by the vector store."""

    BACKENDS = ("sentence_transformers", "hash")

    def __init__(self, backend: str = "sentence_transformers", model_name: str = "all-MiniLM-L6-v2"):
        if backend not in self.BACKENDS:
            raise ValueError(f"Unknown embedding backend {backend!r}; expected one of {self.BACKENDS}")
        self.backend = backend
        self.model_name = model_name

    def embed_texts(self, texts: List[str]) -> List[List[float]]:
        """Return a list of embedding vectors, one per input text."""
        if not texts:
            return []
        if self.backend == "hash":
            return _embed_hash(texts)
        return _embed_st(texts, self.model_name)

    def embed_query(self, text: str) -> List[float]:
        """Embed a single query string."""
        return self.embed_texts([text])[0]
