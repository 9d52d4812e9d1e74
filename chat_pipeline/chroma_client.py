"""
chroma_client.py
================
Vector-store adapter over a ChromaDB collection.

Backends:
  HttpClient       — when CHROMA_HOST is set (shared server)
  PersistentClient — otherwise, on-disk under CHROMA_PERSIST_DIR

Embeddings are computed by ``chat_pipeline.embedder`` and handed to Chroma
explicitly; the collection itself carries no embedding function.  Any Chroma
failure is re-raised as StoreUnavailableError.
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import chromadb  # type: ignore

from chat_pipeline.config import Settings
from chat_pipeline.embedder import Embedder
from chat_pipeline.errors import StoreUnavailableError
from chat_pipeline.retriever import SearchRequest

logger = logging.getLogger(__name__)

# Chroma rejects empty metadata maps, so every stored row carries its id.
_ID_KEY = "documentId"


@dataclass(frozen=True)
class Document:
    id: str
    text: str
    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_text(cls, text: str, metadata: Optional[Dict[str, Any]] = None, salt: str = "") -> "Document":
        """Content-addressed document; ``salt`` separates equal texts from different sources."""
        doc_id = hashlib.sha256(f"{salt}{text}".encode("utf-8")).hexdigest()[:32]
        return cls(id=doc_id, text=text, metadata=dict(metadata or {}))


def create_client(settings: Settings) -> Any:
    """Return a Chroma client for the configured backend."""
    try:
        if settings.chroma_host:
            client = chromadb.HttpClient(host=settings.chroma_host, port=settings.chroma_port)
            logger.info("Vector store backend: chroma http (%s:%d)", settings.chroma_host, settings.chroma_port)
        else:
            Path(settings.chroma_persist_dir).mkdir(parents=True, exist_ok=True)
            client = chromadb.PersistentClient(path=settings.chroma_persist_dir)
            logger.info("Vector store backend: chroma persistent (%s)", settings.chroma_persist_dir)
    except Exception as exc:
        raise StoreUnavailableError(f"Unable to open Chroma client: {exc}") from exc
    return client


class ChromaVectorStore:
    """Count / bulk-add / filtered similarity search over one collection."""

    def __init__(self, client: Any, collection_name: str, embedder: Embedder):
        self.collection_name = collection_name
        self.embedder = embedder
        try:
            self._collection = client.get_or_create_collection(
                name               = collection_name,
                metadata           = {"hnsw:space": "cosine"},
                embedding_function = None,
            )
        except Exception as exc:
            raise StoreUnavailableError(
                f"Unable to open collection '{collection_name}': {exc}"
            ) from exc
        logger.info("Vector collection '%s' ready.", collection_name)

    @classmethod
    def from_settings(cls, settings: Settings) -> "ChromaVectorStore":
        embedder = Embedder(settings.embedding_backend, settings.local_embed_model)
        return cls(create_client(settings), settings.chroma_collection, embedder)

    def count(self) -> int:
        try:
            return self._collection.count()
        except Exception as exc:
            raise StoreUnavailableError(f"Unable to count '{self.collection_name}': {exc}") from exc

    def add(self, documents: Sequence[Document]) -> None:
        if not documents:
            return
        embeddings = self.embedder.embed_texts([doc.text for doc in documents])
        try:
            self._collection.add(
                ids        = [doc.id for doc in documents],
                embeddings = embeddings,
                documents  = [doc.text for doc in documents],
                metadatas  = [{**doc.metadata, _ID_KEY: doc.id} for doc in documents],
            )
        except Exception as exc:
            raise StoreUnavailableError(
                f"Unable to add {len(documents)} documents to '{self.collection_name}': {exc}"
            ) from exc

    def similarity_search(self, request: SearchRequest) -> List[Document]:
        """Return up to ``request.top_k`` documents, most similar first."""
        total = self.count()
        if total == 0:
            logger.warning("Collection '%s' is empty; returning no documents.", self.collection_name)
            return []

        query_vec = self.embedder.embed_query(request.query)
        try:
            results = self._collection.query(
                query_embeddings = [query_vec],
                n_results        = min(request.top_k, total),
                where            = request.filter_expression or None,
                include          = ["documents", "distances", "metadatas"],
            )
        except Exception as exc:
            raise StoreUnavailableError(f"Similarity search failed: {exc}") from exc

        ids:       List[str]            = results["ids"][0] if results.get("ids") else []
        docs:      List[str]            = results["documents"][0] if results.get("documents") else []
        distances: List[float]          = results["distances"][0] if results.get("distances") else []
        metadatas: List[Dict[str, Any]] = results["metadatas"][0] if results.get("metadatas") else []

        found: List[Document] = []
        for idx, doc_id in enumerate(ids):
            similarity = 1.0 - distances[idx] if idx < len(distances) else 0.0
            if request.similarity_threshold > 0.0 and similarity < request.similarity_threshold:
                continue
            metadata = dict(metadatas[idx] or {}) if idx < len(metadatas) else {}
            metadata.pop(_ID_KEY, None)
            found.append(Document(id=doc_id, text=docs[idx], metadata=metadata))

        logger.debug("Similarity search returned %d of %d candidates.", len(found), len(ids))
        return found
