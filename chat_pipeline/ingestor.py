"""
ingestor.py
===========
Load a JSON corpus into the vector store once.

``ingest_if_empty`` checks the collection size first and only reads and
inserts the corpus when the collection holds no documents, so a restarted
process does not duplicate the data.  The count-then-insert sequence is not
atomic: two processes starting together against an empty collection can both
insert.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Union

from chat_pipeline.chroma_client import Document

logger = logging.getLogger(__name__)

PONTIFF_NUMBER_KEY = "pontiffNumber"

MetadataGenerator = Callable[[Dict[str, Any]], Dict[str, Any]]


def metadata_from_keys(*keys: str) -> MetadataGenerator:
    """Return a generator copying ``keys`` from a record; absent keys are skipped."""

    def _generate(record: Dict[str, Any]) -> Dict[str, Any]:
        return {key: record[key] for key in keys if key in record}

    return _generate


pontiff_metadata = metadata_from_keys(PONTIFF_NUMBER_KEY)


def _record_text(record: Dict[str, Any]) -> str:
    lines = []
    for key, value in record.items():
        if not isinstance(value, str):
            value = json.dumps(value, ensure_ascii=False)
        lines.append(f"{key}: {value}")
    return "\n".join(lines)


def read_json_corpus(
    path: Union[str, Path],
    metadata_generator: MetadataGenerator = pontiff_metadata,
) -> List[Document]:
    """
    Read a JSON array (or a single JSON object) of records into Documents.

    Each record's text is its ``key: value`` lines; its metadata is whatever
    ``metadata_generator`` extracts from it.  The record position is part of the
    document id, so repeated records are all kept.
    """
    with open(path, "r", encoding="utf-8") as fh:
        payload = json.load(fh)

    records = payload if isinstance(payload, list) else [payload]
    documents: List[Document] = []
    for idx, record in enumerate(records):
        if not isinstance(record, dict):
            raise ValueError(f"{path}: record #{idx} is not a JSON object")
        documents.append(
            Document.from_text(_record_text(record), metadata_generator(record), salt=f"#{idx}:")
        )
    return documents


def ingest_if_empty(corpus: Union[Iterable[Document], Callable[[], Iterable[Document]]], store: Any) -> int:
    """
    Insert ``corpus`` into ``store`` when the store is empty.

    ``corpus`` may be a sequence of Documents or a zero-argument callable
    returning one; the callable is only invoked when loading is needed.
    Documents sharing an id are inserted once.

    Returns
    -------
    Number of documents inserted (0 when the store already held documents).
    """
    stored = store.count()
    if stored:
        logger.info("Corpus already loaded into vector store (%d documents).", stored)
        return 0

    logger.info("Loading corpus documents into vector store.")
    loaded = list(corpus() if callable(corpus) else corpus)
    unique: Dict[str, Document] = {}
    for doc in loaded:
        unique.setdefault(doc.id, doc)
    documents = list(unique.values())
    if len(documents) < len(loaded):
        logger.warning("Skipping %d corpus document(s) with duplicate ids.", len(loaded) - len(documents))
    store.add(documents)
    logger.info("%d corpus documents loaded into vector store.", len(documents))
    return len(documents)
