"""
retriever.py
============
Metadata-filtered retrieval requests and question-answer augmentation.

Strategy:
  1. A typed predicate (e.g. pontiffNumber >= 267) is translated into the
     Chroma ``where`` grammar: ``{"pontiffNumber": {"$gte": 267}}``.
  2. The vector store ranks candidates by cosine similarity among the
     documents that pass the filter (see chroma_client.ChromaVectorStore).
  3. The retrieved document texts are appended to the user's message inside a
     fixed context block before the request is sent.

Nothing here touches the store; every function is pure.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Sequence

DEFAULT_TOP_K = 4

_CONTEXT_TEMPLATE = """{query}

Context information is below, surrounded by ---------------------

---------------------
{context}
---------------------

Given the context and provided history information and not prior knowledge,
reply to the user comment. If the answer is not in the context, inform
the user that you can't answer the question.
"""


class Operator(str, Enum):
    EQ  = "$eq"
    NE  = "$ne"
    GT  = "$gt"
    GTE = "$gte"
    LT  = "$lt"
    LTE = "$lte"
    IN  = "$in"
    NIN = "$nin"


@dataclass(frozen=True)
class RetrievalPredicate:
    field: str
    operator: Operator
    value: Any


@dataclass(frozen=True)
class SearchRequest:
    query: str = ""
    top_k: int = DEFAULT_TOP_K
    similarity_threshold: float = 0.0     # 0.0 accepts every match
    filter_expression: Optional[Dict[str, Any]] = None

    def with_query(self, query: str) -> "SearchRequest":
        return replace(self, query=query)


# ---------------------------------------------------------------------------
# Filter expressions
# ---------------------------------------------------------------------------

def to_expression(predicate: RetrievalPredicate) -> Dict[str, Any]:
    """Translate one predicate into a Chroma ``where`` clause."""
    operator = Operator(predicate.operator)
    value = predicate.value
    if operator in (Operator.IN, Operator.NIN):
        if not isinstance(value, (list, tuple)):
            raise ValueError(f"{operator.name} requires a list value, got {value!r}")
        value = list(value)
    return {predicate.field: {operator.value: value}}


def _combine(key: str, predicates: Sequence[RetrievalPredicate]) -> Dict[str, Any]:
    if not predicates:
        raise ValueError("At least one predicate is required")
    if len(predicates) == 1:
        return to_expression(predicates[0])
    return {key: [to_expression(p) for p in predicates]}


def all_of(*predicates: RetrievalPredicate) -> Dict[str, Any]:
    return _combine("$and", predicates)


def any_of(*predicates: RetrievalPredicate) -> Dict[str, Any]:
    return _combine("$or", predicates)


def build_query(
    predicate: Optional[RetrievalPredicate],
    query: str = "",
    top_k: int = DEFAULT_TOP_K,
    similarity_threshold: float = 0.0,
) -> SearchRequest:
    """
    Build a similarity-search request constrained by ``predicate``.

    Parameters
    ----------
    predicate            : metadata condition, or None for an unfiltered search
    query                : free text to rank by (usually filled in per request)
    top_k                : maximum number of documents returned
    similarity_threshold : minimum similarity (1 - cosine distance) kept
    """
    if top_k < 1:
        raise ValueError("top_k must be >= 1")
    if not 0.0 <= similarity_threshold <= 1.0:
        raise ValueError("similarity_threshold must be within [0, 1]")

    return SearchRequest(
        query                = query,
        top_k                = top_k,
        similarity_threshold = similarity_threshold,
        filter_expression    = to_expression(predicate) if predicate is not None else None,
    )


# ---------------------------------------------------------------------------
# Question-answer augmentation
# ---------------------------------------------------------------------------

def augment(query: str, documents: Iterable[Any]) -> str:
    """Append the retrieved document texts to ``query`` as a context block."""
    context = "\n".join(doc.text for doc in documents)
    return _CONTEXT_TEMPLATE.format(query=query, context=context)
