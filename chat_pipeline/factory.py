"""
factory.py
==========
Explicit construction of the pope-search pipelines from Settings.

Every collaborator can be passed in; anything omitted is built from the
settings.  Nothing is cached at module level.
"""

from __future__ import annotations

import functools
import logging
from typing import Any, Optional

from chat_pipeline.chroma_client import ChromaVectorStore
from chat_pipeline.config import Settings
from chat_pipeline.ingestor import PONTIFF_NUMBER_KEY, pontiff_metadata, read_json_corpus
from chat_pipeline.llm_engine import ChatBackend
from chat_pipeline.memory import ConversationMemory
from chat_pipeline.output_parser import StructuredOutputParser
from chat_pipeline.pipeline import ChatPipeline
from chat_pipeline.prompts import SYSTEM_PROMPT, load_prompt
from chat_pipeline.records import Pope
from chat_pipeline.retriever import Operator, RetrievalPredicate, build_query

logger = logging.getLogger(__name__)


def pontiff_number_filter(settings: Settings):
    """Search request restricted to popes numbered at or after the searched one."""
    predicate = RetrievalPredicate(PONTIFF_NUMBER_KEY, Operator.GTE, settings.searched_pope_pontiff_number)
    return build_query(predicate, top_k=settings.retrieval_top_k)


def build_chat_pipeline(
    settings: Settings,
    backend: Optional[Any] = None,
    memory: Optional[ConversationMemory] = None,
) -> ChatPipeline[Pope]:
    """Memory + structured output, no retrieval."""
    return ChatPipeline(
        backend       = backend or ChatBackend.from_settings(settings),
        memory        = memory or ConversationMemory(settings.memory_max_messages),
        parser        = StructuredOutputParser(Pope),
        system_prompt = load_prompt(SYSTEM_PROMPT, settings.prompts_dir),
    )


def build_rag_pipeline(
    settings: Settings,
    backend: Optional[Any] = None,
    store: Optional[Any] = None,
    memory: Optional[ConversationMemory] = None,
) -> ChatPipeline[Pope]:
    """Memory + filtered retrieval over the popes corpus + structured output."""
    store = store if store is not None else ChromaVectorStore.from_settings(settings)
    corpus = functools.partial(read_json_corpus, settings.popes_data_path, pontiff_metadata)
    logger.info(
        "RAG pipeline: provider=%s collection=%s filter=%s",
        settings.llm_provider, settings.chroma_collection,
        pontiff_number_filter(settings).filter_expression,
    )
    return ChatPipeline(
        backend        = backend or ChatBackend.from_settings(settings),
        memory         = memory or ConversationMemory(settings.memory_max_messages),
        parser         = StructuredOutputParser(Pope),
        system_prompt  = load_prompt(SYSTEM_PROMPT, settings.prompts_dir),
        store          = store,
        search_request = pontiff_number_filter(settings),
        corpus         = corpus,
    )
