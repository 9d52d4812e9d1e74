"""
pipeline.py
===========
One chat turn: memory replay, filtered retrieval, system-first ordering,
a single backend call, memory update and structured parsing.

The "before" advisors run in a fixed order on an immutable ChatRequest:

  1. replay_memory  — prepend the session history
  2. retrieve       — similarity search (at most one) and context augmentation
  3. order          — every SYSTEM message first (stable)
  4. log_request    — debug dump of the outgoing messages

A turn holds the session lock from the first advisor to the last memory
append, so turns on the same session never interleave.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from threading import Lock
from typing import Any, Callable, Generic, Iterable, List, Optional, Tuple, TypeVar, Union

from chat_pipeline.chroma_client import Document
from chat_pipeline.ingestor import ingest_if_empty
from chat_pipeline.memory import ConversationMemory, new_session_id
from chat_pipeline.messages import Message, Role, normalize
from chat_pipeline.output_parser import StructuredOutputParser
from chat_pipeline.retriever import SearchRequest, augment

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class ChatRequest:
    session_id: str
    messages: Tuple[Message, ...]
    search_request: Optional[SearchRequest] = None


Advisor = Callable[[ChatRequest], ChatRequest]
Corpus = Union[Iterable[Document], Callable[[], Iterable[Document]]]


class ChatPipeline(Generic[T]):
    """
    Compose backend, memory, retrieval and parsing into one request flow.

    Parameters
    ----------
    backend        : object with ``complete(messages) -> str`` (llm_engine.ChatBackend)
    memory         : ConversationMemory shared by every turn of this pipeline
    parser         : StructuredOutputParser for the target record
    system_prompt  : instruction sent as the SYSTEM message on every turn
    store          : vector store (chroma_client.ChromaVectorStore); None disables retrieval
    search_request : base SearchRequest (filter, top_k); the query text is filled per turn
    corpus         : documents loaded into ``store`` on the first turn if it is empty
    """

    def __init__(
        self,
        backend: Any,
        memory: ConversationMemory,
        parser: Optional[StructuredOutputParser] = None,
        system_prompt: str = "",
        store: Optional[Any] = None,
        search_request: Optional[SearchRequest] = None,
        corpus: Optional[Corpus] = None,
    ):
        if corpus is not None and store is None:
            raise ValueError("A corpus requires a vector store")

        self.backend = backend
        self.memory = memory
        self.parser = parser
        self.system_prompt = system_prompt
        self.store = store
        self.search_request = search_request or SearchRequest()
        self.last_session_id: Optional[str] = None

        self._corpus = corpus
        self._ingest_lock = Lock()
        self._ingested = corpus is None

        advisors: List[Advisor] = [self._replay_memory]
        if store is not None:
            advisors.append(self._retrieve)
        advisors += [self._order, self._log_request]
        self._advisors: Tuple[Advisor, ...] = tuple(advisors)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def run(
        self,
        user_input: str,
        session_id: Optional[str] = None,
        search_request: Optional[SearchRequest] = None,
    ) -> T:
        """Run one turn and parse the answer with the configured parser."""
        if self.parser is None:
            raise ValueError("ChatPipeline.run requires a parser; use run_text for raw answers")
        return self.parser.parse(self.run_text(user_input, session_id, search_request))

    def run_text(
        self,
        user_input: str,
        session_id: Optional[str] = None,
        search_request: Optional[SearchRequest] = None,
    ) -> str:
        """
        Run one turn and return the raw answer text.

        ``search_request`` replaces the pipeline-wide retrieval filter for this
        turn only.
        """
        session_id = session_id or new_session_id()
        self.last_session_id = session_id
        self._ensure_ingested()

        user_message = Message.user(user_input)
        initial: Tuple[Message, ...] = (user_message,)
        if self.system_prompt:
            initial = (Message.system(self.system_prompt), user_message)

        with self.memory.session_lock(session_id):
            request = ChatRequest(
                session_id     = session_id,
                messages       = initial,
                search_request = search_request or self.search_request,
            )
            for advisor in self._advisors:
                request = advisor(request)

            answer = self.backend.complete(request.messages)

            self.memory.append(session_id, user_message)
            self.memory.append(session_id, Message.assistant(answer))

        logger.debug("Session %s response: %s", session_id, answer)
        return answer

    # ------------------------------------------------------------------
    # Advisors
    # ------------------------------------------------------------------

    def _replay_memory(self, request: ChatRequest) -> ChatRequest:
        history = self.memory.history_for(request.session_id)
        return replace(request, messages=history + request.messages)

    def _retrieve(self, request: ChatRequest) -> ChatRequest:
        messages = list(request.messages)
        for idx in range(len(messages) - 1, -1, -1):
            if messages[idx].role is Role.USER:
                break
        else:
            return request

        query = messages[idx].content
        base_request = request.search_request or self.search_request
        documents = self.store.similarity_search(base_request.with_query(query))
        logger.info("Retrieved %d document(s) for session %s.", len(documents), request.session_id)
        messages[idx] = Message.user(augment(query, documents))
        return replace(request, messages=tuple(messages))

    def _order(self, request: ChatRequest) -> ChatRequest:
        return replace(request, messages=normalize(request.messages))

    def _log_request(self, request: ChatRequest) -> ChatRequest:
        if logger.isEnabledFor(logging.DEBUG):
            for message in request.messages:
                logger.debug("Session %s %s: %s", request.session_id, message.role.value, message.content)
        return request

    # ------------------------------------------------------------------
    # Ingestion
    # ------------------------------------------------------------------

    def _ensure_ingested(self) -> None:
        if self._ingested:
            return
        with self._ingest_lock:
            if not self._ingested:
                ingest_if_empty(self._corpus, self.store)
                self._ingested = True
