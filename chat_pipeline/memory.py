"""
memory.py
=========
In-process conversation memory keyed by session id.

A session is created by its first append; reading an unknown session returns
an empty history.  Reads hand out tuple snapshots, so a later append never
changes a history a caller already holds.  Writes to one session are
serialised with a per-session lock.
"""

from __future__ import annotations

import logging
import uuid
from collections import defaultdict
from threading import Lock, RLock
from typing import Dict, List, Optional, Tuple

from chat_pipeline.messages import Message

logger = logging.getLogger(__name__)

DEFAULT_MAX_MESSAGES = 20


def new_session_id() -> str:
    return str(uuid.uuid4())


class ConversationMemory:
    """Sliding-window message history per conversation."""

    def __init__(self, max_messages: Optional[int] = DEFAULT_MAX_MESSAGES):
        if max_messages is not None and max_messages < 1:
            raise ValueError("max_messages must be a positive integer or None")
        self.max_messages = max_messages
        self._histories: Dict[str, List[Message]] = defaultdict(list)
        self._session_locks: Dict[str, RLock] = {}
        self._locks_guard = Lock()

    def session_lock(self, session_id: str) -> RLock:
        """Return the lock serialising writes to ``session_id``."""
        with self._locks_guard:
            lock = self._session_locks.get(session_id)
            if lock is None:
                lock = self._session_locks[session_id] = RLock()
            return lock

    def append(self, session_id: str, message: Message) -> None:
        with self.session_lock(session_id):
            history = self._histories[session_id]
            history.append(message)
            if self.max_messages is not None and len(history) > self.max_messages:
                dropped = len(history) - self.max_messages
                del history[:dropped]
                logger.debug("Session %s: dropped %d oldest message(s).", session_id, dropped)

    def history_for(self, session_id: str) -> Tuple[Message, ...]:
        with self._locks_guard:
            lock = self._session_locks.get(session_id)
        if lock is None:
            return ()
        with lock:
            return tuple(self._histories.get(session_id, ()))

    def clear(self, session_id: str) -> None:
        with self.session_lock(session_id):
            self._histories.pop(session_id, None)
            with self._locks_guard:
                self._session_locks.pop(session_id, None)

    def session_ids(self) -> List[str]:
        with self._locks_guard:
            return [sid for sid, history in list(self._histories.items()) if history]
