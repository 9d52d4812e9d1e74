"""
messages.py
===========
Role-tagged chat messages and the ordering policy applied right before a
request is transmitted.

Some backends reject a conversation whose system instruction is not the first
message, yet memory replay inserts prior turns ahead of it.  ``normalize``
moves every SYSTEM message to the front with a stable sort so the relative
order inside each group is kept.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, Tuple


class Role(str, Enum):
    SYSTEM    = "system"
    USER      = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class Message:
    role: Role
    content: str

    @classmethod
    def system(cls, content: str) -> "Message":
        return cls(Role.SYSTEM, content)

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(Role.USER, content)

    @classmethod
    def assistant(cls, content: str) -> "Message":
        return cls(Role.ASSISTANT, content)

    def to_dict(self) -> Dict[str, str]:
        return {"role": self.role.value, "content": self.content}


def _role_priority(message: Message) -> int:
    return 0 if message.role is Role.SYSTEM else 1


def normalize(messages: Iterable[Message]) -> Tuple[Message, ...]:
    """Return the messages with all SYSTEM messages first (stable)."""
    return tuple(sorted(messages, key=_role_priority))
