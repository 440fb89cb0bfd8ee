from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Protocol


@dataclass(frozen=True)
class ChatTurn:
    role: str  # system|user|assistant
    content: str


@dataclass(frozen=True)
class ResponderResult:
    """
    Reply produced by a responder.

    NOTE:
    - content is stored verbatim as the ``ai`` message.
    - stage completion is detected from the content, not from this object.
    """
    content: str
    details: Dict[str, str] | None = None


class ResponderError(RuntimeError):
    """The backing model could not produce a reply (timeout, API error, empty output)."""


class ResponderAdapter(Protocol):
    """
    Pluggable persona chat backend for stages.
    """
    name: str

    def reply(self, *, stage_name: str, turns: List[ChatTurn], request_id: str) -> ResponderResult:
        ...

    def summarize(self, *, stage_name: str, prompt: str, turns: List[ChatTurn], request_id: str) -> str:
        ...
