from __future__ import annotations

from typing import Optional

from planform.core.config import get_settings

from .base import ResponderAdapter
from .openai_responder import OpenAIResponder
from .scripted import ScriptedResponder


def get_responder(name: Optional[str] = None) -> ResponderAdapter:
    """
    Registry entry point; PLANFORM_RESPONDER selects by name.
    - scripted: deterministic, no network (default)
    - openai: chat completions with OPENAI_API_KEY / OPENAI_MODEL
    """
    settings = get_settings()
    resolved = (name or settings.responder or "scripted").strip().lower()
    if resolved == "scripted":
        return ScriptedResponder()
    if resolved == "openai":
        return OpenAIResponder(
            api_key=settings.openai_api_key,
            model=settings.openai_model,
            timeout=settings.responder_timeout_seconds,
        )
    raise ValueError(f"unknown responder: {resolved!r}")
