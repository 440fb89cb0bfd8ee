from .base import ResponderAdapter, ResponderError, ResponderResult
from .registry import get_responder

__all__ = ["ResponderAdapter", "ResponderError", "ResponderResult", "get_responder"]
