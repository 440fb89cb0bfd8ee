"""
Structured log lines and the error envelope.

Contract:
- one JSON object per line: ts, level, message, request_id, event, module (+extra)
- error envelope keys: error, message, request_id, details
"""
from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, Optional

from fastapi.responses import JSONResponse

from planform.core.ids import now_iso

_log = logging.getLogger("planform")
if not _log.handlers:
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))


def emit(level: str, event: str, message: str, request_id: Optional[str], module: str, **extra: Any) -> None:
    payload: Dict[str, Any] = {
        "ts": now_iso(),
        "level": level.lower(),
        "message": message,
        "request_id": request_id,
        "event": event,
        "module": module,
    }
    payload.update(extra)
    print(json.dumps(payload, ensure_ascii=False, default=str), flush=True)


def request_id_of(request: Any) -> Optional[str]:
    st = getattr(request, "state", None)
    return getattr(st, "request_id", None) if st is not None else None


def err_envelope(error: str, message: str, request_id: Optional[str], details: Any, status_code: int) -> JSONResponse:
    headers = {}
    if request_id:
        headers["X-Request-Id"] = request_id
    return JSONResponse(
        status_code=status_code,
        content={
            "error": error,
            "message": message,
            "request_id": request_id,
            "details": details,
        },
        headers=headers,
    )
