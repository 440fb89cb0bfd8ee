"""Application factory for the Planform API."""
from __future__ import annotations

import uuid

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from planform.core.config import get_settings
from planform.core.db import db_health
from planform.core.errors import PlanformError
from planform.core.observability import emit, err_envelope, request_id_of
from planform.modules.agencies.router import router as agencies_router
from planform.modules.auth.gate import AccessGate
from planform.modules.auth.user_info import HttpUserInfoLookup
from planform.modules.ideas.router import router as ideas_router
from planform.modules.pages.router import router as pages_router
from planform.modules.stages.router import router as stages_router
from planform.modules.users.router import router as users_router

# Contract locks:
# - X-Request-Id in/out (missing -> generated; always echoed back; also on errors)
# - Error envelope keys: error, message, request_id, details
# - /health keys: status, version, db, last_error_summary


def _validation_details(exc: RequestValidationError):
    return [
        {"loc": list(e.get("loc", ())), "msg": e.get("msg"), "type": e.get("type")}
        for e in exc.errors()
    ]


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title="Planform API", version=settings.app_version)
    app.state.user_info_lookup = HttpUserInfoLookup(
        url=settings.user_info_url, timeout=settings.user_info_timeout_seconds
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # registered first -> runs inside the request-id middleware
    app.middleware("http")(AccessGate())

    @app.middleware("http")
    async def _request_id_mw(request: Request, call_next):
        rid = request.headers.get("X-Request-Id") or uuid.uuid4().hex.upper()
        request.state.request_id = rid
        emit("info", "http.request.start", f"{request.method} {request.url.path}", rid, __name__)
        try:
            resp = await call_next(request)
        except Exception as e:
            emit("error", "http.request.exception", str(e), rid, __name__)
            raise
        resp.headers["X-Request-Id"] = rid
        emit("info", "http.request.end", f"{request.method} {request.url.path} -> {getattr(resp, 'status_code', None)}", rid, __name__)
        return resp

    @app.exception_handler(PlanformError)
    async def _planform_exc_handler(request: Request, exc: PlanformError):
        rid = request_id_of(request)
        if exc.status_code >= 500:
            emit("error", "http.request.error", exc.message, rid, __name__, error=exc.error)
        return err_envelope(exc.error, exc.message, rid, exc.details, exc.status_code)

    @app.exception_handler(StarletteHTTPException)
    async def _http_exc_handler(request: Request, exc: StarletteHTTPException):
        rid = request_id_of(request)
        return err_envelope("http_error", str(exc.detail), rid, {"status_code": exc.status_code}, exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def _validation_exc_handler(request: Request, exc: RequestValidationError):
        rid = request_id_of(request)
        return err_envelope("validation_error", "request validation failed", rid, _validation_details(exc), 400)

    @app.exception_handler(Exception)
    async def _unhandled_exc_handler(request: Request, exc: Exception):
        rid = request_id_of(request)
        emit("error", "http.request.unhandled", repr(exc), rid, __name__, type=type(exc).__name__)
        return err_envelope("internal_error", "internal server error", rid, {"type": type(exc).__name__}, 500)

    @app.get("/health", tags=["health"])
    def health():
        db = db_health()
        return {
            "status": "ok" if db.get("status") == "ok" else "degraded",
            "version": settings.app_version,
            "db": db,
            "last_error_summary": db.get("error"),
        }

    app.include_router(users_router)
    app.include_router(ideas_router)
    app.include_router(stages_router)
    app.include_router(agencies_router)
    app.include_router(pages_router)
    return app


app = create_app()
