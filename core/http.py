"""
core/http.py -- Exception handlers shared by the gateway, account and events apps.

All handlers return the same envelope so clients (browsers and the RPC clients
in api/clients.py alike) parse errors uniformly:

    {"error": {"code": "...", "message": "...", "fields": {...} | null}}

Security note: internal failures are written to the log with full detail and
the client receives only the generic message. 401 responses carry
`WWW-Authenticate: Bearer`.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.errors import GENERIC_INTERNAL_MESSAGE, AuthenticationError, InternalError, ServiceError


def error_body(code: str, message: str, fields: dict[str, str] | None = None) -> dict:
    return {"error": {"code": code, "message": message, "fields": fields}}


def error_response(err: ServiceError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(err, AuthenticationError) else None
    return JSONResponse(status_code=err.status, content={"error": err.to_dict()}, headers=headers)


def _field_name(loc) -> str:
    parts = [str(p) for p in loc if p not in ("body", "query", "path")]
    return ".".join(parts) or "body"


def install_error_handlers(app: FastAPI, logger: logging.Logger) -> None:
    """Register the envelope-producing handlers on app."""

    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
        if isinstance(exc, InternalError):
            logger.error("%s %s failed: %r", request.method, request.url.path, exc, exc_info=exc)
        return error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """Malformed JSON or wrong field types: 400 with one message per field."""
        fields: dict[str, str] = {}
        for error in exc.errors():
            fields.setdefault(_field_name(error.get("loc", ())), error.get("msg", "invalid value"))
        return JSONResponse(
            status_code=400,
            content=error_body("validation_error", "request validation failed", fields),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code == 404:
            body = error_body("not_found", "the requested resource could not be found")
        elif exc.status_code == 405:
            body = error_body(
                "method_not_allowed",
                f"the {request.method} method is not supported for this resource",
            )
        else:
            body = error_body(f"http_{exc.status_code}", str(exc.detail))
        return JSONResponse(status_code=exc.status_code, content=body, headers=getattr(exc, "headers", None))

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all for unexpected server errors. The traceback stays in the log."""
        logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content=error_body("internal_error", GENERIC_INTERNAL_MESSAGE))
