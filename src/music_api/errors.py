"""Logging setup and application-wide exception handlers."""

from __future__ import annotations

import logging
import sys
from typing import Any, Dict, List, Sequence

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

logger = logging.getLogger(__name__)

_LOCATION_PREFIXES = {"body", "query", "path", "header", "form", "cookie"}


# PUBLIC_INTERFACE
def configure_logging(level: str = "INFO") -> None:
    """Configure root logging once at start-up."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )


def _field_name(loc: Sequence[Any]) -> str:
    parts = list(loc)
    if parts and parts[0] in _LOCATION_PREFIXES:
        parts = parts[1:]
    return ".".join(str(p) for p in parts) or "body"


def _validation_fields(exc: RequestValidationError) -> List[Dict[str, str]]:
    fields: List[Dict[str, str]] = []
    for error in exc.errors():
        fields.append(
            {
                "field": _field_name(error.get("loc", ())),
                "message": str(error.get("msg", "Invalid value")),
            }
        )
    return fields


async def _handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields = _validation_fields(exc)
    logger.info(
        "request_validation_failed: method=%s path=%s fields=%s",
        request.method,
        request.url.path,
        ",".join(f["field"] for f in fields),
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": "Validation failed", "fields": fields},
    )


async def _handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_error: method=%s path=%s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "Server error"},
    )


# PUBLIC_INTERFACE
def setup_exception_handlers(app: FastAPI) -> None:
    """Register the validation (400) and catch-all (500) handlers."""
    app.add_exception_handler(RequestValidationError, _handle_request_validation)
    app.add_exception_handler(Exception, _handle_unexpected_error)
