"""Map ordering errors to HTTP responses.

Protean's own handlers cover ``ValidationError`` (400) and
``ObjectNotFoundError`` (404); the handlers below add the ordering-specific
kinds.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.exceptions import ExpectedVersionError, TransactionError
from protean.integrations.fastapi import register_exception_handlers as register_protean_handlers

from ordering.errors import (
    DuplicateSession,
    Forbidden,
    InsufficientStock,
    PaymentNotCompleted,
    StorageUnavailable,
)

logger = structlog.get_logger(__name__)

_STATUS_CODES = {
    InsufficientStock: 409,
    DuplicateSession: 409,
    PaymentNotCompleted: 400,
    Forbidden: 403,
    StorageUnavailable: 503,
}


def _ordering_error_handler(status_code):
    async def handler(request: Request, exc):
        if status_code >= 500:
            logger.error("request_failed", path=request.url.path, code=exc.code, error=exc.message)
        return JSONResponse(status_code=status_code, content=exc.to_dict())

    return handler


async def _version_conflict_handler(request: Request, exc: ExpectedVersionError):
    logger.warning("version_conflict", path=request.url.path, error=str(exc))
    return JSONResponse(
        status_code=503,
        content={"error": "The record was modified concurrently, retry the request", "code": "storage_unavailable"},
    )


async def _commit_failed_handler(request: Request, exc: TransactionError):
    # A relational store refusing a duplicate key at commit lands here; the
    # retried request finds the committed row.
    logger.error("commit_failed", path=request.url.path, error=str(exc))
    return JSONResponse(
        status_code=503,
        content={"error": "The change could not be committed, retry the request", "code": "storage_unavailable"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install Protean's handlers plus the ordering error mapping."""
    register_protean_handlers(app)
    for exc_class, status_code in _STATUS_CODES.items():
        app.add_exception_handler(exc_class, _ordering_error_handler(status_code))
    app.add_exception_handler(ExpectedVersionError, _version_conflict_handler)
    app.add_exception_handler(TransactionError, _commit_failed_handler)
