"""Shared request dependencies and error translation for API routes."""

from fastapi import Header, HTTPException

from brd_engine.core.errors import (
    BrdEngineError,
    DocumentAlreadyProcessedError,
    ExtractionError,
    NoDocumentsError,
    NotFoundError,
    ServiceError,
    ValidationFailedError,
)


def get_user_id(x_user_id: str | None = Header(None, alias="X-User-Id")) -> str:
    """Caller identity. Every route requires it; there is no default user."""
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    return x_user_id.strip()


def status_code_for(error: BrdEngineError) -> int:
    if isinstance(error, (ValidationFailedError, DocumentAlreadyProcessedError, NoDocumentsError)):
        return 400
    if isinstance(error, NotFoundError):
        return 404
    if isinstance(error, ExtractionError):
        return 422
    if isinstance(error, ServiceError):
        return 502
    return 500


def to_http_exception(error: BrdEngineError, prefix: str | None = None) -> HTTPException:
    """Translate a domain error to an HTTPException with its message."""
    detail = f"{prefix}: {error}" if prefix else str(error)
    return HTTPException(status_code=status_code_for(error), detail=detail)
