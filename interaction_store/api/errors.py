"""Maps store errors onto JSON error responses."""

from __future__ import annotations

from fastapi.responses import JSONResponse

from interaction_store.exceptions import (
    AlreadyExistsError,
    DecodeError,
    IdentityMismatchError,
    InvalidKeyError,
    LinkageMismatchError,
    NotFoundError,
    StateStoreError,
    StoreError,
    VersionConflictError,
)

_STATUS_BY_ERROR: tuple[tuple[type[StateStoreError], int], ...] = (
    (NotFoundError, 404),
    (IdentityMismatchError, 400),
    (InvalidKeyError, 400),
    (AlreadyExistsError, 409),
    (LinkageMismatchError, 409),
    (VersionConflictError, 409),
    (DecodeError, 500),
    (StoreError, 503),
)


def status_for(exc: StateStoreError) -> int:
    for error_type, status in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status
    return 500


def error_response(exc: StateStoreError) -> JSONResponse:
    body: dict[str, object] = {"error": str(exc), "type": type(exc).__name__}
    if isinstance(exc, LinkageMismatchError):
        body["expected"] = exc.expected
        body["actual"] = exc.actual
    return JSONResponse(body, status_code=status_for(exc))
