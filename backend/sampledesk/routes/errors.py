"""Translation of service-layer errors into HTTP responses."""

from fastapi import HTTPException, status

from ..errors import (
    ConflictError,
    NotFoundError,
    ReferentialIntegrityError,
    SampleDeskError,
    ValidationError,
)

STATUS_CODES = (
    (ConflictError, status.HTTP_409_CONFLICT),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ValidationError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (ReferentialIntegrityError, status.HTTP_409_CONFLICT),
)


def to_http(exc: SampleDeskError) -> HTTPException:
    for error_type, code in STATUS_CODES:
        if isinstance(exc, error_type):
            return HTTPException(status_code=code, detail=str(exc))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
