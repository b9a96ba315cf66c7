"""
Translate domain errors to HTTP errors at the action boundary
"""
from fastapi import HTTPException

from codequiz.core.errors import (
    ConflictError, InvalidInputError, NotFoundError, QuizError, StoreError
)


STATUS_CODES = {
    NotFoundError: 404,
    InvalidInputError: 400,
    ConflictError: 409,
    StoreError: 503,
}


def to_http(exc: QuizError) -> HTTPException:
    for exc_type, status_code in STATUS_CODES.items():
        if isinstance(exc, exc_type):
            return HTTPException(status_code=status_code, detail=str(exc))
    return HTTPException(status_code=500, detail=str(exc))
