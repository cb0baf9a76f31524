"""
Mapping of evaluation errors to HTTP exceptions
"""
import logging

from fastapi import HTTPException

from ..errors import (
    ConfigurationError,
    UnsupportedVisaTypeError,
    ValidationInputError,
    VisaEvaluationError
)

logger = logging.getLogger(__name__)

STATUS_CODES = {
    ValidationInputError: 422,
    UnsupportedVisaTypeError: 404,
    ConfigurationError: 500
}


def to_http_exception(error: VisaEvaluationError) -> HTTPException:
    """HTTPException carrying the error's ``to_dict()`` body"""
    status_code = next(
        (code for error_type, code in STATUS_CODES.items() if isinstance(error, error_type)),
        500
    )
    if status_code >= 500:
        logger.error(f"{error.code}: {error.message}")
    return HTTPException(status_code=status_code, detail=error.to_dict())
