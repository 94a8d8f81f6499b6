"""
Domain exceptions raised by services and translated to HTTP responses by routers
"""
from typing import List, Optional

from fastapi import HTTPException

from reftagger.utils.error_messages import get_error_message


class ReftaggerError(Exception):
    """Base error for tagging operations"""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationFailed(ReftaggerError):
    """Input rejected by validation rules"""

    status_code = 400

    def __init__(self, errors: List[str], message: Optional[str] = None):
        self.errors = list(errors)
        super().__init__(message or "; ".join(self.errors[:5]) or "Validation failed")


class NotFound(ReftaggerError):
    status_code = 404


class Conflict(ReftaggerError):
    status_code = 409


class ServiceUnavailable(ReftaggerError):
    status_code = 503


def http_error(error: Exception, fallback: str) -> HTTPException:
    """Translate a service error into an HTTPException for the router layer"""
    if isinstance(error, HTTPException):
        return error
    if isinstance(error, ReftaggerError):
        return HTTPException(status_code=error.status_code, detail=error.message)
    return HTTPException(status_code=500, detail=get_error_message(error, fallback))
