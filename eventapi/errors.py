from typing import Any, List, Optional

from pydantic import ValidationError


class ApiError(Exception):
    """Error raised by services; mapped onto the failure envelope in main."""

    def __init__(self, message: str, status_code: int = 500, errors: Optional[List[Any]] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.errors = errors


def validation_failed(exc: ValidationError, message: str = "Validation failed") -> ApiError:
    errors = exc.errors(include_url=False, include_context=False, include_input=False)
    return ApiError(message, 422, errors=errors)
