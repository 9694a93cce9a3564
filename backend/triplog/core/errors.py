"""
Domain exceptions raised by services and mapped to HTTP responses in main.py.
"""
from typing import Any, Dict, List, Optional


class AppError(Exception):
    """Base class for errors that carry a client-facing status and message."""
    status_code: int = 400
    error: str = "BadRequest"

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {"success": False, "error": self.error, "message": self.message}


class InvalidInputError(AppError):
    error = "InvalidInput"


class TripValidationError(AppError):
    """Aggregated payload violations; every failed rule is reported."""
    error = "ValidationError"

    def __init__(self, errors: List[Dict[str, str]], message: str = "Validation failed"):
        self.errors = errors
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        body["errors"] = self.errors
        return body


class ConflictError(AppError):
    error = "Conflict"


class InvalidCredentialsError(AppError):
    error = "InvalidCredentials"


class IncorrectPasswordError(AppError):
    error = "IncorrectPassword"


class AlreadyVerifiedError(AppError):
    error = "AlreadyVerified"


class InvalidOTPError(AppError):
    error = "InvalidOTP"


class OTPExpiredError(AppError):
    error = "Expired"


class InvalidOrExpiredTokenError(AppError):
    error = "InvalidOrExpiredToken"


class InvalidIdError(AppError):
    error = "InvalidId"


class EmailNotVerifiedError(AppError):
    status_code = 401
    error = "EmailNotVerified"


class NoTokenError(AppError):
    status_code = 401
    error = "NoToken"


class InvalidTokenError(AppError):
    status_code = 401
    error = "InvalidToken"


class TokenExpiredError(AppError):
    status_code = 401
    error = "Expired"

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        body["expired"] = True
        return body


class ForbiddenError(AppError):
    status_code = 403
    error = "Forbidden"


class NotFoundError(AppError):
    status_code = 404
    error = "NotFound"


class UploadError(AppError):
    status_code = 500
    error = "UploadError"
