# portal_messaging/core/exceptions.py
from typing import Any


class AppError(Exception):
    def __init__(self, message: str, *, status_code: int = 400, details: Any = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.details = details


class ValidationError(AppError):
    """Entrada inválida; `details` traz os erros por campo."""

    def __init__(self, message: str = "Validation failed", *, details: Any = None) -> None:
        super().__init__(message, status_code=400, details=details)

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationError":
        return cls(message, details=[{"field": field, "message": message}])


class InvalidOperationError(AppError):
    def __init__(self, message: str = "Invalid operation") -> None:
        super().__init__(message, status_code=400)


class UnauthorizedError(AppError):
    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message, status_code=401)


class ForbiddenError(AppError):
    def __init__(self, message: str = "Forbidden") -> None:
        super().__init__(message, status_code=403)


class NotFoundError(AppError):
    def __init__(self, message: str = "Resource not found") -> None:
        super().__init__(message, status_code=404)


class PayloadTooLargeError(AppError):
    def __init__(self, message: str = "Payload too large") -> None:
        super().__init__(message, status_code=413)


class UnsupportedMediaTypeError(AppError):
    def __init__(self, message: str = "Unsupported media type") -> None:
        super().__init__(message, status_code=415)


class ServerError(AppError):
    def __init__(self, message: str = "Internal server error") -> None:
        super().__init__(message, status_code=500)
