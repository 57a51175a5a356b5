"""Application exception types."""

from app.schemas.error import ErrorCode, ErrorResponse


class ApiError(Exception):
    """Structured API error that maps directly to the error envelope."""

    def __init__(self, status_code: int, error: ErrorCode, message: str) -> None:
        self.status_code = status_code
        self.payload = ErrorResponse(error=error, message=message)
        super().__init__(message)


__all__ = ["ApiError"]
