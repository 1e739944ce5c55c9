"""Domain errors raised by service objects and mapped to HTTP in app.main."""

from fastapi import status


class AppError(Exception):
    """Base class for errors that carry a client-facing message."""

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class NotFoundError(AppError):
    """Entity is missing, or belongs to another company (indistinguishable on purpose)."""

    status_code = status.HTTP_404_NOT_FOUND


class ForbiddenError(AppError):
    status_code = status.HTTP_403_FORBIDDEN


class BadRequestError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST


class ConflictError(BadRequestError):
    """A scheduled interval overlaps an existing one."""


class UnauthorizedError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
