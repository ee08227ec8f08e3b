from __future__ import annotations


class MessagingError(Exception):
    """Base exception for conversation and message operations."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class BadRequestError(MessagingError):
    status_code = 400


class UnauthorizedError(MessagingError):
    status_code = 401


class ForbiddenError(MessagingError):
    status_code = 403


class NotFoundError(MessagingError):
    status_code = 404
