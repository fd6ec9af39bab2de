"""Errors raised by the Google Reader client."""

from typing import Optional


class GoogleReaderError(Exception):
    """Base exception for Google Reader API errors."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class AuthError(GoogleReaderError):
    """Credentials were rejected or the session/write token is no longer valid."""


class NetworkError(GoogleReaderError):
    """The server could not be reached or the request timed out."""


class ApiError(GoogleReaderError):
    """Non-2xx response that is not an authentication failure."""

    def __init__(self, status: int, body: str):
        self.status = status
        self.body = body
        super().__init__(f"HTTP {status}: {body[:200]}", status)
