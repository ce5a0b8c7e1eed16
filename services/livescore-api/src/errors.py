"""
Error taxonomy for the Livescore API.

ConfigError and UpstreamError are internal: the match service logs them and
re-raises an OperationError so provider details never reach a client.
"""

from typing import Optional


class LivescoreError(Exception):
    """Base class for all service errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigError(LivescoreError):
    """Required configuration (e.g. the provider API key) is missing."""


class UpstreamError(LivescoreError):
    """Provider returned a non-2xx status, a malformed body, or timed out."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        auth_failed: bool = False,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.auth_failed = auth_failed


class ValidationError(LivescoreError):
    """A required request parameter is missing or invalid. Maps to HTTP 400."""


class NotFoundError(LivescoreError):
    """Referenced fixture does not exist. Maps to HTTP 404."""


class OperationError(LivescoreError):
    """Client-facing failure of a query operation. Maps to HTTP 500."""
