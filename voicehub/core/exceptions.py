"""Error taxonomy shared by the store, the lifecycle controller and the API."""
from __future__ import annotations


class VoiceHubError(Exception):
    """Base exception for all call hub errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class DuplicateKeyError(VoiceHubError):
    """Raised when a call with the same correlation id already exists."""


class NotFoundError(VoiceHubError):
    """Raised when a record addressed by key does not exist."""


class ValidationError(VoiceHubError):
    """Raised for malformed query API requests."""


class UpstreamGatewayError(VoiceHubError):
    """Raised when the voice provider rejects a request or cannot be reached."""

    def __init__(self, message: str, status_code: int | None = None, body: str | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class PersistenceError(VoiceHubError):
    """Raised when a write could not be committed to the database."""
