"""Custom exceptions for the recording-to-report pipeline."""

from typing import Optional


class InvalidPayloadError(Exception):
    """Raised when an audio payload is absent, empty or of an unsupported type."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Invalid audio payload: {reason}")


class ServiceError(Exception):
    """Raised when a speech or text-generation call returns a non-success response."""

    def __init__(
        self,
        detail: str,
        status_code: Optional[int] = None,
        cause: Optional[Exception] = None,
    ):
        self.detail = detail
        self.status_code = status_code
        self.cause = cause
        super().__init__(detail)

    @property
    def status_text(self) -> str:
        return self.detail


class ConfigurationError(Exception):
    """Raised at construction time when a required setting is missing or invalid."""

    def __init__(self, setting: str, reason: str = "is not configured"):
        self.setting = setting
        self.reason = reason
        super().__init__(f"{setting} {reason}")
