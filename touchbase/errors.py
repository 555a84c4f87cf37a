"""
Error taxonomy for Touchbase.

Every failure that can reach an HTTP boundary is a TouchbaseError carrying
the status code it should be reported with. The API layer converts these
into the uniform ``{"success": false, "error": ..., "details": ...}`` body.
"""

from typing import Any


class TouchbaseError(Exception):
    """Base class for all Touchbase failures."""

    status_code: int = 500

    def __init__(self, message: str, details: Any = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_response(self) -> dict[str, Any]:
        body: dict[str, Any] = {"success": False, "error": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class ValidationError(TouchbaseError):
    """Bad or missing input."""

    status_code = 400

    def __init__(
        self,
        message: str,
        details: Any = None,
        field_errors: dict[str, str] | None = None,
    ):
        super().__init__(message, details)
        self.field_errors = field_errors or {}


class InvalidPhoneFormat(ValidationError):
    pass


class UnsupportedFormat(ValidationError):
    """Audio content type is not in the allow-list."""


class PayloadTooLarge(ValidationError):
    """Audio exceeds the upload ceiling."""


class ConfigurationError(TouchbaseError):
    """A required credential or identifier is missing from the environment."""

    status_code = 500


class UpstreamError(TouchbaseError):
    """An external provider answered with a non-success status."""

    status_code = 502

    def __init__(
        self,
        message: str,
        upstream_status: int | None = None,
        body: Any = None,
    ):
        super().__init__(message, details=body)
        self.upstream_status = upstream_status
        self.body = body

    @property
    def passthrough_status(self) -> int:
        """Provider status when it is an error status, otherwise 502."""
        if self.upstream_status is not None and 400 <= self.upstream_status < 600:
            return self.upstream_status
        return 502


class TransportError(TouchbaseError):
    """The request never produced a response (DNS, connect, reset...)."""

    status_code = 502


class Timeout(TransportError):
    status_code = 504


class PermissionDenied(TouchbaseError):
    """The audio input device is unavailable or access was refused."""


class UnsupportedEnvironment(TouchbaseError):
    """No audio capture backend is available on this machine."""


class StepOrderError(TouchbaseError):
    """A wizard step was attempted before the steps it depends on."""

    status_code = 409
