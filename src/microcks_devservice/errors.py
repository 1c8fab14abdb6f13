"""Error handling module for microcks-devservice.

This module defines error codes and exception classes.

Propagation policy:
- Start failures (image, container start, readiness timeout) halt the caller.
- Import, scan and stop failures are logged and never propagate out of the
  lifecycle manager.

Usage:
    from microcks_devservice.errors import DevServiceStartError

    raise DevServiceStartError("Container exited before becoming ready")
"""

from enum import Enum

from pydantic import BaseModel


class ErrorCode(str, Enum):
    """Error codes."""

    START_FAILED = "START_FAILED"
    STARTUP_TIMEOUT = "STARTUP_TIMEOUT"
    IMPORT_FAILED = "IMPORT_FAILED"
    SCAN_FAILED = "SCAN_FAILED"


class ErrorDetail(BaseModel):
    """Error detail containing code and message."""

    code: str
    message: str


class DevServiceError(Exception):
    """Base exception for microcks-devservice.

    Attributes:
        code: The error code from ErrorCode enum
        message: Human-readable error message
    """

    def __init__(self, code: ErrorCode, message: str) -> None:
        self.code = code
        self.message = message
        super().__init__(message)

    def to_detail(self) -> ErrorDetail:
        """Convert exception to ErrorDetail model."""
        return ErrorDetail(code=self.code.value, message=self.message)


class DevServiceStartError(DevServiceError):
    """The dev service could not be started."""

    def __init__(
        self,
        message: str = "Failed to start Microcks dev service",
        code: ErrorCode = ErrorCode.START_FAILED,
    ) -> None:
        super().__init__(code, message)


class StartupTimeoutError(DevServiceStartError):
    """The container did not become ready within the startup timeout."""

    def __init__(self, timeout: float, message: str | None = None) -> None:
        self.timeout = timeout
        super().__init__(
            message or f"Microcks container not ready after {timeout:.0f}s",
            ErrorCode.STARTUP_TIMEOUT,
        )


class ArtifactImportError(DevServiceError):
    """An artifact was rejected by the Microcks instance."""

    def __init__(self, path: str, message: str = "Artifact import failed") -> None:
        self.path = path
        super().__init__(ErrorCode.IMPORT_FAILED, f"{message}: {path}")


class ArtifactScanError(DevServiceError):
    """A resource directory could not be walked."""

    def __init__(self, message: str = "Artifact scan failed") -> None:
        super().__init__(ErrorCode.SCAN_FAILED, message)
