"""Custom exceptions for protosdk."""

from typing import Optional


class ProtosdkError(Exception):
    """Base exception for all protosdk operations."""


class ConfigurationError(ProtosdkError):
    """Raised when configuration validation fails."""


class ValidationError(ProtosdkError):
    """Raised when a generation request is rejected before any tool runs."""


class ToolExecutionError(ProtosdkError):
    """Raised when an external compiler or build tool fails."""

    def __init__(
        self,
        message: str,
        command: Optional[str] = None,
        returncode: Optional[int] = None,
        stderr: str = "",
    ) -> None:
        super().__init__(message)
        self.command = command
        self.returncode = returncode
        self.stderr = stderr


class CommandTimeoutError(ToolExecutionError):
    """Raised when an external command exceeds its deadline."""


class CommandCancelledError(ToolExecutionError):
    """Raised when an external command is cancelled by the caller."""


class GenerationIOError(ProtosdkError):
    """Raised when discovery, copy or template materialization hits the filesystem and fails."""


class GeneratorNotFoundError(ProtosdkError):
    """Raised when no generator is registered for, or applies to, a request."""
