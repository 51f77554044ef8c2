"""Structured errors for garp.

Every failure the CLI reports is a ``GarpError`` carrying its category,
a sysexits-style exit code and optional suggestions for the user.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .deploy.models import DeploymentResult


EXIT_SUCCESS = 0
EXIT_GENERAL_ERROR = 1
EXIT_MISUSE = 2
EXIT_NO_INPUT = 66
EXIT_NO_HOST = 68
EXIT_UNAVAILABLE = 69
EXIT_OS_FILE = 72
EXIT_CONFIG = 78


class ErrorType(str, Enum):
    """Categories of errors surfaced to the user."""

    VALIDATION = "validation"
    FILESYSTEM = "filesystem"
    NETWORK = "network"
    CONFIGURATION = "configuration"
    EXTERNAL = "external"


class GarpError(Exception):
    """Base error with category, exit code and user-facing hints."""

    error_type: ErrorType = ErrorType.VALIDATION
    exit_code: int = EXIT_GENERAL_ERROR

    def __init__(
        self,
        message: str,
        *,
        cause: BaseException | None = None,
        suggestions: list[str] | None = None,
        context: str = "",
        exit_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.suggestions = list(suggestions or [])
        self.context = context
        if exit_code is not None:
            self.exit_code = exit_code

    def __str__(self) -> str:
        if self.cause is not None:
            return f"{self.message}: {self.cause}"
        return self.message


class InputValidationError(GarpError):
    error_type = ErrorType.VALIDATION
    exit_code = EXIT_MISUSE


class ConfigurationError(GarpError):
    error_type = ErrorType.CONFIGURATION
    exit_code = EXIT_CONFIG


class FileSystemError(GarpError):
    error_type = ErrorType.FILESYSTEM
    exit_code = EXIT_OS_FILE


class ExternalDependencyError(GarpError):
    error_type = ErrorType.EXTERNAL
    exit_code = EXIT_UNAVAILABLE


class NetworkError(GarpError):
    error_type = ErrorType.NETWORK
    exit_code = EXIT_NO_HOST


class DeploymentError(GarpError):
    """A deploy attempt failed; ``result`` holds the failed outcome."""

    error_type = ErrorType.EXTERNAL
    exit_code = EXIT_GENERAL_ERROR

    def __init__(
        self,
        message: str,
        result: DeploymentResult,
        **kwargs,
    ) -> None:
        super().__init__(message, **kwargs)
        self.result = result


def format_error(exc: BaseException) -> str:
    """Render an error with its context and suggestions for terminal output."""
    if not isinstance(exc, GarpError):
        return f"Error: {exc}"

    lines = [f"Error ({exc.error_type.value}): {exc}"]
    if exc.context:
        lines.append(f"Context: {exc.context}")
    if exc.suggestions:
        lines.append("Suggestions:")
        lines.extend(f"  - {suggestion}" for suggestion in exc.suggestions)
    return "\n".join(lines)


__all__ = [
    "ErrorType",
    "GarpError",
    "InputValidationError",
    "ConfigurationError",
    "FileSystemError",
    "ExternalDependencyError",
    "NetworkError",
    "DeploymentError",
    "format_error",
    "EXIT_SUCCESS",
    "EXIT_GENERAL_ERROR",
    "EXIT_MISUSE",
    "EXIT_NO_INPUT",
    "EXIT_NO_HOST",
    "EXIT_UNAVAILABLE",
    "EXIT_OS_FILE",
    "EXIT_CONFIG",
]
