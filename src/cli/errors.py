"""Typed exception hierarchy for CLI-related errors.

This module defines all custom exceptions used by the CLI.
All exceptions inherit from CLIError base class for easy catching and
include descriptive messages with context to help with debugging.
"""

from typing import Optional

from src.content_store.errors import ContentSyncError


class CLIError(ContentSyncError):
    """Base exception for all CLI-related errors."""
    pass


class ConfigError(CLIError):
    """Raised when configuration is invalid or malformed."""

    kind = "InvalidConfig"

    def __init__(self, message: str, config_field: Optional[str] = None):
        if config_field:
            full_message = f"Configuration error in field '{config_field}': {message}"
        else:
            full_message = f"Configuration error: {message}"
        super().__init__(full_message)
        self.config_field = config_field
        self.original_message = message


class ConfigNotFoundError(ConfigError):
    """Raised when configuration file is not found."""

    def __init__(self, config_path: str):
        super().__init__(
            f"Configuration file not found at {config_path} "
            f"(set GITHUB_OWNER and GITHUB_REPO or create the file)"
        )
        self.config_path = config_path


class FilesystemError(CLIError):
    """Raised when a local file cannot be read or written."""

    def __init__(self, file_path: str, operation: str, reason: Optional[str] = None):
        message = f"Filesystem operation '{operation}' failed for {file_path}"
        if reason:
            message += f": {reason}"
        super().__init__(message, [file_path])
        self.file_path = file_path
        self.operation = operation
        self.reason = reason


class InvalidArgumentError(CLIError):
    """Raised when a command-line argument cannot be parsed."""

    kind = "InvalidArgument"

    def __init__(self, argument: str, reason: str):
        super().__init__(f"Invalid argument '{argument}': {reason}")
        self.argument = argument
        self.reason = reason
