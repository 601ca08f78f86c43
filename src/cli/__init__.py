"""Command-line interface for editing GitHub-hosted content.

This package provides the `github-cms` CLI tool: Typer commands over the
content API, Rich terminal output, YAML configuration loading and the exit
codes reported to the shell.
"""

from .config import ConfigLoader
from .models import ExitCode, RepositoryConfig
from .errors import (
    CLIError,
    ConfigError,
    ConfigNotFoundError,
    FilesystemError,
    InvalidArgumentError,
)

__all__ = [
    'ConfigLoader',
    'ExitCode',
    'RepositoryConfig',
    'CLIError',
    'ConfigError',
    'ConfigNotFoundError',
    'FilesystemError',
    'InvalidArgumentError',
]
