"""Data models for CLI operations.

This module defines all data models used by the CLI module.
All models use dataclasses for clean, type-safe data structures,
following the patterns established in the other packages.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Optional


class ExitCode(IntEnum):
    """Exit codes for CLI operations.

    - SUCCESS (0): Operation completed successfully
    - GENERAL_ERROR (1): General error (config issues, unexpected failures)
    - CONFLICT (2): The remote file changed since it was read
    - AUTH_ERROR (3): Authentication or authorization failure
    - NETWORK_ERROR (4): Network, timeout, 5xx or rate-limit failure
    - NOT_FOUND (5): The requested path does not exist
    - PARTIAL_FAILURE (6): Some entries of a recursive operation failed
    - INVALID_INPUT (7): Malformed path, argument or frontmatter

    Example:
        >>> exit_code = ExitCode.SUCCESS
        >>> sys.exit(exit_code)
    """
    SUCCESS = 0
    GENERAL_ERROR = 1
    CONFLICT = 2
    AUTH_ERROR = 3
    NETWORK_ERROR = 4
    NOT_FOUND = 5
    PARTIAL_FAILURE = 6
    INVALID_INPUT = 7


@dataclass
class RepositoryConfig:
    """Repository settings loaded from .github-cms/config.yaml.

    Attributes:
        owner: Repository owner (user or organization)
        repo: Repository name
        branch: Branch to read and commit to (None = default branch)
        api_url: GitHub REST API base URL
        root_path: Directory inside the repository that holds the content
        placeholder_name: File name of the marker blob for empty folders
        max_workers: Parallel workers for recursive move/delete
        timeout: HTTP timeout in seconds

    Example:
        >>> config = RepositoryConfig(owner="octo", repo="site", root_path="content")
    """
    owner: str
    repo: str
    branch: Optional[str] = None
    api_url: str = "https://api.github.com"
    root_path: str = ""
    placeholder_name: str = ".placeholder"
    max_workers: int = 1
    timeout: float = 30
