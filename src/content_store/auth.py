"""Authentication module for loading GitHub credentials.

This module handles loading the GitHub API token from environment variables
using python-dotenv. It validates that the token is present and raises an
appropriate error if it is missing.
"""

import os
from typing import NamedTuple, Optional

from dotenv import load_dotenv

from .errors import InvalidCredentialsError

DEFAULT_API_URL = "https://api.github.com"


class Credentials(NamedTuple):
    """GitHub API credentials."""
    api_url: str
    user: str
    token: str


class Authenticator:
    """Loads and validates GitHub credentials from environment variables.

    Credentials are loaded from a .env file using python-dotenv and are never
    cached or logged to prevent security risks.

    Environment variables:
        GITHUB_TOKEN: Personal access token (required; GITHUB_PAT is accepted
            as a fallback)
        GITHUB_USER: Optional user name, used only in error messages
        GITHUB_API_URL: Optional API base URL (GitHub Enterprise)

    Raises:
        InvalidCredentialsError: If the token is missing

    Example:
        >>> auth = Authenticator()
        >>> creds = auth.get_credentials()
        >>> print(f"Connecting to {creds.api_url}")
    """

    def __init__(self, api_url: Optional[str] = None):
        """Initialize the authenticator by loading environment variables from .env file.

        Args:
            api_url: API base URL overriding GITHUB_API_URL
        """
        load_dotenv()
        self._api_url = api_url

    def get_credentials(self) -> Credentials:
        """Get GitHub credentials from environment variables.

        Returns:
            Credentials: A named tuple containing api_url, user and token

        Raises:
            InvalidCredentialsError: If the token is missing
        """
        api_url = self._api_url or os.getenv('GITHUB_API_URL') or DEFAULT_API_URL
        user = os.getenv('GITHUB_USER') or "unknown"
        token = os.getenv('GITHUB_TOKEN') or os.getenv('GITHUB_PAT')

        if not token:
            raise InvalidCredentialsError(user=user, endpoint=api_url)

        return Credentials(api_url=api_url.rstrip('/'), user=user, token=token)
