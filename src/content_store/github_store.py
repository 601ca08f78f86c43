"""ContentStore backed by the GitHub repository contents API.

This module wraps the GitHub REST contents endpoints with a requests session
and translates HTTP failures into the typed exception hierarchy. It
integrates the retry logic: rate limits are retried with backoff on every
call, other transient failures are retried once on reads only.

Endpoints used:
    GET    /repos/{owner}/{repo}/contents/{path}?ref={branch}
    PUT    /repos/{owner}/{repo}/contents/{path}
    DELETE /repos/{owner}/{repo}/contents/{path}
    GET    /repos/{owner}/{repo}/git/blobs/{sha}   (files above the inline limit)
"""

import base64
import logging
import re
import time
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests
from requests.exceptions import ConnectionError, Timeout

from .auth import Authenticator
from .base import Content, ContentStore, to_bytes
from .errors import (
    ConflictError,
    ContentStoreError,
    ExpectedDirectoryError,
    InvalidCredentialsError,
    NotFoundError,
    RateLimitError,
    TransientError,
    UnsupportedOperationError,
)
from .models import Blob, EntryKind, StoreEntry
from .paths import normalize_path
from .retry_logic import retry_on_rate_limit, retry_once_on_transient

logger = logging.getLogger(__name__)

API_VERSION = "2022-11-28"

_ENTRY_KINDS = {
    "file": EntryKind.FILE,
    "dir": EntryKind.DIRECTORY,
}


class GitHubContentStore(ContentStore):
    """ContentStore over one branch of a GitHub repository.

    The store is a thin wrapper that:
    1. Handles authentication using the Authenticator
    2. Encodes/decodes base64 content on the wire
    3. Translates HTTP errors to typed exceptions
    4. Integrates retry logic for rate limits and transient read failures

    Listing order is GitHub's native order (lexical by name).

    Example:
        >>> store = GitHubContentStore(Authenticator(), "octo", "site")
        >>> blob = store.get("posts/hello.md")
        >>> store.put("posts/hello.md", b"Hi", expected_hash=blob.hash)
    """

    def __init__(
        self,
        authenticator: Authenticator,
        owner: str,
        repo: str,
        branch: Optional[str] = None,
        timeout: float = 30,
        session: Optional[requests.Session] = None,
    ):
        """Initialize the store.

        Args:
            authenticator: Authenticator instance for loading credentials
            owner: Repository owner (user or organization)
            repo: Repository name
            branch: Branch to read and commit to (repository default if None)
            timeout: Per-request timeout in seconds
            session: Optional pre-built requests session
        """
        self._authenticator = authenticator
        self.owner = owner
        self.repo = repo
        self.branch = branch
        self.timeout = timeout
        self._session = session
        self._api_url: Optional[str] = None

    def _get_session(self) -> requests.Session:
        """Get or create the HTTP session, validating credentials on first use.

        Raises:
            InvalidCredentialsError: If credentials are missing
        """
        if self._session is None or self._api_url is None:
            creds = self._authenticator.get_credentials()
            self._api_url = creds.api_url
            if self._session is None:
                self._session = requests.Session()
            self._session.headers.update({
                "Authorization": f"Bearer {creds.token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": API_VERSION,
            })
        return self._session

    def _contents_url(self, path: str) -> str:
        return (
            f"{self._api_url}/repos/{self.owner}/{self.repo}/contents/"
            f"{quote(path, safe='/')}"
        )

    def _sanitize_credentials(self, text: str) -> str:
        """Mask tokens and authorization headers in error text.

        Example:
            >>> store._sanitize_credentials("token ghp_abcdefgh12345678 failed")
            'token ***REDACTED*** failed'
        """
        if not text:
            return text

        sanitized = re.sub(
            r'Authorization:\s*[^\n\r]+',
            'Authorization: ***REDACTED***',
            text,
            flags=re.IGNORECASE
        )
        sanitized = re.sub(
            r'Bearer\s+[^\s\n\r]+',
            'Bearer ***REDACTED***',
            sanitized,
            flags=re.IGNORECASE
        )
        # GitHub token formats: ghp_, gho_, ghu_, ghs_, ghr_, github_pat_
        sanitized = re.sub(
            r'\b(?:gh[pousr]_[A-Za-z0-9]{8,}|github_pat_[A-Za-z0-9_]{8,})\b',
            '***REDACTED***',
            sanitized
        )
        return sanitized

    def _request(
        self,
        method: str,
        path: str,
        url: Optional[str] = None,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> requests.Response:
        """Issue one HTTP request and translate transport-level failures.

        Returns the response for any status that callers interpret
        themselves (2xx, 404, 409, 422). Authentication, rate limit and
        server failures are raised here.
        """
        session = self._get_session()
        target = url or self._contents_url(path)
        logger.debug(f"GitHub API: {method} {target}")

        try:
            response = session.request(
                method, target, params=params, json=json, timeout=self.timeout
            )
        except (Timeout, ConnectionError) as e:
            raise TransientError(
                path, self._sanitize_credentials(f"{type(e).__name__}: {e}")
            ) from e

        status = response.status_code
        if status == 401:
            creds = self._authenticator.get_credentials()
            raise InvalidCredentialsError(user=creds.user, endpoint=creds.api_url)
        if self._is_rate_limited(response):
            raise RateLimitError(path, retry_after=self._retry_after(response))
        if status >= 500:
            raise TransientError(path, f"server error {status}")
        if status == 403:
            raise ContentStoreError(
                f"Access denied for '{path}': {self._error_message(response)}",
                [path],
            )
        return response

    @staticmethod
    def _is_rate_limited(response: requests.Response) -> bool:
        if response.status_code == 429:
            return True
        if response.status_code != 403:
            return False
        if response.headers.get("X-RateLimit-Remaining") == "0":
            return True
        return "rate limit" in response.text.lower()

    @staticmethod
    def _retry_after(response: requests.Response) -> Optional[float]:
        retry_after = response.headers.get("Retry-After")
        if retry_after and retry_after.isdigit():
            return float(retry_after)
        reset = response.headers.get("X-RateLimit-Reset")
        if reset and reset.isdigit():
            return max(0.0, float(reset) - time.time())
        return None

    def _error_message(self, response: requests.Response) -> str:
        try:
            message = response.json().get("message", "")
        except ValueError:
            message = response.text
        return self._sanitize_credentials(str(message))

    def _unexpected(self, response: requests.Response, path: str, operation: str) -> ContentStoreError:
        """Build the error for a status code the operation does not expect."""
        message = self._error_message(response)
        logger.error(
            f"GitHub API operation failed: {operation}({path}) - "
            f"{response.status_code} {message}"
        )
        return ContentStoreError(
            f"GitHub API failure during {operation} of '{path}' "
            f"({response.status_code}: {message})",
            [path],
        )

    def _ref_params(self) -> Optional[Dict[str, Any]]:
        return {"ref": self.branch} if self.branch else None

    def get(self, path: str) -> Blob:
        path = normalize_path(path)

        def _fetch() -> Blob:
            response = self._request("GET", path, params=self._ref_params())
            if response.status_code == 404:
                raise NotFoundError(path)
            if response.status_code != 200:
                raise self._unexpected(response, path, "get")

            data = response.json()
            if isinstance(data, list):
                raise UnsupportedOperationError(path, "get", "path is a directory")
            entry_type = data.get("type")
            if entry_type != "file":
                raise UnsupportedOperationError(path, "get", f"entry is a {entry_type}")

            sha = data["sha"]
            encoding = data.get("encoding")
            if encoding == "base64":
                content = base64.b64decode(data.get("content") or "")
            else:
                # Files above the inline limit come back with encoding "none"
                content = self._fetch_git_blob(path, sha)
            return Blob(path=path, content=content, hash=sha)

        return retry_on_rate_limit(retry_once_on_transient, _fetch)

    def _fetch_git_blob(self, path: str, sha: str) -> bytes:
        url = f"{self._api_url}/repos/{self.owner}/{self.repo}/git/blobs/{sha}"
        response = self._request("GET", path, url=url)
        if response.status_code == 404:
            raise NotFoundError(path)
        if response.status_code != 200:
            raise self._unexpected(response, path, "get_blob")
        data = response.json()
        return base64.b64decode(data.get("content") or "")

    def list(self, path: str) -> List[StoreEntry]:
        path = normalize_path(path)

        def _fetch() -> List[StoreEntry]:
            response = self._request("GET", path, params=self._ref_params())
            if response.status_code == 404:
                raise NotFoundError(path)
            if response.status_code != 200:
                raise self._unexpected(response, path, "list")

            data = response.json()
            if not isinstance(data, list):
                if data.get("type") == "file":
                    raise ExpectedDirectoryError(path)
                raise UnsupportedOperationError(
                    path, "list", f"entry is a {data.get('type')}"
                )

            return [
                StoreEntry(
                    name=item["name"],
                    path=item["path"],
                    kind=_ENTRY_KINDS.get(item.get("type"), EntryKind.OPAQUE),
                    hash=item.get("sha"),
                    remote_type=item.get("type"),
                )
                for item in data
            ]

        return retry_on_rate_limit(retry_once_on_transient, _fetch)

    def put(
        self,
        path: str,
        content: Content,
        expected_hash: Optional[str] = None,
        message: Optional[str] = None,
    ) -> str:
        path = normalize_path(path, allow_root=False)
        body: Dict[str, Any] = {
            "message": message or f"Update {path}",
            "content": base64.b64encode(to_bytes(content)).decode("ascii"),
        }
        if expected_hash is not None:
            body["sha"] = expected_hash
        if self.branch:
            body["branch"] = self.branch

        def _put() -> str:
            response = self._request("PUT", path, json=body)
            if response.status_code in (200, 201):
                return response.json()["content"]["sha"]
            if response.status_code == 404:
                raise NotFoundError(path)
            if response.status_code == 409:
                raise ConflictError(path, expected_hash)
            if response.status_code == 422:
                if expected_hash is None:
                    raise ConflictError(
                        path,
                        message=(
                            f"Conflict writing '{path}': file exists and no "
                            f"hash was supplied to replace it"
                        ),
                    )
                raise ConflictError(path, expected_hash)
            raise self._unexpected(response, path, "put")

        new_hash = retry_on_rate_limit(_put)
        logger.debug(f"Committed {path} (hash {new_hash})")
        return new_hash

    def delete(
        self,
        path: str,
        expected_hash: str,
        message: Optional[str] = None,
    ) -> None:
        path = normalize_path(path, allow_root=False)
        body: Dict[str, Any] = {
            "message": message or f"Delete {path}",
            "sha": expected_hash,
        }
        if self.branch:
            body["branch"] = self.branch

        def _delete() -> None:
            response = self._request("DELETE", path, json=body)
            if response.status_code == 200:
                return None
            if response.status_code == 404:
                raise NotFoundError(path)
            if response.status_code in (409, 422):
                raise ConflictError(path, expected_hash)
            raise self._unexpected(response, path, "delete")

        retry_on_rate_limit(_delete)
        logger.debug(f"Deleted {path}")
