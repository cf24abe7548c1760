"""Backend that commits job documents through the GitHub contents API.

Each staged document becomes its own commit (the contents API has no
multi-file commit), so a sync of one job produces exactly one commit.
"""

import base64
from typing import Any, Dict, Optional
from urllib.parse import quote

import requests

from njgit import __version__
from njgit.config.models import GitConfig
from njgit.logging import get_logger

from .exceptions import (
    BackendConfigurationError,
    BackendInitializationError,
    BackendOperationError,
)
from .repository import SHORT_HASH_LENGTH

logger = get_logger(__name__, component="backend")

GITHUB_API_URL = "https://api.github.com"


class GitHubBackend:
    """Stores documents in a GitHub repository without a local clone.

    Blob SHAs seen by ``read_file`` are cached because the contents API
    requires the current SHA to update an existing file.
    """

    def __init__(
        self,
        config: GitConfig,
        timeout: int = 30,
        api_url: str = GITHUB_API_URL,
    ) -> None:
        """Initialize backend.

        Raises:
            BackendConfigurationError: If owner, repo or token is missing
        """
        if not config.owner or not config.repo:
            raise BackendConfigurationError("owner and repo are required for github-api backend")
        if not config.token:
            raise BackendConfigurationError(
                "token is required for github-api backend (set GITHUB_TOKEN or GH_TOKEN)"
            )

        self.owner = config.owner
        self.repo = config.repo
        self.branch = config.branch or "main"
        self.author_name = config.author_name
        self.author_email = config.author_email
        self.timeout = timeout
        self.api_url = api_url.rstrip("/")

        self._session = requests.Session()
        self._session.headers.update(
            {
                "Authorization": f"token {config.token}",
                "Accept": "application/vnd.github.v3+json",
                "User-Agent": f"njgit/{__version__}",
            }
        )
        self._staged: Dict[str, bytes] = {}
        self._shas: Dict[str, str] = {}

    @property
    def name(self) -> str:
        return "github-api"

    @property
    def repository_url(self) -> str:
        return f"{self.api_url}/repos/{self.owner}/{self.repo}"

    def _contents_url(self, path: str) -> str:
        return f"{self.repository_url}/contents/{quote(path)}"

    def initialize(self) -> None:
        """Verify the token and that the repository exists.

        Raises:
            BackendInitializationError: On authentication failure, missing repository
                or any other API error
        """
        try:
            response = self._request("GET", self.repository_url)
        except BackendOperationError as e:
            raise BackendInitializationError(f"Failed to connect to GitHub API: {e}") from e

        if response.status_code == 401:
            raise BackendInitializationError("GitHub authentication failed: invalid token")
        if response.status_code == 404:
            raise BackendInitializationError(
                f"GitHub repository not found: {self.owner}/{self.repo}"
            )
        if response.status_code != 200:
            raise BackendInitializationError(
                f"GitHub API error: status {response.status_code}"
            )

        logger.debug(
            "GitHub backend initialized",
            extra={"event": "backend.initialized", "repository": f"{self.owner}/{self.repo}"},
        )

    def file_exists(self, path: str) -> bool:
        response = self._request("GET", self._contents_url(path), params={"ref": self.branch})
        if response.status_code == 404:
            return False
        if response.status_code == 200:
            self._remember_sha(path, response)
            return True
        raise BackendOperationError(f"GitHub API error: status {response.status_code}")

    def read_file(self, path: str) -> bytes:
        """Fetch and decode a file, caching its blob SHA.

        Raises:
            BackendOperationError: If the file does not exist or the API call fails
        """
        response = self._request("GET", self._contents_url(path), params={"ref": self.branch})
        if response.status_code == 404:
            raise BackendOperationError(f"file not found: {path}")
        if response.status_code >= 400:
            raise BackendOperationError(f"GitHub API error: {_error_message(response)}")

        data = self._json(response)
        self._remember_sha(path, response, data)
        try:
            return base64.b64decode(data.get("content") or "")
        except ValueError as e:
            raise BackendOperationError(f"Failed to decode content of {path}: {e}") from e

    def write_file(self, path: str, content: bytes) -> None:
        path = path.strip()
        if path.startswith("./"):
            path = path[2:]
        if not path:
            raise BackendOperationError("file path cannot be empty")
        self._staged[path] = content

    def commit(self, message: str) -> str:
        """Create one commit per staged file, in path order.

        The staged set is cleared even when a commit fails, so a failed
        document is never carried into the next commit.

        Returns:
            Short SHA of the last commit created, or "" if nothing was staged
        """
        if not self._staged:
            return ""

        staged, self._staged = self._staged, {}
        commit_sha = ""
        for path in sorted(staged):
            sha = self._shas.get(path)
            if not sha and self.file_exists(path):
                sha = self._shas.get(path)

            body: Dict[str, Any] = {
                "message": message,
                "content": base64.b64encode(staged[path]).decode("ascii"),
                "branch": self.branch,
            }
            if sha:
                body["sha"] = sha
            if self.author_name and self.author_email:
                body["committer"] = {"name": self.author_name, "email": self.author_email}

            response = self._request("PUT", self._contents_url(path), json=body)
            if response.status_code >= 400:
                # A stale blob SHA is refetched on the next attempt
                self._shas.pop(path, None)
                raise BackendOperationError(
                    f"Failed to commit {path}: {_error_message(response)}"
                )

            data = self._json(response)
            content_sha = (data.get("content") or {}).get("sha")
            if content_sha:
                self._shas[path] = content_sha
            commit_sha = (data.get("commit") or {}).get("sha") or commit_sha

            logger.info(
                f"Committed {path} via GitHub API",
                extra={
                    "event": "backend.commit.created",
                    "commit_id": commit_sha[:SHORT_HASH_LENGTH],
                    "path": path,
                },
            )

        return commit_sha[:SHORT_HASH_LENGTH]

    def push(self) -> None:
        """Commits made through the API are already on the remote."""

    def close(self) -> None:
        self._staged.clear()
        self._session.close()

    def _remember_sha(
        self, path: str, response: requests.Response, data: Optional[Dict[str, Any]] = None
    ) -> None:
        if data is None:
            try:
                data = response.json()
            except ValueError:
                return
        if isinstance(data, dict) and data.get("sha"):
            self._shas[path] = data["sha"]

    def _request(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        logger.debug(
            f"HTTP {method} request to {url}",
            extra={"event": "github.request", "method": method, "url": url},
        )
        try:
            return self._session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.exceptions.RequestException as e:
            logger.warning(
                f"GitHub request to {url} failed: {e}",
                extra={"event": "github.request.failed", "error_type": type(e).__name__},
            )
            raise BackendOperationError(f"GitHub request failed: {e}") from e

    @staticmethod
    def _json(response: requests.Response) -> Dict[str, Any]:
        try:
            data = response.json()
        except ValueError as e:
            raise BackendOperationError(f"Failed to parse GitHub response: {e}") from e
        if not isinstance(data, dict):
            raise BackendOperationError("Unexpected GitHub response: expected an object")
        return data


def _error_message(response: requests.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        data = None
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return f"status {response.status_code}"
