"""HTTP client for the Nomad API.

Only the handful of endpoints njgit needs are wrapped:
- GET  /v1/agent/self    connectivity check
- GET  /v1/job/<name>    fetch a job specification
- POST /v1/jobs/parse    convert an HCL document to JSON (used by deploy)
- POST /v1/jobs          register a job (used by deploy)
"""

import logging
from typing import Any, Dict, Optional
from urllib.parse import quote

import requests
from pydantic import ValidationError

from njgit import __version__
from njgit.domain.models import JobSpecification
from njgit.logging import get_logger

from .auth import NomadAuth
from .exceptions import (
    JobNotFoundError,
    NomadError,
    NomadHTTPError,
    NomadResponseError,
    NomadTimeoutError,
)

logger = get_logger(__name__, component="nomad")

DEFAULT_USER_AGENT = f"njgit/{__version__}"


class NomadClient:
    """Thin synchronous client for the Nomad HTTP API.

    A single ``requests.Session`` is shared across calls so connections are
    reused for the whole sync run. Retries are deliberately not performed;
    the next scheduled run is the retry unit.

    Attributes:
        address: Base URL of the Nomad agent (no trailing slash)
        timeout: HTTP request timeout in seconds
    """

    def __init__(
        self,
        address: str,
        token: Optional[str] = None,
        ca_cert: Optional[str] = None,
        tls_skip_verify: bool = False,
        timeout: int = 30,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        """Initialize client.

        Args:
            address: Nomad address, e.g. ``http://127.0.0.1:4646``
            token: ACL token sent as ``X-Nomad-Token``
            ca_cert: Path to a CA bundle for TLS verification
            tls_skip_verify: Disable TLS certificate verification
            timeout: Request timeout in seconds (5-300)
            user_agent: User-Agent header

        Raises:
            NomadError: If the address or timeout is invalid
        """
        if not address or not address.startswith(("http://", "https://")):
            raise NomadError(f"Nomad address must start with http:// or https://, got: {address}")
        if not 5 <= timeout <= 300:
            raise NomadError(f"Timeout must be between 5 and 300 seconds, got: {timeout}")

        self.address = address.rstrip("/")
        self.timeout = timeout

        self._session = requests.Session()
        self._session.headers.update({"User-Agent": user_agent})
        if token:
            self._session.headers["X-Nomad-Token"] = token

        if tls_skip_verify:
            self._session.verify = False
        elif ca_cert:
            self._session.verify = ca_cert

    @classmethod
    def from_auth(cls, auth: NomadAuth, timeout: int = 30) -> "NomadClient":
        """Create a client from resolved connection settings."""
        return cls(
            address=auth.address,
            token=auth.token,
            ca_cert=auth.ca_cert,
            tls_skip_verify=auth.tls_skip_verify,
            timeout=timeout,
        )

    def ping(self) -> Dict[str, Any]:
        """Check that the Nomad agent is reachable and the token is accepted.

        Returns:
            Agent self-description

        Raises:
            NomadError: If the agent cannot be reached or rejects the request
        """
        return self._make_request("/v1/agent/self")

    def fetch_job_spec(self, namespace: str, name: str) -> JobSpecification:
        """Fetch the current specification of a job.

        Args:
            namespace: Nomad namespace
            name: Job name

        Returns:
            JobSpecification parsed from the API response

        Raises:
            JobNotFoundError: If the job does not exist in the namespace
            NomadError: On any other failure
        """
        try:
            data = self._make_request(
                f"/v1/job/{quote(name, safe='')}",
                params={"namespace": namespace},
            )
        except NomadHTTPError as e:
            if e.status_code == 404:
                raise JobNotFoundError(name, namespace) from e
            raise

        if not isinstance(data, dict):
            raise NomadResponseError(
                f"Unexpected response for job {name!r}: expected an object, got {type(data).__name__}"
            )

        try:
            return JobSpecification.model_validate(data)
        except ValidationError as e:
            raise NomadResponseError(f"Invalid job specification for {name!r}: {e}") from e

    def parse_hcl(self, hcl: str) -> Dict[str, Any]:
        """Convert an HCL job document to its JSON form using Nomad's parser.

        Args:
            hcl: Job document text

        Returns:
            Job as a JSON-compatible dict (not canonicalized)

        Raises:
            NomadError: If the document is empty or Nomad rejects it
        """
        if not hcl or not hcl.strip():
            raise NomadError("HCL content is empty")

        data = self._make_request(
            "/v1/jobs/parse",
            method="POST",
            json_data={"JobHCL": hcl, "Canonicalize": False},
        )
        if not isinstance(data, dict):
            raise NomadResponseError("Unexpected response from /v1/jobs/parse")
        return data

    def register_job(self, job: Dict[str, Any]) -> str:
        """Register (create or update) a job.

        Args:
            job: Job in the JSON form returned by parse_hcl()

        Returns:
            Evaluation ID created by the registration (may be empty)
        """
        params = {"namespace": job["Namespace"]} if job.get("Namespace") else None
        data = self._make_request(
            "/v1/jobs",
            method="POST",
            params=params,
            json_data={"Job": job},
        )
        if not isinstance(data, dict):
            raise NomadResponseError("Unexpected response from /v1/jobs")
        return data.get("EvalID") or ""

    def close(self) -> None:
        """Close the underlying HTTP session."""
        self._session.close()

    def __enter__(self) -> "NomadClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def _make_request(
        self,
        path: str,
        method: str = "GET",
        params: Optional[Dict[str, str]] = None,
        json_data: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Make an HTTP request to the Nomad API with error handling.

        Args:
            path: API path starting with ``/v1/``
            method: HTTP method (default "GET")
            params: Query parameters
            json_data: JSON body for POST requests

        Returns:
            Parsed JSON response

        Raises:
            NomadHTTPError: On 4xx/5xx status or connection failure
            NomadTimeoutError: On request timeout
            NomadResponseError: On invalid JSON
        """
        url = f"{self.address}{path}"

        try:
            logger.debug(
                f"HTTP {method} request to {url}",
                extra={"event": "nomad.request", "method": method, "url": url},
            )

            response = self._session.request(
                method=method,
                url=url,
                params=params,
                json=json_data,
                timeout=self.timeout,
            )

            if response.status_code >= 400:
                if response.status_code == 404:
                    log_level = logging.DEBUG
                elif response.status_code >= 500:
                    log_level = logging.WARNING
                else:
                    log_level = logging.ERROR

                body = (response.text or "").strip()
                logger.log(
                    log_level,
                    f"HTTP {response.status_code} error from {url}",
                    extra={
                        "event": "nomad.request.failed",
                        "status_code": response.status_code,
                        "url": url,
                    },
                )

                detail = f": {body[:200]}" if body else ""
                raise NomadHTTPError(
                    f"HTTP {response.status_code} {response.reason}{detail}",
                    status_code=response.status_code,
                    url=url,
                )

            try:
                return response.json()
            except ValueError as e:
                logger.error(
                    f"Failed to parse JSON response from {url}",
                    extra={"event": "nomad.request.failed", "error_type": "JSONDecodeError", "url": url},
                )
                raise NomadResponseError(f"Failed to parse JSON response from {url}: {e}") from e

        except requests.exceptions.Timeout as e:
            logger.warning(
                f"Request to {url} timed out after {self.timeout} seconds",
                extra={"event": "nomad.request.failed", "error_type": "Timeout", "url": url},
            )
            raise NomadTimeoutError(
                f"Request to {url} timed out after {self.timeout} seconds",
                url=url,
            ) from e
        except requests.exceptions.RequestException as e:
            logger.error(
                f"Request to {url} failed: {e}",
                extra={"event": "nomad.request.failed", "error_type": type(e).__name__, "url": url},
            )
            raise NomadHTTPError(f"Request to {url} failed: {e}", status_code=0, url=url) from e
