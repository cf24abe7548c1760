"""Custom exceptions for the Nomad API client."""


class NomadError(Exception):
    """Base exception for all Nomad client errors.

    Catching this handles any failure talking to Nomad. The sync pipeline treats
    it as a per-job failure, except during the initial connectivity check where
    it aborts the run.
    """

    pass


class NomadHTTPError(NomadError):
    """HTTP request failed with a 4xx or 5xx status (or could not be sent)."""

    def __init__(self, message: str, status_code: int, url: str) -> None:
        """Initialize HTTP error with status code and URL.

        Args:
            message: Human-readable error message
            status_code: HTTP status code (0 when no response was received)
            url: URL that failed
        """
        super().__init__(message)
        self.status_code = status_code
        self.url = url


class NomadTimeoutError(NomadError):
    """HTTP request timed out."""

    def __init__(self, message: str, url: str) -> None:
        super().__init__(message)
        self.url = url


class NomadResponseError(NomadError):
    """Response body could not be parsed or validated."""

    pass


class JobNotFoundError(NomadError):
    """The requested job does not exist in the given namespace.

    This is an expected condition during sync: the job is skipped with a
    warning rather than counted as an error.
    """

    def __init__(self, job_name: str, namespace: str) -> None:
        super().__init__(f"job {job_name!r} not found in namespace {namespace!r}")
        self.job_name = job_name
        self.namespace = namespace
