"""codefreq exception classes."""


class CodeFreqError(Exception):
    """Base exception for all codefreq errors."""

    def __init__(
        self, code: str, message: str, request_id: str | None = None
    ) -> None:
        self.code = code
        self.message = message
        self.request_id = request_id
        super().__init__(f"[{code}] {message}")


class ConfigurationError(CodeFreqError):
    """Raised when run configuration is invalid or missing."""

    def __init__(self, message: str) -> None:
        super().__init__("CONFIGURATION_ERROR", message)


class AuthError(CodeFreqError):
    """Raised when credentials are missing, invalid or cannot be exchanged."""

    pass


class AuthorizationError(AuthError):
    """Raised when the credentials are valid but access is denied."""

    pass


class NotFoundError(CodeFreqError):
    """Raised when a resource is not found."""

    pass


class ConflictError(CodeFreqError):
    """Raised on conflicting writes."""

    pass


class CommitConflictError(ConflictError):
    """Raised when the report file cannot be committed due to a conflict."""

    pass


class RateLimitError(CodeFreqError):
    """Raised when rate limited and retries are exhausted."""

    def __init__(
        self,
        code: str,
        message: str,
        retry_after: int,
        request_id: str | None = None,
    ) -> None:
        super().__init__(code, message, request_id)
        self.retry_after = retry_after


class TransientFetchError(CodeFreqError):
    """Raised on server errors (5xx) and network failures."""

    pass


class ValidationError(CodeFreqError):
    """Raised on other client errors (4xx)."""

    pass


class GraphQLError(CodeFreqError):
    """Raised when a GraphQL response carries errors or is malformed."""

    pass


class StatsNotReadyError(CodeFreqError):
    """Raised when code frequency stats are still being computed after all polls."""

    def __init__(self, repo: str, attempts: int) -> None:
        super().__init__(
            "STATS_NOT_READY",
            f"Code frequency for {repo} still computing after {attempts} attempts",
        )
        self.repo = repo
        self.attempts = attempts
