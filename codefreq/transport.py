"""
Async HTTP transport for the GitHub API.

Handles HTTP communication with automatic retry logic, authentication headers
and error handling using the httpx async client.
"""

import asyncio
import random
import time
from collections.abc import Callable, Coroutine
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import httpx

from codefreq.exceptions import (
    AuthError,
    AuthorizationError,
    CodeFreqError,
    ConflictError,
    GraphQLError,
    NotFoundError,
    RateLimitError,
    TransientFetchError,
    ValidationError,
)
from codefreq.logging import get_logger, log_http_request, log_http_response

if TYPE_CHECKING:
    from codefreq.auth import Authenticator

logger = get_logger("http")

DEFAULT_API_URL = "https://api.github.com"
USER_AGENT = "codefreq-report"


@dataclass
class RetryConfig:
    """Configuration for automatic retry behavior."""

    max_retries: int = 3
    backoff_factor: float = 2.0
    retry_on: list[int] = field(default_factory=lambda: [429, 500, 502, 503, 504])
    respect_retry_after: bool = True
    rate_limit_backoff: float = 180.0  # Backoff unit for rate-limited responses
    max_backoff: float = 900.0  # Maximum backoff time in seconds
    jitter: float = 0.1  # Jitter factor (0.1 = ±10%)


class AsyncHTTPTransport:
    """
    Async HTTP transport layer for the GitHub REST and GraphQL APIs.

    Handles:
    - Authentication headers from a pluggable Authenticator
    - Exponential backoff with jitter for retries
    - Retry-After / x-ratelimit-reset respect for rate limiting
    - Error response parsing into typed exceptions
    """

    def __init__(
        self,
        authenticator: "Authenticator",
        base_url: str = DEFAULT_API_URL,
        timeout: float = 30.0,
        retry_config: RetryConfig | None = None,
        http_transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize async HTTP transport.

        Args:
            authenticator: Strategy providing the Authorization header
            base_url: Base URL for API requests (e.g., "https://api.github.com")
            timeout: Request timeout in seconds
            retry_config: Configuration for retry behavior
            http_transport: Optional httpx transport (used to stub the network in tests)
        """
        self.base_url = base_url.rstrip("/")
        self.authenticator = authenticator
        self.timeout = timeout
        self.retry_config = retry_config or RetryConfig()

        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            headers={
                "Accept": "application/vnd.github+json",
                "User-Agent": USER_AGENT,
                "X-GitHub-Api-Version": "2022-11-28",
            },
            transport=http_transport,
        )

    @property
    def http_client(self) -> httpx.AsyncClient:
        """The underlying httpx client (shared with the authenticator)."""
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> "AsyncHTTPTransport":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        body: dict[str, Any] | None = None,
    ) -> httpx.Response:
        """
        Make an authenticated request with automatic retry.

        Successful responses (including 202 and 204) are returned as-is so
        callers can branch on the status code.

        Args:
            method: HTTP method
            path: API path (e.g., "/repos/octo/hello/stats/code_frequency")
            params: Query parameters
            body: JSON request body (for POST/PUT)

        Returns:
            The final httpx response

        Raises:
            CodeFreqError: On API errors
        """
        async def make_request() -> httpx.Response:
            headers = await self.authenticator.auth_headers(self._client)
            log_http_request(method, path, headers=headers, body=body)
            started = time.monotonic()
            response = await self._client.request(
                method, path, params=params, json=body, headers=headers
            )
            log_http_response(
                response.status_code,
                path,
                elapsed_ms=(time.monotonic() - started) * 1000,
                request_id=response.headers.get("X-GitHub-Request-Id"),
            )
            return response

        return await self._execute_with_retry(make_request)

    async def request_json(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        body: dict[str, Any] | None = None,
    ) -> Any:
        """Make a request and return the parsed JSON body (None when empty)."""
        response = await self.request(method, path, params=params, body=body)
        if not response.content:
            return None
        return response.json()

    async def graphql(self, query: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        """
        Execute a GraphQL query.

        GraphQL reports rate limiting in a 200 response with a RATE_LIMITED
        error; those are retried with the rate-limit backoff like REST 429s.

        Args:
            query: GraphQL document
            variables: Query variables

        Returns:
            The "data" member of the response

        Raises:
            NotFoundError: When GraphQL reports a NOT_FOUND error
            RateLimitError: When still rate limited after max_retries
            GraphQLError: On any other GraphQL error
        """
        body = {"query": query, "variables": variables or {}}
        for attempt in range(self.retry_config.max_retries + 1):
            payload = await self.request_json("POST", "/graphql", body=body)
            try:
                return self._graphql_data(payload)
            except RateLimitError:
                if not self._should_retry(200, attempt, rate_limited=True):
                    raise
                wait_time = self._get_backoff_time(attempt, None, rate_limited=True)
                logger.warning(
                    "GraphQL quota exhausted, retrying after %.0f seconds (attempt %d/%d)",
                    wait_time, attempt + 1, self.retry_config.max_retries,
                )
                await asyncio.sleep(wait_time)

        raise TransientFetchError("UNKNOWN_ERROR", "GraphQL request failed with no error details")

    def _graphql_data(self, payload: Any) -> dict[str, Any]:
        """Extract "data" from a GraphQL payload, raising on reported errors."""
        if not isinstance(payload, dict):
            raise GraphQLError("INVALID_RESPONSE", "GraphQL response is not an object")

        errors = payload.get("errors") or []
        if errors:
            first = errors[0]
            error_type = first.get("type", "GRAPHQL_ERROR")
            message = "; ".join(e.get("message", "unknown error") for e in errors)
            if error_type == "NOT_FOUND":
                raise NotFoundError(error_type, message)
            if error_type == "RATE_LIMITED":
                raise RateLimitError(
                    "RATE_LIMITED", message, int(self.retry_config.rate_limit_backoff)
                )
            raise GraphQLError(error_type, message)

        data = payload.get("data")
        if not isinstance(data, dict):
            raise GraphQLError("INVALID_RESPONSE", "GraphQL response has no data")
        return data

    async def _execute_with_retry(
        self, request_fn: Callable[[], Coroutine[Any, Any, httpx.Response]]
    ) -> httpx.Response:
        """
        Execute a request with automatic retry on retryable errors.

        Args:
            request_fn: Async function that makes the HTTP request

        Returns:
            Successful httpx response

        Raises:
            CodeFreqError: On non-retryable errors or after max retries
        """
        last_error: Exception | None = None

        for attempt in range(self.retry_config.max_retries + 1):
            try:
                response = await request_fn()
            except httpx.RequestError as e:
                # Network errors are retryable
                if attempt >= self.retry_config.max_retries:
                    raise TransientFetchError("CONNECTION_ERROR", str(e)) from e

                last_error = e
                wait_time = self._get_backoff_time(attempt, None)
                logger.warning(
                    "Network error (%s), retrying in %.1fs (attempt %d/%d)",
                    e, wait_time, attempt + 1, self.retry_config.max_retries,
                )
                await asyncio.sleep(wait_time)
                continue

            if response.status_code < 400:
                return response

            error = self._parse_error_response(response)
            rate_limited = isinstance(error, RateLimitError)

            if not self._should_retry(response.status_code, attempt, rate_limited):
                raise error

            last_error = error
            retry_after = self._retry_after_header(response)
            wait_time = self._get_backoff_time(attempt, retry_after, rate_limited)
            if rate_limited:
                logger.warning(
                    "Request quota exhausted for %s %s, retrying after %.0f seconds",
                    response.request.method, response.request.url.path, wait_time,
                )
            else:
                logger.warning(
                    "HTTP %d for %s %s, retrying in %.1fs (attempt %d/%d)",
                    response.status_code, response.request.method,
                    response.request.url.path, wait_time,
                    attempt + 1, self.retry_config.max_retries,
                )
            await asyncio.sleep(wait_time)

        # Should not reach here, but just in case
        if last_error:
            if isinstance(last_error, CodeFreqError):
                raise last_error
            raise TransientFetchError("MAX_RETRIES_EXCEEDED", str(last_error))

        raise TransientFetchError("UNKNOWN_ERROR", "Request failed with no error details")

    def _should_retry(self, status_code: int, attempt: int, rate_limited: bool = False) -> bool:
        """
        Determine if a request should be retried.

        Args:
            status_code: HTTP status code
            attempt: Current attempt number (0-indexed)
            rate_limited: Whether the response carried rate-limit signals

        Returns:
            True if the request should be retried
        """
        if attempt >= self.retry_config.max_retries:
            return False

        return rate_limited or status_code in self.retry_config.retry_on

    def _retry_after_header(self, response: httpx.Response) -> str | None:
        """Return the wait hint from Retry-After or x-ratelimit-reset."""
        retry_after = response.headers.get("Retry-After")
        if retry_after:
            return retry_after

        if response.headers.get("x-ratelimit-remaining") == "0":
            reset = response.headers.get("x-ratelimit-reset")
            try:
                return str(max(int(reset) - int(time.time()), 0))
            except (TypeError, ValueError):
                return None
        return None

    def _get_backoff_time(
        self, attempt: int, retry_after: str | None, rate_limited: bool = False
    ) -> float:
        """
        Calculate backoff time for retry.

        Uses exponential backoff with jitter, respecting Retry-After header
        if present. Rate-limited responses back off in units of
        `rate_limit_backoff` seconds.

        Args:
            attempt: Current attempt number (0-indexed)
            retry_after: Value of Retry-After header (if present)
            rate_limited: Whether the response was rate limited

        Returns:
            Time to wait in seconds
        """
        if retry_after and self.retry_config.respect_retry_after:
            try:
                return min(float(retry_after), self.retry_config.max_backoff)
            except ValueError:
                pass  # Fall through to exponential backoff

        unit = self.retry_config.rate_limit_backoff if rate_limited else 1.0
        base_wait = unit * self.retry_config.backoff_factor ** attempt

        jitter_range = base_wait * self.retry_config.jitter
        jitter = random.uniform(-jitter_range, jitter_range)
        wait_time = base_wait + jitter

        return min(wait_time, self.retry_config.max_backoff)

    @staticmethod
    def _is_rate_limited(response: httpx.Response, message: str) -> bool:
        """GitHub signals primary and secondary rate limits with 403 as well as 429."""
        if response.status_code == 429:
            return True
        if response.status_code != 403:
            return False
        if response.headers.get("x-ratelimit-remaining") == "0":
            return True
        if response.headers.get("Retry-After"):
            return True
        lowered = message.lower()
        return "rate limit" in lowered or "abuse" in lowered

    def _parse_error_response(self, response: httpx.Response) -> CodeFreqError:
        """
        Parse an error response into a typed exception.

        Args:
            response: HTTP response with error status

        Returns:
            Appropriate CodeFreqError subclass
        """
        try:
            data = response.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}

        message = data.get("message") or f"HTTP {response.status_code}"
        request_id = response.headers.get("X-GitHub-Request-Id")
        status_code = response.status_code
        code = f"HTTP_{status_code}"

        if self._is_rate_limited(response, message):
            retry_after_str = self._retry_after_header(response) or "60"
            try:
                retry_after = int(float(retry_after_str))
            except ValueError:
                retry_after = 60
            return RateLimitError("RATE_LIMITED", message, retry_after, request_id)
        elif status_code == 401:
            return AuthError(code, message, request_id)
        elif status_code == 403:
            return AuthorizationError(code, message, request_id)
        elif status_code == 404:
            return NotFoundError(code, message, request_id)
        elif status_code == 409:
            return ConflictError(code, message, request_id)
        elif status_code >= 500:
            return TransientFetchError(code, message, request_id)
        else:
            return ValidationError(code, message, request_id)
