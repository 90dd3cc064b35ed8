"""
Async GitHub client.

Aggregates the resource clients the report pipeline needs behind one
authenticated transport.
"""

from typing import Any

import httpx

from codefreq.auth import Authenticator
from codefreq.clients import ContentsClient, ReposClient, StatsClient
from codefreq.config import ReportConfig
from codefreq.transport import DEFAULT_API_URL, AsyncHTTPTransport, RetryConfig


class AsyncGitHubClient:
    """
    Async client for the parts of the GitHub API used by the report.

    The transport is shared read-only by every concurrent call.

    Example:
        ```python
        import asyncio
        from codefreq import AsyncGitHubClient, TokenAuth

        async def main():
            async with AsyncGitHubClient(TokenAuth("ghp_...")) as client:
                repos = await client.repos.list_for_org("octo-org")

        asyncio.run(main())
        ```
    """

    DEFAULT_TIMEOUT = 30.0

    def __init__(
        self,
        authenticator: Authenticator,
        base_url: str = DEFAULT_API_URL,
        timeout: float = DEFAULT_TIMEOUT,
        retry_config: RetryConfig | None = None,
        http_transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            authenticator: Token or GitHub App authentication strategy
            base_url: Base URL for API requests (default: https://api.github.com)
            timeout: Request timeout in seconds (default: 30.0)
            retry_config: Configuration for retry behavior (optional)
            http_transport: httpx transport override, used by tests (optional)
        """
        self._transport = AsyncHTTPTransport(
            authenticator=authenticator,
            base_url=base_url,
            timeout=timeout,
            retry_config=retry_config,
            http_transport=http_transport,
        )

        self.repos = ReposClient(self._transport)
        self.stats = StatsClient(self._transport)
        self.contents = ContentsClient(self._transport)

    @classmethod
    def from_config(
        cls,
        config: ReportConfig,
        timeout: float = DEFAULT_TIMEOUT,
        retry_config: RetryConfig | None = None,
        http_transport: httpx.AsyncBaseTransport | None = None,
    ) -> "AsyncGitHubClient":
        """
        Create a client from a run configuration.

        Raises:
            ConfigurationError: If the credentials cannot be loaded
        """
        return cls(
            authenticator=config.authenticator(),
            base_url=config.api_url,
            timeout=timeout,
            retry_config=retry_config,
            http_transport=http_transport,
        )

    @property
    def transport(self) -> AsyncHTTPTransport:
        """Get the underlying async HTTP transport (for advanced use cases)."""
        return self._transport

    async def close(self) -> None:
        """Close the client and release resources."""
        await self._transport.close()

    async def __aenter__(self) -> "AsyncGitHubClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()
