"""Repository statistics resource client."""

import asyncio
from dataclasses import dataclass
from typing import TYPE_CHECKING

from codefreq.exceptions import StatsNotReadyError, ValidationError
from codefreq.logging import get_logger
from codefreq.types.stats import StatsResponse, WeeklyDelta

if TYPE_CHECKING:
    from codefreq.transport import AsyncHTTPTransport

logger = get_logger("stats")


@dataclass
class StatsPollConfig:
    """How long to wait for GitHub to finish computing statistics."""

    max_attempts: int = 10
    interval: float = 3.0
    backoff_factor: float = 1.5
    max_interval: float = 30.0

    def delay(self, attempt: int) -> float:
        """Seconds to sleep after the given (0-indexed) not-ready attempt."""
        return min(self.interval * self.backoff_factor ** attempt, self.max_interval)


class StatsClient:
    """Client for the repository statistics endpoints."""

    def __init__(self, transport: "AsyncHTTPTransport") -> None:
        """
        Initialize the stats client.

        Args:
            transport: Async HTTP transport for making requests
        """
        self.transport = transport

    async def code_frequency(self, owner: str, repo: str) -> StatsResponse:
        """
        Fetch the weekly additions/deletions series once.

        GitHub computes these statistics lazily: the first request for a
        repository usually answers 202 with no data.

        Args:
            owner: Repository owner
            repo: Repository name

        Returns:
            StatsResponse; `ready` is False while GitHub is still computing
        """
        response = await self.transport.request(
            "GET", f"/repos/{owner}/{repo}/stats/code_frequency"
        )

        if response.status_code == 202:
            return StatsResponse(ready=False, status_code=202)

        if response.status_code == 204 or not response.content:
            return StatsResponse(ready=True, status_code=response.status_code)

        try:
            data = response.json()
        except ValueError as e:
            raise ValidationError(
                "INVALID_RESPONSE",
                f"Code frequency payload for {owner}/{repo} is not JSON: {e}",
            ) from e

        if not isinstance(data, list):
            # Empty repositories answer with an empty object
            if data:
                raise ValidationError(
                    "INVALID_RESPONSE",
                    f"Unexpected code frequency payload for {owner}/{repo}",
                )
            data = []

        try:
            weeks = sorted(
                (WeeklyDelta.from_triple(triple) for triple in data),
                key=lambda delta: delta.week_start,
            )
        except (TypeError, ValueError) as e:
            raise ValidationError(
                "INVALID_RESPONSE",
                f"Malformed code frequency week for {owner}/{repo}: {e}",
            ) from e
        return StatsResponse(ready=True, weeks=weeks, status_code=response.status_code)

    async def wait_for_code_frequency(
        self,
        owner: str,
        repo: str,
        poll_config: StatsPollConfig | None = None,
    ) -> list[WeeklyDelta]:
        """
        Poll the code frequency endpoint until the series is ready.

        Args:
            owner: Repository owner
            repo: Repository name
            poll_config: Polling bounds (defaults to StatsPollConfig())

        Returns:
            Weekly deltas ordered by week start (possibly empty)

        Raises:
            StatsNotReadyError: If the series is still computing after max_attempts
        """
        config = poll_config or StatsPollConfig()

        for attempt in range(config.max_attempts):
            stats = await self.code_frequency(owner, repo)
            if stats.ready:
                return stats.weeks

            if attempt + 1 < config.max_attempts:
                delay = config.delay(attempt)
                logger.debug(
                    "Code frequency for %s/%s not ready, polling again in %.1fs",
                    owner, repo, delay,
                )
                await asyncio.sleep(delay)

        raise StatsNotReadyError(f"{owner}/{repo}", config.max_attempts)
