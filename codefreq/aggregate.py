"""
Code frequency aggregation.

Turns each repository's weekly additions/deletions series into window and
all-time totals. The window is chosen once per run and applied to every
repository.
"""

import asyncio
import re
from collections.abc import Iterable, Sequence
from datetime import date

from codefreq.clients.stats import StatsClient, StatsPollConfig
from codefreq.exceptions import AuthError, AuthorizationError, CodeFreqError
from codefreq.logging import get_logger
from codefreq.types.repos import RepoDescriptor
from codefreq.types.stats import (
    AggregationResult,
    FrequencyTotals,
    SkippedRepo,
    SummaryRecord,
    WeeklyDelta,
    Window,
)

logger = get_logger("aggregate")

DEFAULT_WEEKS = 4
_DATE_RE = re.compile(r"^[0-9]{4}-[0-9]{2}-[0-9]{2}$")


def _parse_date(value: str | None) -> date | None:
    if not value or not _DATE_RE.match(value.strip()):
        return None
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        return None


def _parse_weeks(value: str | int | None) -> int:
    if isinstance(value, bool):
        return DEFAULT_WEEKS
    if isinstance(value, int):
        weeks = value
    else:
        try:
            weeks = int(str(value).strip())
        except (TypeError, ValueError):
            if value not in (None, ""):
                logger.warning("Ignoring non-integer weeks value %r, using %d", value, DEFAULT_WEEKS)
            return DEFAULT_WEEKS
    if weeks < 1:
        logger.warning("Ignoring non-positive weeks value %r, using %d", value, DEFAULT_WEEKS)
        return DEFAULT_WEEKS
    return weeks


def select_window(
    weeks: str | int | None = None,
    from_date: str | None = None,
    to_date: str | None = None,
) -> Window:
    """
    Decide the reporting window for a run.

    A date range is used when both dates are given as valid YYYY-MM-DD
    values; otherwise the last `weeks` weeks (default 4). Bad input falls
    back to the default rather than failing.
    """
    start = _parse_date(from_date)
    end = _parse_date(to_date)
    if start is not None and end is not None:
        if start > end:
            logger.warning("Date range %s to %s is empty", start, end)
        return Window(weeks=_parse_weeks(weeks), from_date=start, to_date=end)

    if from_date or to_date:
        logger.warning(
            "Ignoring date range %r to %r: both dates are required as YYYY-MM-DD",
            from_date, to_date,
        )
    return Window(weeks=_parse_weeks(weeks))


def reduce_weeks(deltas: Iterable[WeeklyDelta]) -> FrequencyTotals:
    """Sum additions and deletions; deletions come back as a positive magnitude."""
    additions = 0
    deletions = 0
    for delta in deltas:
        additions += delta.additions
        deletions += delta.deletions
    return FrequencyTotals(additions=additions, deletions=abs(deletions))


def summarize(
    repo: RepoDescriptor, series: Sequence[WeeklyDelta], window: Window
) -> SummaryRecord | None:
    """Reduce one repository's series; None when there is nothing to report."""
    if not series:
        return None

    in_window = reduce_weeks(window.select(series))
    all_time = reduce_weeks(series)
    return SummaryRecord(
        repo_name=repo.name,
        created_date=repo.created_date,
        primary_language=repo.primary_language,
        all_languages=repo.languages,
        window_additions=in_window.additions,
        window_deletions=in_window.deletions,
        all_time_additions=all_time.additions,
        all_time_deletions=all_time.deletions,
    )


class FrequencyAggregator:
    """Fetches and reduces code frequency for every repository of an organization."""

    def __init__(
        self,
        stats: StatsClient,
        owner: str,
        poll_config: StatsPollConfig | None = None,
        max_concurrency: int = 8,
    ) -> None:
        """
        Initialize the aggregator.

        Args:
            stats: Stats client used to fetch the series
            owner: Organization owning the repositories
            poll_config: Bounds for waiting on GitHub to compute statistics
            max_concurrency: Repositories fetched in parallel
        """
        self.stats = stats
        self.owner = owner
        self.poll_config = poll_config or StatsPollConfig()
        self.max_concurrency = max_concurrency

    async def aggregate(self, repo: RepoDescriptor, window: Window) -> SummaryRecord | None:
        """
        Summarize a single repository.

        Returns:
            SummaryRecord, or None when the repository has no history

        Raises:
            CodeFreqError: If the series cannot be fetched
        """
        series = await self.stats.wait_for_code_frequency(
            self.owner, repo.name, self.poll_config
        )
        record = summarize(repo, series, window)
        if record is not None:
            logger.info(
                "Repository: %s | Lines added (%s): %d | Lines deleted (%s): %d | "
                "Lines added (all time): %d | Lines deleted (all time): %d | "
                "Primary language: %s | Languages: %s | Date created: %s",
                record.repo_name,
                window.description, record.window_additions,
                window.description, record.window_deletions,
                record.all_time_additions, record.all_time_deletions,
                record.primary_language or "-",
                ", ".join(record.all_languages) or "-",
                record.created_date,
            )
        return record

    async def aggregate_all(
        self, repos: Sequence[RepoDescriptor], window: Window
    ) -> AggregationResult:
        """
        Summarize every repository concurrently.

        Each repository is fetched in its own task; results are merged in the
        order of `repos` once all tasks finish. A repository that fails is
        logged and skipped. Invalid credentials (401) abort the run and cancel
        the fetches still in flight; a 403 on one repository only skips it.

        Returns:
            AggregationResult carrying the records, the skipped repositories and the window
        """
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def run_one(repo: RepoDescriptor) -> SummaryRecord | SkippedRepo:
            async with semaphore:
                try:
                    record = await self.aggregate(repo, window)
                except CodeFreqError as e:
                    if isinstance(e, AuthError) and not isinstance(e, AuthorizationError):
                        raise
                    logger.warning("Skipping %s/%s: %s", self.owner, repo.name, e)
                    return SkippedRepo(repo.name, "error", str(e))
            if record is None:
                logger.info("Skipping %s/%s: no code frequency data", self.owner, repo.name)
                return SkippedRepo(repo.name, "empty")
            return record

        logger.info(
            "Retrieving repository code frequency data for the %s organization (%s)",
            self.owner, window.description,
        )
        tasks = [asyncio.ensure_future(run_one(repo)) for repo in repos]
        try:
            outcomes = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        result = AggregationResult(window=window)
        for outcome in outcomes:
            if isinstance(outcome, SummaryRecord):
                result.records.append(outcome)
            else:
                result.skipped.append(outcome)

        logger.info(
            "Aggregated %d repositories (%d skipped)", len(result.records), len(result.skipped)
        )
        return result
