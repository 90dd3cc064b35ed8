"""
Report pipeline.

Enumerate repositories, aggregate their code frequency, build the CSV and
commit it to the reporting repository.
"""

from dataclasses import dataclass
from datetime import datetime, timezone

from codefreq.aggregate import FrequencyAggregator, select_window
from codefreq.client import AsyncGitHubClient
from codefreq.clients.stats import StatsPollConfig
from codefreq.config import ReportConfig
from codefreq.logging import get_logger
from codefreq.report import build_csv, commit_message, report_path, resolve_sort_key
from codefreq.types.repos import CommitResult
from codefreq.types.stats import AggregationResult

logger = get_logger("runner")


@dataclass
class RunResult:
    """What a run produced."""

    org: str
    path: str
    content: bytes
    aggregation: AggregationResult
    commit: CommitResult | None = None


async def run_report(
    config: ReportConfig,
    client: AsyncGitHubClient,
    now: datetime | None = None,
    poll_config: StatsPollConfig | None = None,
) -> RunResult:
    """
    Run the whole report once.

    Enumeration and commit errors propagate; per-repository errors are
    logged and the repository skipped.

    Args:
        config: Validated run configuration
        client: Authenticated GitHub client
        now: Timestamp for the report path and commit message (default: now, UTC)
        poll_config: Bounds for waiting on statistics (optional)

    Returns:
        RunResult with the report path and content, and the commit when one was made
    """
    now = now or datetime.now(timezone.utc)
    org = config.org or ""
    window = select_window(config.weeks, config.from_date, config.to_date)
    # Fail on a bad sort column before any API traffic
    resolve_sort_key(config.sort)

    repos = await client.repos.list_for_org(org)

    aggregator = FrequencyAggregator(
        client.stats, org, poll_config=poll_config, max_concurrency=config.max_concurrency
    )
    aggregation = await aggregator.aggregate_all(repos, window)

    content = build_csv(
        aggregation.records, config.sort, config.sort_order, aggregation.window.label
    )
    path = report_path(org, aggregation.window, now)
    result = RunResult(org=org, path=path, content=content, aggregation=aggregation)

    if config.output is not None:
        config.output.parent.mkdir(parents=True, exist_ok=True)
        config.output.write_bytes(content)
        logger.info("Wrote CSV report to %s", config.output)

    if config.dry_run:
        logger.info("Dry run: not committing %s", path)
        return result

    owner, repo = config.report_owner_and_name()
    logger.info("Pushing final CSV report to repository path: %s", path)
    result.commit = await client.contents.create_or_update_file(
        owner,
        repo,
        path,
        content,
        message=commit_message(now),
        committer_name=config.committer_name,
        committer_email=config.committer_email,
        branch=config.branch,
    )
    return result
