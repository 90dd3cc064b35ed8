import argparse
import asyncio
import logging
import sys
from collections.abc import Mapping
from pathlib import Path

from codefreq.client import AsyncGitHubClient
from codefreq.config import SORT_ORDERS, ReportConfig
from codefreq.exceptions import CodeFreqError
from codefreq.logging import configure_logging, mask_sensitive_data
from codefreq.runner import RunResult, run_report


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="codefreq",
        description="Report lines added and deleted per repository of a GitHub organization, as CSV.",
        epilog="Options default to GitHub Actions inputs (INPUT_*) and GITHUB_* environment variables.",
    )
    p.add_argument("--org", type=str, default=None, help="Organization to report on.")
    p.add_argument("--weeks", type=str, default=None, help="Report the last N weeks (default 4).")
    p.add_argument("--from-date", type=str, default=None, help="Range start, YYYY-MM-DD (requires --to-date).")
    p.add_argument("--to-date", type=str, default=None, help="Range end, YYYY-MM-DD, inclusive (requires --from-date).")
    p.add_argument("--sort", type=str, default=None, help="Column to sort by (default: additions).")
    p.add_argument("--sort-order", type=str.lower, choices=SORT_ORDERS, default=None, help="Sort direction (default: desc).")
    p.add_argument("--repository", type=str, default=None, help="owner/repo receiving the report (default: GITHUB_REPOSITORY).")
    p.add_argument("--branch", type=str, default=None, help="Branch receiving the report (default: the default branch).")
    p.add_argument("--committer-name", type=str, default=None, help="Commit author name.")
    p.add_argument("--committer-email", type=str, default=None, help="Commit author email.")
    p.add_argument("--concurrency", type=int, default=None, help="Repositories fetched in parallel (default 8).")
    p.add_argument("--output", type=Path, default=None, help="Also write the CSV to this local path.")
    p.add_argument("--dry-run", action="store_true", help="Build the report without committing it.")
    p.add_argument("-v", "--verbose", action="store_true", help="Log every API request.")
    return p


def _build_client(config: ReportConfig) -> AsyncGitHubClient:
    return AsyncGitHubClient.from_config(config)


async def _run(config: ReportConfig) -> RunResult:
    async with _build_client(config) as client:
        return await run_report(config, client)


def main(argv: list[str] | None = None, environ: Mapping[str, str] | None = None) -> int:
    if argv is None:
        argv = sys.argv[1:]

    args = _build_parser().parse_args(argv)
    configure_logging(
        level=logging.INFO,
        http_level=logging.DEBUG if args.verbose else logging.WARNING,
    )

    try:
        config = ReportConfig.from_env(environ).with_overrides(
            org=args.org,
            weeks=args.weeks,
            from_date=args.from_date,
            to_date=args.to_date,
            sort=args.sort,
            sort_order=args.sort_order,
            report_repository=args.repository,
            branch=args.branch,
            committer_name=args.committer_name,
            committer_email=args.committer_email,
            max_concurrency=args.concurrency,
            output=args.output,
            dry_run=args.dry_run or None,
        ).validate()
        result = asyncio.run(_run(config))
    except CodeFreqError as e:
        print(f"error: {mask_sensitive_data(e.message)}", file=sys.stderr)
        return 1

    if config.dry_run and config.output is None:
        sys.stdout.write(result.content.decode("utf-8"))

    skipped = len(result.aggregation.skipped)
    if result.commit is not None:
        print(f"Committed {result.commit.path} ({len(result.aggregation.records)} repositories, {skipped} skipped)")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
