#!/usr/bin/env python3
"""
Basic codefreq usage example.

Builds a report for an in-memory organization, so no token or network
access is needed.
Run with: python examples/basic_usage.py
"""

import asyncio
from datetime import datetime, timezone

from codefreq import CodeFreqError, ConfigurationError, ReportConfig, run_report
from codefreq.report import parse_csv
from codefreq.testing import MockGitHub

print("=== codefreq Basic Usage Example ===\n")

# 1. Exception hierarchy
print("1. Testing exception classes...")
try:
    ReportConfig(org="octo-org").validate()
except CodeFreqError as e:
    assert isinstance(e, ConfigurationError)
    print(f"   Caught CodeFreqError: {e}")
    print(f"   Code: {e.code}, Message: {e.message}")

print("\n   OK: Exception classes working\n")

# 2. A mock organization
print("2. Setting up a mock organization...")
github = MockGitHub(org="octo-org")
github.add_repo("api", weeks=[[0, 120, -30], [604800, 40, -12]], primary_language="Go", languages=["Go"])
github.add_repo("web", weeks=[[0, 10, -2], [604800, 75, -20]], primary_language="TypeScript", pending=2)
github.add_repo("empty")
print("   Repositories: api, web (stats still computing), empty\n")

# 3. Run the report
print("3. Running a one week report...")
config = ReportConfig(
    org="octo-org",
    token="ghp_example",
    weeks="1",
    report_repository="octo-org/reports",
).validate()


async def main():
    async with github.client() as client:
        return await run_report(
            config,
            client,
            now=datetime(2024, 5, 1, tzinfo=timezone.utc),
            poll_config=github.poll_config(),
        )


result = asyncio.run(main())
print(f"   Report path: {result.path}")
print(f"   Committed: {result.commit.sha if result.commit else 'no'}")
print(f"   Skipped: {[skipped.name for skipped in result.aggregation.skipped]}")

for row in parse_csv(result.content):
    print(f"   {row['Repository']}: +{row['Lines added (<1 weeks)']} -{row['Lines deleted (<1 weeks)']}")

print("\n   OK: Report built and committed\n")
