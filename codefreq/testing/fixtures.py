"""
Pytest fixtures for codefreq testing.

Provides the mock GitHub API, signers and sample data used across tests.
"""

from collections.abc import Generator
from datetime import datetime, timezone
from typing import Any

import pytest

from codefreq.signers import RsaSigner
from codefreq.testing.mock import DEFAULT_ORG, MockGitHub
from codefreq.types.repos import RepoDescriptor
from codefreq.types.stats import SummaryRecord, WeeklyDelta

WEEK = 7 * 24 * 60 * 60


# ============================================================================
# Mock API Fixtures
# ============================================================================


@pytest.fixture
def mock_github() -> Generator[MockGitHub, None, None]:
    """
    Provide an empty MockGitHub for the default organization.

    Example:
        ```python
        def test_listing(mock_github):
            mock_github.add_repo("hello", weeks=[[0, 1, -1]])
            ...
        ```
    """
    github = MockGitHub(org=DEFAULT_ORG)
    yield github
    github.reset()


@pytest.fixture
def mock_org() -> str:
    """Provide the organization known to mock_github."""
    return DEFAULT_ORG


# ============================================================================
# Signer Fixtures
# ============================================================================


@pytest.fixture(scope="session")
def rsa_signer() -> RsaSigner:
    """Provide a generated RSA signer (generated once per session)."""
    return RsaSigner.generate()


# ============================================================================
# Sample Data Fixtures
# ============================================================================


@pytest.fixture
def sample_repo() -> RepoDescriptor:
    """Provide a sample RepoDescriptor."""
    return create_repo_descriptor()


@pytest.fixture
def sample_series() -> list[WeeklyDelta]:
    """Provide six weeks of code frequency starting at the epoch."""
    return create_series([(100, -20), (50, -10), (0, 0), (7, -7), (30, -1), (12, -4)])


@pytest.fixture
def sample_records() -> list[SummaryRecord]:
    """Provide summary records with ties and a missing primary language."""
    return [
        create_summary_record("alpha", window_additions=10, primary_language="Python"),
        create_summary_record("beta", window_additions=30, primary_language=None),
        create_summary_record("gamma", window_additions=10, primary_language="go"),
        create_summary_record("delta", window_additions=20, primary_language="Rust"),
    ]


# ============================================================================
# Helper Functions
# ============================================================================


def create_repo_descriptor(name: str = "hello-world", **kwargs: Any) -> RepoDescriptor:
    """
    Create a RepoDescriptor with customizable fields.

    Args:
        name: Repository name
        **kwargs: Additional fields to override

    Returns:
        RepoDescriptor object
    """
    defaults: dict[str, Any] = {
        "created_at": datetime(2020, 1, 15, 10, 30, tzinfo=timezone.utc),
        "primary_language": "Python",
        "languages": ("Python", "Shell"),
    }
    defaults.update(kwargs)
    return RepoDescriptor(name=name, **defaults)


def create_series(
    changes: list[tuple[int, int]], start: int = 0, step: int = WEEK
) -> list[WeeklyDelta]:
    """Build consecutive weekly deltas from (additions, deletions) pairs."""
    return [
        WeeklyDelta(start + index * step, additions, deletions)
        for index, (additions, deletions) in enumerate(changes)
    ]


def create_summary_record(repo_name: str = "hello-world", **kwargs: Any) -> SummaryRecord:
    """
    Create a SummaryRecord with customizable fields.

    Args:
        repo_name: Repository name
        **kwargs: Additional fields to override

    Returns:
        SummaryRecord object
    """
    defaults: dict[str, Any] = {
        "created_date": "2020-01-15",
        "primary_language": "Python",
        "all_languages": ("Python", "Shell"),
        "window_additions": 0,
        "window_deletions": 0,
        "all_time_additions": 0,
        "all_time_deletions": 0,
    }
    defaults.update(kwargs)
    return SummaryRecord(repo_name=repo_name, **defaults)


__all__ = [
    # Fixtures (exported for documentation, actual fixtures are auto-discovered)
    "mock_github",
    "mock_org",
    "rsa_signer",
    "sample_repo",
    "sample_series",
    "sample_records",
    # Helper functions
    "create_repo_descriptor",
    "create_series",
    "create_summary_record",
    "WEEK",
]
