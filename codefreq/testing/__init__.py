"""codefreq testing utilities.

Provides an in-memory GitHub API and fixtures for testing the report pipeline.
"""

from codefreq.testing.fixtures import (
    create_repo_descriptor,
    create_series,
    create_summary_record,
)
from codefreq.testing.mock import MockCall, MockFailure, MockGitHub, MockStats

__all__ = [
    # Mock API
    "MockGitHub",
    "MockCall",
    "MockStats",
    "MockFailure",
    # Helper functions
    "create_repo_descriptor",
    "create_series",
    "create_summary_record",
]
