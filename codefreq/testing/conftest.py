"""
Pytest plugin for codefreq testing fixtures.

This module re-exports all fixtures from fixtures.py so they can be
discovered by pytest. To use them, add this to your conftest.py:

    pytest_plugins = ["codefreq.testing.conftest"]

Or import the fixtures directly:

    from codefreq.testing.fixtures import mock_github, rsa_signer
"""

# Re-export all fixtures for pytest auto-discovery
from codefreq.testing.fixtures import (
    mock_github,
    mock_org,
    rsa_signer,
    sample_records,
    sample_repo,
    sample_series,
)

__all__ = [
    "mock_github",
    "mock_org",
    "rsa_signer",
    "sample_repo",
    "sample_series",
    "sample_records",
]
