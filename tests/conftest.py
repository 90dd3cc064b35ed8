"""Shared fixtures for the codefreq test suite."""

from codefreq.testing.conftest import (  # noqa: F401
    mock_github,
    mock_org,
    rsa_signer,
    sample_records,
    sample_repo,
    sample_series,
)
