"""codefreq - GitHub organization code frequency reports."""

from codefreq.aggregate import FrequencyAggregator, reduce_weeks, select_window, summarize
from codefreq.auth import AppAuth, Authenticator, TokenAuth, encode_app_jwt
from codefreq.client import AsyncGitHubClient
from codefreq.clients.stats import StatsPollConfig
from codefreq.config import ReportConfig
from codefreq.exceptions import (
    AuthError,
    AuthorizationError,
    CodeFreqError,
    CommitConflictError,
    ConfigurationError,
    ConflictError,
    GraphQLError,
    NotFoundError,
    RateLimitError,
    StatsNotReadyError,
    TransientFetchError,
    ValidationError,
)
from codefreq.logging import configure_logging, get_logger
from codefreq.report import build_csv, parse_csv, report_path, sort_records
from codefreq.runner import RunResult, run_report
from codefreq.signers import RsaSigner, Signer
from codefreq.transport import AsyncHTTPTransport, RetryConfig

__version__ = "0.1.0"

__all__ = [
    "__version__",
    # Client
    "AsyncGitHubClient",
    # Authentication
    "Authenticator",
    "TokenAuth",
    "AppAuth",
    "encode_app_jwt",
    "Signer",
    "RsaSigner",
    # Pipeline
    "ReportConfig",
    "FrequencyAggregator",
    "StatsPollConfig",
    "select_window",
    "reduce_weeks",
    "summarize",
    "build_csv",
    "parse_csv",
    "sort_records",
    "report_path",
    "run_report",
    "RunResult",
    # Exceptions
    "CodeFreqError",
    "ConfigurationError",
    "AuthError",
    "AuthorizationError",
    "NotFoundError",
    "ConflictError",
    "CommitConflictError",
    "RateLimitError",
    "TransientFetchError",
    "ValidationError",
    "GraphQLError",
    "StatsNotReadyError",
    # Transport
    "AsyncHTTPTransport",
    "RetryConfig",
    # Logging
    "configure_logging",
    "get_logger",
]
