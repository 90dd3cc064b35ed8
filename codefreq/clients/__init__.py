"""codefreq resource clients.

This module exports the resource-specific clients used by AsyncGitHubClient.
"""

from codefreq.clients.contents import ContentsClient
from codefreq.clients.repos import ReposClient
from codefreq.clients.stats import StatsClient, StatsPollConfig

__all__ = [
    "ContentsClient",
    "ReposClient",
    "StatsClient",
    "StatsPollConfig",
]
