"""codefreq type definitions.

This module exports all data model types used by the report pipeline.
"""

from codefreq.types.repos import CommitResult, RepoDescriptor
from codefreq.types.stats import (
    AggregationResult,
    FrequencyTotals,
    SkippedRepo,
    StatsResponse,
    SummaryRecord,
    WeeklyDelta,
    Window,
)

__all__ = [
    # Repository types
    "RepoDescriptor",
    "CommitResult",
    # Code frequency types
    "WeeklyDelta",
    "FrequencyTotals",
    "StatsResponse",
    "Window",
    "SummaryRecord",
    "SkippedRepo",
    "AggregationResult",
]
