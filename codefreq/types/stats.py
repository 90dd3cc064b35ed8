"""Code frequency data models."""

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date, datetime, timezone


@dataclass(frozen=True)
class WeeklyDelta:
    """One week of a repository's code frequency series."""

    week_start: int  # Unix seconds, start of the week
    additions: int
    deletions: int  # negative magnitude, as reported by GitHub

    @classmethod
    def from_triple(cls, triple: Sequence[int]) -> "WeeklyDelta":
        """Build from a `[weekStart, additions, deletions]` triple."""
        week_start, additions, deletions = triple
        return cls(int(week_start), int(additions), int(deletions))


@dataclass(frozen=True)
class FrequencyTotals:
    """Column-wise sum of a run of weekly deltas."""

    additions: int = 0
    deletions: int = 0  # magnitude, always >= 0


@dataclass
class StatsResponse:
    """One answer from the code frequency endpoint."""

    ready: bool
    weeks: list[WeeklyDelta] = field(default_factory=list)
    status_code: int = 200


def _midnight_utc(day: date) -> int:
    return int(datetime(day.year, day.month, day.day, tzinfo=timezone.utc).timestamp())


@dataclass(frozen=True)
class Window:
    """
    The reporting window applied to every repository of a run.

    Either the last `weeks` entries of a series, or every week starting
    within the inclusive `from_date`..`to_date` range.
    """

    weeks: int = 4
    from_date: date | None = None
    to_date: date | None = None

    @property
    def is_range(self) -> bool:
        return self.from_date is not None and self.to_date is not None

    @property
    def label(self) -> str:
        """Column label, e.g. "<4 weeks" or "2024-01-01 to 2024-03-31"."""
        if self.is_range:
            return f"{self.from_date.isoformat()} to {self.to_date.isoformat()}"
        return f"<{self.weeks} weeks"

    @property
    def file_label(self) -> str:
        """File name fragment, e.g. "4-weeks" or "2024-01-01-to-2024-03-31"."""
        if self.is_range:
            return f"{self.from_date.isoformat()}-to-{self.to_date.isoformat()}"
        return f"{self.weeks}-weeks"

    @property
    def description(self) -> str:
        """Log wording, e.g. "last 4 weeks"."""
        if self.is_range:
            return f"{self.from_date.isoformat()} to {self.to_date.isoformat()}"
        return f"last {self.weeks} weeks"

    def select(self, series: Sequence[WeeklyDelta]) -> list[WeeklyDelta]:
        """Return the deltas of `series` that fall inside this window."""
        if self.is_range:
            start = _midnight_utc(self.from_date)
            end = _midnight_utc(self.to_date)
            return [delta for delta in series if start <= delta.week_start <= end]
        return list(series[-self.weeks:])


@dataclass(frozen=True)
class SummaryRecord:
    """Window and all-time totals for one repository."""

    repo_name: str
    created_date: str
    primary_language: str | None
    all_languages: tuple[str, ...]
    window_additions: int
    window_deletions: int
    all_time_additions: int
    all_time_deletions: int


@dataclass(frozen=True)
class SkippedRepo:
    """A repository left out of the report."""

    name: str
    reason: str  # "empty" or "error"
    detail: str | None = None


@dataclass
class AggregationResult:
    """Everything the report step needs from aggregation."""

    window: Window
    records: list[SummaryRecord] = field(default_factory=list)
    skipped: list[SkippedRepo] = field(default_factory=list)
