"""
CSV report building.

Sorts summary records and serializes them with human-readable headers. No
network I/O happens here.
"""

import csv
import io
from collections.abc import Sequence
from datetime import datetime, timezone

from codefreq.exceptions import ConfigurationError
from codefreq.types.stats import SummaryRecord, Window

# CSV column key -> SummaryRecord attribute, in output order
COLUMNS: dict[str, str] = {
    "repoName": "repo_name",
    "additions": "window_additions",
    "deletions": "window_deletions",
    "alltimeAdditions": "all_time_additions",
    "alltimeDeletions": "all_time_deletions",
    "primaryLanguage": "primary_language",
    "allLanguages": "all_languages",
    "createdDate": "created_date",
}

_ATTRIBUTES = {attribute: attribute for attribute in COLUMNS.values()}
_LOWERED = {key.lower(): attribute for key, attribute in {**COLUMNS, **_ATTRIBUTES}.items()}


def column_headers(window_label: str) -> list[str]:
    """Header row, with the window columns labelled by `window_label`."""
    return [
        "Repository",
        f"Lines added ({window_label})",
        f"Lines deleted ({window_label})",
        "All time lines added",
        "All time lines deleted",
        "Primary language",
        "All languages",
        "Repo creation date",
    ]


def resolve_sort_key(sort_key: str) -> str:
    """
    Map a column key ("additions") or attribute name ("window_additions")
    to the SummaryRecord attribute to sort on.

    Raises:
        ConfigurationError: If the key names no column
    """
    attribute = _LOWERED.get(sort_key.strip().lower())
    if attribute is None:
        raise ConfigurationError(
            f"Unknown sort column {sort_key!r}; choose one of {', '.join(COLUMNS)}"
        )
    return attribute


def _sort_value(value: object) -> object:
    if isinstance(value, tuple):
        return ", ".join(value).casefold()
    if isinstance(value, str):
        return value.casefold()
    return value


def sort_records(
    records: Sequence[SummaryRecord],
    sort_key: str = "additions",
    sort_direction: str = "desc",
) -> list[SummaryRecord]:
    """
    Stable sort of records by one column.

    Numbers compare numerically and text case-insensitively. Records without
    a value for the column (no primary language) go last in either direction.
    """
    if sort_direction not in ("asc", "desc"):
        raise ConfigurationError(f"Sort direction must be asc or desc, got {sort_direction!r}")

    attribute = resolve_sort_key(sort_key)
    present = [r for r in records if getattr(r, attribute) is not None]
    missing = [r for r in records if getattr(r, attribute) is None]

    # sorted() stays stable with reverse=True
    ordered = sorted(
        present,
        key=lambda r: _sort_value(getattr(r, attribute)),
        reverse=sort_direction == "desc",
    )
    return ordered + missing


def _row(record: SummaryRecord) -> list[object]:
    return [
        record.repo_name,
        record.window_additions,
        record.window_deletions,
        record.all_time_additions,
        record.all_time_deletions,
        record.primary_language or "",
        ", ".join(record.all_languages),
        record.created_date,
    ]


def build_csv(
    records: Sequence[SummaryRecord],
    sort_key: str = "additions",
    sort_direction: str = "desc",
    window_label: str = Window().label,
) -> bytes:
    """
    Render the report as UTF-8 CSV.

    Args:
        records: Summary records to include
        sort_key: Column to sort by (default: window additions)
        sort_direction: "asc" or "desc" (default: "desc")
        window_label: Label interpolated into the window column headers

    Returns:
        CSV bytes with CRLF line endings
    """
    buffer = io.StringIO(newline="")
    writer = csv.writer(buffer, lineterminator="\r\n")
    writer.writerow(column_headers(window_label))
    for record in sort_records(records, sort_key, sort_direction):
        writer.writerow(_row(record))
    return buffer.getvalue().encode("utf-8")


def parse_csv(data: bytes) -> list[dict[str, str]]:
    """Read a report back into one dict per row, keyed by header."""
    reader = csv.DictReader(io.StringIO(data.decode("utf-8"), newline=""))
    return list(reader)


def report_path(org: str, window: Window, now: datetime | None = None) -> str:
    """Repository path for the report, e.g. reports/octo-2024-05-01T12:00:00Z-4-weeks.csv."""
    now = now or datetime.now(timezone.utc)
    stamp = now.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
    return f"reports/{org}-{stamp}-{window.file_label}.csv"


def commit_message(now: datetime | None = None) -> str:
    now = now or datetime.now(timezone.utc)
    return f"{now.astimezone(timezone.utc).strftime('%Y-%m-%d')} Git code frequency report"
