"""
Tests for window selection, reduction and concurrent aggregation.

Feature: frequency-aggregator
"""

import asyncio
from datetime import date, datetime, timezone

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from codefreq.aggregate import FrequencyAggregator, reduce_weeks, select_window, summarize
from codefreq.exceptions import AuthError
from codefreq.testing import create_repo_descriptor, create_series
from codefreq.testing.fixtures import WEEK
from codefreq.types.stats import FrequencyTotals, SkippedRepo, WeeklyDelta, Window

# Strategies for generating weekly series
change_strategy = st.tuples(
    st.integers(min_value=0, max_value=10_000),
    st.integers(min_value=-10_000, max_value=0),
)
series_strategy = st.lists(change_strategy, min_size=0, max_size=60).map(create_series)


def midnight(day: str) -> int:
    return int(datetime.fromisoformat(day).replace(tzinfo=timezone.utc).timestamp())


# ============================================================================
# Reduction
# ============================================================================


def test_reduce_empty_is_zero() -> None:
    assert reduce_weeks([]) == FrequencyTotals(additions=0, deletions=0)


def test_reduce_reports_deletions_as_magnitude() -> None:
    deltas = [WeeklyDelta.from_triple([0, 10, -3]), WeeklyDelta.from_triple([WEEK, 5, -2])]

    totals = reduce_weeks(deltas)

    assert totals.additions == 15
    assert totals.deletions == 5


@given(series=series_strategy)
@settings(max_examples=100)
def test_property_totals_are_non_negative(series: list[WeeklyDelta]) -> None:
    """Deletions are always reported as non-negative magnitudes."""
    totals = reduce_weeks(series)

    assert totals.additions >= 0
    assert totals.deletions >= 0
    assert totals.additions == sum(delta.additions for delta in series)
    assert totals.deletions == -sum(delta.deletions for delta in series)


@given(series=series_strategy, weeks=st.integers(min_value=1, max_value=80))
@settings(max_examples=100)
def test_property_all_time_covers_suffix_window(series: list[WeeklyDelta], weeks: int) -> None:
    """All-time totals are never below the totals of a trailing window."""
    record = summarize(create_repo_descriptor(), series, Window(weeks=weeks))

    if not series:
        assert record is None
        return

    assert record.all_time_additions >= record.window_additions
    assert record.all_time_deletions >= record.window_deletions


# ============================================================================
# Window selection
# ============================================================================


def test_select_window_defaults_to_four_weeks() -> None:
    window = select_window()

    assert window == Window(weeks=4)
    assert window.label == "<4 weeks"
    assert window.file_label == "4-weeks"
    assert window.description == "last 4 weeks"


@pytest.mark.parametrize("weeks", [None, "", "four", "2.5", "0", "-3", True])
def test_select_window_falls_back_on_bad_weeks(weeks: object) -> None:
    assert select_window(weeks=weeks).weeks == 4


def test_select_window_accepts_integer_strings() -> None:
    assert select_window(weeks=" 12 ").weeks == 12
    assert select_window(weeks=2).weeks == 2


def test_select_window_uses_range_when_both_dates_valid() -> None:
    window = select_window(weeks="2", from_date="2024-01-01", to_date="2024-03-31")

    assert window.is_range
    assert window.from_date == date(2024, 1, 1)
    assert window.to_date == date(2024, 3, 31)
    assert window.label == "2024-01-01 to 2024-03-31"
    assert window.file_label == "2024-01-01-to-2024-03-31"


@pytest.mark.parametrize(
    ("from_date", "to_date"),
    [
        ("2024-01-01", None),
        (None, "2024-01-01"),
        ("2024-01-01", "yesterday"),
        ("2024-13-01", "2024-12-31"),
        ("2024-1-1", "2024-02-01"),
    ],
)
def test_select_window_ignores_incomplete_or_invalid_range(
    from_date: str | None, to_date: str | None
) -> None:
    window = select_window(weeks="3", from_date=from_date, to_date=to_date)

    assert not window.is_range
    assert window.weeks == 3


def test_range_selection_is_inclusive_at_both_bounds() -> None:
    start = midnight("2024-01-01")
    end = midnight("2024-01-29")
    series = [
        WeeklyDelta(start - WEEK, 1, -1),
        WeeklyDelta(start, 2, -2),
        WeeklyDelta(start + WEEK, 4, -4),
        WeeklyDelta(end, 8, -8),
        WeeklyDelta(end + WEEK, 16, -16),
    ]
    window = select_window(from_date="2024-01-01", to_date="2024-01-29")

    selected = window.select(series)

    assert [delta.additions for delta in selected] == [2, 4, 8]


def test_range_outside_history_reduces_to_zero() -> None:
    series = create_series([(10, -1), (20, -2)])
    window = select_window(from_date="2030-01-01", to_date="2030-12-31")

    record = summarize(create_repo_descriptor(), series, window)

    assert record is not None
    assert (record.window_additions, record.window_deletions) == (0, 0)
    assert (record.all_time_additions, record.all_time_deletions) == (30, 3)


def test_weeks_window_takes_trailing_entries(sample_series: list[WeeklyDelta]) -> None:
    selected = Window(weeks=2).select(sample_series)

    assert selected == sample_series[-2:]


def test_weeks_window_longer_than_history_takes_everything(
    sample_series: list[WeeklyDelta],
) -> None:
    assert Window(weeks=52).select(sample_series) == sample_series


# ============================================================================
# Summaries
# ============================================================================


def test_summarize_carries_descriptor_fields() -> None:
    repo = create_repo_descriptor(
        "api", primary_language=None, languages=(), created_at=datetime(2019, 7, 4, tzinfo=timezone.utc)
    )

    record = summarize(repo, create_series([(3, -1)]), Window(weeks=4))

    assert record is not None
    assert record.repo_name == "api"
    assert record.created_date == "2019-07-04"
    assert record.primary_language is None
    assert record.all_languages == ()


def test_summarize_empty_series_is_skipped(sample_repo) -> None:
    assert summarize(sample_repo, [], Window()) is None


# ============================================================================
# Concurrent aggregation against the mock API
# ============================================================================


def _aggregate(mock_github, window: Window, max_concurrency: int = 8):
    async def scenario():
        async with mock_github.client() as client:
            repos = await client.repos.list_for_org(mock_github.org)
            aggregator = FrequencyAggregator(
                client.stats,
                mock_github.org,
                poll_config=mock_github.poll_config(),
                max_concurrency=max_concurrency,
            )
            return await aggregator.aggregate_all(repos, window)

    return asyncio.run(scenario())


def test_end_to_end_two_repositories(mock_github) -> None:
    mock_github.add_repo("A", weeks=[[0, 100, -20], [604800, 50, -10]])
    mock_github.add_repo("B", weeks=[])

    result = _aggregate(mock_github, select_window(weeks="1"))

    assert len(result.records) == 1
    record = result.records[0]
    assert record.repo_name == "A"
    assert record.window_additions == 50
    assert record.window_deletions == 10
    assert record.all_time_additions == 150
    assert record.all_time_deletions == 30
    assert result.skipped == [SkippedRepo("B", "empty")]
    assert result.window.label == "<1 weeks"


def test_aggregation_polls_until_stats_ready(mock_github) -> None:
    mock_github.add_repo("slow", weeks=[[0, 5, -1]], pending=3)

    result = _aggregate(mock_github, Window())

    assert [r.repo_name for r in result.records] == ["slow"]
    assert mock_github.call_count("GET", "/repos/octo-org/slow/stats/code_frequency") == 4


def test_aggregation_skips_repo_when_polling_exhausted(mock_github) -> None:
    mock_github.add_repo("stuck", weeks=[[0, 5, -1]], pending=100)
    mock_github.add_repo("fine", weeks=[[0, 1, -1]])

    result = _aggregate(mock_github, Window())

    assert [r.repo_name for r in result.records] == ["fine"]
    assert len(result.skipped) == 1
    assert result.skipped[0].name == "stuck"
    assert result.skipped[0].reason == "error"
    assert "STATS_NOT_READY" in (result.skipped[0].detail or "")


def test_aggregation_skips_repo_on_fetch_error(mock_github, caplog) -> None:
    mock_github.add_repo("huge", weeks=[[0, 5, -1]])
    mock_github.configure_stats("huge", status_code=422, message="too large to compute")
    mock_github.add_repo("small", weeks=[[0, 1, -1]])

    with caplog.at_level("WARNING", logger="codefreq"):
        result = _aggregate(mock_github, Window())

    assert [r.repo_name for r in result.records] == ["small"]
    assert result.skipped[0].name == "huge"
    assert any("Skipping octo-org/huge" in message for message in caplog.messages)


def test_aggregation_aborts_on_auth_error(mock_github) -> None:
    mock_github.add_repo("locked", weeks=[[0, 5, -1]])
    mock_github.configure_stats("locked", status_code=401, message="Bad credentials")

    with pytest.raises(AuthError):
        _aggregate(mock_github, Window())


def test_aggregation_skips_repo_with_malformed_stats(mock_github, caplog) -> None:
    mock_github.add_repo("bad", weeks=[[0, 5]])
    mock_github.add_repo("good", weeks=[[0, 7, -2]])

    with caplog.at_level("WARNING", logger="codefreq"):
        result = _aggregate(mock_github, Window())

    assert [r.repo_name for r in result.records] == ["good"]
    assert [s.name for s in result.skipped] == ["bad"]
    assert result.skipped[0].reason == "error"
    assert "INVALID_RESPONSE" in (result.skipped[0].detail or "")
    assert any("Skipping octo-org/bad" in message for message in caplog.messages)


def test_aggregation_skips_repo_on_forbidden(mock_github) -> None:
    mock_github.add_repo("blocked", weeks=[[0, 5, -1]])
    mock_github.configure_stats("blocked", status_code=403, message="Repository access blocked")
    mock_github.add_repo("open", weeks=[[0, 3, -1]])

    result = _aggregate(mock_github, Window())

    assert [r.repo_name for r in result.records] == ["open"]
    assert result.skipped[0].name == "blocked"
    assert "Repository access blocked" in (result.skipped[0].detail or "")


def test_aggregation_abort_cancels_other_fetches(mock_github) -> None:
    mock_github.add_repo("computing", weeks=[[0, 5, -1]], pending=10_000)
    mock_github.add_repo("locked", weeks=[[0, 5, -1]])
    mock_github.configure_stats("locked", status_code=401, message="Bad credentials")
    path = "/repos/octo-org/computing/stats/code_frequency"

    async def scenario():
        async with mock_github.client() as client:
            repos = await client.repos.list_for_org(mock_github.org)
            aggregator = FrequencyAggregator(
                client.stats,
                mock_github.org,
                poll_config=mock_github.poll_config(max_attempts=10_000),
            )
            with pytest.raises(AuthError):
                await aggregator.aggregate_all(repos, Window())

            # Nothing may still be polling once the error has surfaced
            assert asyncio.all_tasks() == {asyncio.current_task()}
            calls = mock_github.call_count("GET", path)
            for _ in range(10):
                await asyncio.sleep(0)
            assert mock_github.call_count("GET", path) == calls

    asyncio.run(scenario())


def test_aggregation_preserves_enumeration_order(mock_github) -> None:
    # Different poll counts make the repositories finish out of order
    for index, pending in enumerate([3, 0, 2, 1, 0]):
        mock_github.add_repo(f"repo-{index}", weeks=[[0, index + 1, 0]], pending=pending)

    result = _aggregate(mock_github, Window(), max_concurrency=5)

    assert [r.repo_name for r in result.records] == [f"repo-{i}" for i in range(5)]
