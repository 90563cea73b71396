"""Unit tests for timesheet hour arithmetic."""
from datetime import date
from types import SimpleNamespace

import pytest

from hrms.accounting import (
    EntryCandidate,
    build_week_view,
    compute_entry_hours,
    summarize,
    validate_batch,
    week_bounds,
)
from hrms.exceptions import (
    EndBeforeStart,
    InvalidTimeFormat,
    NegativeBreak,
    NonPositiveTotal,
    ValidationError,
)


def entry(work_date: date, hours: float, status: str = "pending", entry_id: int = 1) -> SimpleNamespace:
    return SimpleNamespace(
        id=entry_id,
        work_date=work_date,
        start_time="09:00",
        end_time="17:00",
        break_duration=0.0,
        total_hours=hours,
        status=status,
    )


def test_entry_hours_subtract_break() -> None:
    assert compute_entry_hours("09:00", "17:30", 0.5) == pytest.approx(8.0)
    assert compute_entry_hours("09:00:00", "10:30:00", "0") == pytest.approx(1.5)


def test_longer_break_means_fewer_hours() -> None:
    short = compute_entry_hours("08:00", "16:00", 0.25)
    long = compute_entry_hours("08:00", "16:00", 1.0)
    assert long < short


@pytest.mark.parametrize(
    "start, end, break_hours, error",
    [
        ("9am", "17:00", 0, InvalidTimeFormat),
        ("09:00", "25:00", 0, InvalidTimeFormat),
        ("", "17:00", 0, InvalidTimeFormat),
        (None, "17:00", 0, InvalidTimeFormat),
        ("17:00", "09:00", 0, EndBeforeStart),
        ("09:00", "09:00", 0, EndBeforeStart),
        ("09:00", "17:00", -1, NegativeBreak),
        ("09:00", "17:00", "lunch", NegativeBreak),
        ("09:00", "17:00", None, NegativeBreak),
        ("09:00", "10:00", 1, NonPositiveTotal),
        ("09:00", "10:00", 2.5, NonPositiveTotal),
    ],
)
def test_entry_hours_failures(start, end, break_hours, error) -> None:
    with pytest.raises(error):
        compute_entry_hours(start, end, break_hours)


def test_time_format_is_checked_before_break() -> None:
    with pytest.raises(InvalidTimeFormat):
        compute_entry_hours("nope", "17:00", -5)


def test_summary_splits_regular_and_overtime() -> None:
    entries = [
        entry(date(2024, 1, 1), 6, "approved"),
        entry(date(2024, 1, 2), 9, "pending"),
        entry(date(2024, 1, 3), 3, "rejected"),
    ]

    summary = summarize(entries, date(2024, 1, 1), date(2024, 1, 7))

    assert summary.total_hours == 18
    assert summary.regular_hours == 17
    assert summary.overtime_hours == 1
    assert summary.days_worked == 3
    assert (summary.approved_count, summary.pending_count, summary.rejected_count) == (1, 1, 1)


def test_summary_ignores_entries_outside_range() -> None:
    entries = [entry(date(2024, 1, 1), 8), entry(date(2024, 2, 1), 8)]

    summary = summarize(entries, date(2024, 1, 1), date(2024, 1, 31))

    assert summary.total_hours == 8
    assert summary.days_worked == 1


def test_summary_rounds_after_accumulating() -> None:
    entries = [entry(date(2024, 1, day), 1 / 3) for day in range(1, 4)]

    summary = summarize(entries, date(2024, 1, 1), date(2024, 1, 3))

    assert summary.total_hours == 1.0
    assert summary.regular_hours == 1.0


def test_week_bounds_start_on_sunday() -> None:
    # 2024-03-06 is a Wednesday
    assert week_bounds(date(2024, 3, 6)) == (date(2024, 3, 3), date(2024, 3, 9))
    assert week_bounds(date(2024, 3, 3)) == (date(2024, 3, 3), date(2024, 3, 9))
    assert week_bounds(date(2024, 3, 9)) == (date(2024, 3, 3), date(2024, 3, 9))


def test_week_view_overlays_entries_by_exact_date() -> None:
    monday = entry(date(2024, 3, 4), 7.5, "approved", entry_id=11)
    next_monday = entry(date(2024, 3, 11), 4, entry_id=12)

    slots = build_week_view(date(2024, 3, 6), [monday, next_monday])

    assert [slot.work_date for slot in slots] == [date(2024, 3, day) for day in range(3, 10)]
    assert slots[1].id == 11
    assert slots[1].total_hours == 7.5
    assert slots[1].status == "approved"
    untouched = [slot for index, slot in enumerate(slots) if index != 1]
    assert all(slot.id is None and slot.total_hours == 0 for slot in untouched)
    assert all(slot.status == "pending" and slot.start_time == "" for slot in untouched)


def test_validate_batch_returns_hours_in_order() -> None:
    hours = validate_batch(
        [
            EntryCandidate("09:00", "17:00", 1, work_date=date(2024, 1, 1)),
            EntryCandidate("10:00", "12:00", 0, id=5),
        ]
    )
    assert hours == pytest.approx([7.0, 2.0])


def test_validate_batch_is_all_or_nothing() -> None:
    candidates = [
        EntryCandidate("09:00", "17:00", 0, work_date=date(2024, 1, 1)),
        EntryCandidate("17:00", "09:00", 0, work_date=date(2024, 1, 2)),
    ]

    with pytest.raises(EndBeforeStart) as excinfo:
        validate_batch(candidates)
    assert excinfo.value.message.startswith("Entry 2:")


def test_validate_batch_requires_dates_for_inserts() -> None:
    with pytest.raises(ValidationError, match="Entry 1: date is required"):
        validate_batch([EntryCandidate("09:00", "17:00", 0)])
