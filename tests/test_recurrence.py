from datetime import datetime, timedelta, timezone

import pytest

from reminder_engine.reminders.recurrence import RecurrenceCalculator, RecurrenceExpander, add_months
from reminder_engine.reminders.schemas import RecurrencePattern
from reminder_engine.utils.timezone import to_utc_aware

from .conftest import NOW


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "start, months, expected",
    [
        (utc(2026, 1, 31, 9), 1, utc(2026, 2, 28, 9)),
        (utc(2028, 1, 31, 9), 1, utc(2028, 2, 29, 9)),
        (utc(2026, 12, 15, 9), 1, utc(2027, 1, 15, 9)),
        (utc(2026, 3, 31, 9), 14, utc(2027, 5, 31, 9)),
        (utc(2026, 5, 31, 9), 1, utc(2026, 6, 30, 9)),
    ],
)
def test_add_months_clamps_to_month_end(start, months, expected):
    assert add_months(start, months) == expected


def test_daily_interval_anchors_on_previous_occurrence():
    pattern = RecurrencePattern(frequency="daily", interval=2)
    assert RecurrenceCalculator.calculate_next_occurrence(pattern, utc(2026, 1, 1, 8)) == utc(2026, 1, 3, 8)


def test_weekly_interval_multiplies_by_seven():
    pattern = RecurrencePattern(frequency="weekly", interval=3)
    assert RecurrenceCalculator.calculate_next_occurrence(pattern, utc(2026, 1, 1)) == utc(2026, 1, 22)


def test_unknown_frequency_has_no_next_occurrence():
    pattern = RecurrencePattern(frequency="hourly", interval=1)
    assert RecurrenceCalculator.calculate_next_occurrence(pattern, utc(2026, 1, 1)) is None


def test_weekly_chain_stops_at_end_date(reminder_store, make_reminder):
    first = make_reminder(
        utc(2026, 1, 1),
        recurrence_pattern={"frequency": "weekly", "interval": 1, "end_date": "2026-01-10T00:00:00Z"},
    )
    expander = RecurrenceExpander(reminder_store)

    second = expander.expand(first)
    assert second is not None
    assert to_utc_aware(second.scheduled_at) == utc(2026, 1, 8)
    assert second.sent_at is None
    assert second.parent_reminder_id == first.id
    assert second.occurrence_number == 2

    assert expander.expand(second) is None


def test_successor_copies_reminder_fields(reminder_store, make_reminder):
    pattern = {"frequency": "monthly", "interval": 1}
    first = make_reminder(utc(2026, 1, 31, 9), message="Pay rent", channel_target="42", recurrence_pattern=pattern)

    successor = RecurrenceExpander(reminder_store).expand(first)

    assert successor.id != first.id
    assert successor.user_id == first.user_id
    assert successor.channel_target == "42"
    assert successor.message == "Pay rent"
    assert successor.is_recurring is True
    assert successor.recurrence_pattern == first.recurrence_pattern
    assert to_utc_aware(successor.scheduled_at) == utc(2026, 2, 28, 9)
    # the predecessor is never rescheduled in place
    assert to_utc_aware(reminder_store.get(first.id).scheduled_at) == utc(2026, 1, 31, 9)


def test_max_occurrences_ends_chain(reminder_store, make_reminder):
    first = make_reminder(NOW, recurrence_pattern={"frequency": "daily", "interval": 1, "max_occurrences": 2})
    expander = RecurrenceExpander(reminder_store)

    second = expander.expand(first)
    assert second is not None
    assert expander.expand(second) is None


def test_non_recurring_reminder_is_not_expanded(reminder_store, make_reminder):
    one_off = make_reminder(NOW)
    assert RecurrenceExpander(reminder_store).expand(one_off) is None


def test_successor_on_end_date_is_kept(reminder_store, make_reminder):
    first = make_reminder(
        utc(2026, 1, 1, 9),
        recurrence_pattern={"frequency": "daily", "interval": 1, "end_date": "2026-01-02T09:00:00+00:00"},
    )
    successor = RecurrenceExpander(reminder_store).expand(first)
    assert to_utc_aware(successor.scheduled_at) == utc(2026, 1, 2, 9)


def test_delayed_delivery_does_not_drift(reminder_store, make_reminder):
    first = make_reminder(NOW - timedelta(days=3), recurrence_pattern={"frequency": "daily", "interval": 2})
    successor = RecurrenceExpander(reminder_store).expand(first)
    assert to_utc_aware(successor.scheduled_at) == NOW - timedelta(days=1)


def test_add_months_returns_to_anchor_day_after_short_month():
    assert add_months(utc(2026, 2, 28, 9), 1, anchor_day=31) == utc(2026, 3, 31, 9)
    assert add_months(utc(2026, 3, 31, 9), 1, anchor_day=31) == utc(2026, 4, 30, 9)


def test_month_end_chain_keeps_its_day(reminder_store, make_reminder):
    first = make_reminder(utc(2026, 1, 31, 9), recurrence_pattern={"frequency": "monthly", "interval": 1})
    assert first.recurrence_pattern["anchor_day"] == 31
    expander = RecurrenceExpander(reminder_store)

    feb = expander.expand(first)
    mar = expander.expand(feb)
    apr = expander.expand(mar)

    assert [to_utc_aware(r.scheduled_at) for r in (feb, mar, apr)] == [
        utc(2026, 2, 28, 9),
        utc(2026, 3, 31, 9),
        utc(2026, 4, 30, 9),
    ]
