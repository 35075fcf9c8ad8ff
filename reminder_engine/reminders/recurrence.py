"""
Recurrence calculation and successor creation for recurring reminders
"""
import calendar
import logging
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from reminder_engine.utils.timezone import to_utc_aware
from .metrics import recurrence_successors_created_total
from .models import Reminder
from .schemas import RecurrencePattern, ReminderCreate
from .store import ReminderStore

logger = logging.getLogger(__name__)


class RecurrenceType(Enum):
    """Types of recurrence patterns"""
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


def add_months(value: datetime, months: int, anchor_day: Optional[int] = None) -> datetime:
    """Add calendar months, clamping the day to the last day of the target month.

    ``anchor_day`` is the day of month the chain started on; once a short month
    has clamped it, later months return to it.
    """
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    _, last_dom = calendar.monthrange(year, month)
    return value.replace(year=year, month=month, day=min(anchor_day or value.day, last_dom))


class RecurrenceCalculator:
    """Calculates the next occurrence from the previous nominal occurrence"""

    @staticmethod
    def calculate_next_occurrence(pattern: RecurrencePattern, last_occurrence: datetime) -> Optional[datetime]:
        try:
            kind = RecurrenceType(pattern.frequency)
        except ValueError:
            return None

        last_occurrence = to_utc_aware(last_occurrence)
        if kind == RecurrenceType.DAILY:
            return last_occurrence + timedelta(days=pattern.interval)
        if kind == RecurrenceType.WEEKLY:
            return last_occurrence + timedelta(days=7 * pattern.interval)
        return add_months(last_occurrence, pattern.interval, pattern.anchor_day)


class RecurrenceExpander:
    def __init__(self, store: ReminderStore):
        self.store = store

    def next_occurrence(self, reminder: Reminder) -> Optional[ReminderCreate]:
        """Build the successor of a delivered reminder, or None when the chain ends."""
        if not reminder.is_recurring or not reminder.recurrence_pattern:
            return None

        pattern = RecurrencePattern.model_validate(reminder.recurrence_pattern)
        next_date = RecurrenceCalculator.calculate_next_occurrence(pattern, reminder.scheduled_at)
        if next_date is None:
            logger.info(f"[Recurrence] Unknown frequency {pattern.frequency!r} for reminder {reminder.id}, chain ends")
            return None

        if pattern.end_date is not None and next_date > pattern.end_date:
            logger.info(
                f"[Recurrence] Next occurrence {next_date.isoformat()} is past end_date "
                f"{pattern.end_date.isoformat()} for reminder {reminder.id}, chain ends"
            )
            return None

        occurrence_number = (reminder.occurrence_number or 1) + 1
        if pattern.max_occurrences is not None and occurrence_number > pattern.max_occurrences:
            logger.info(f"[Recurrence] Reminder {reminder.id} reached max_occurrences={pattern.max_occurrences}")
            return None

        return ReminderCreate(
            user_id=reminder.user_id,
            channel_target=reminder.channel_target,
            message=reminder.message,
            scheduled_at=next_date,
            is_recurring=True,
            recurrence_pattern=reminder.recurrence_pattern,
            parent_reminder_id=reminder.id,
            occurrence_number=occurrence_number,
        )

    def expand(self, reminder: Reminder) -> Optional[Reminder]:
        data = self.next_occurrence(reminder)
        if data is None:
            return None
        successor = self.store.create(data)
        recurrence_successors_created_total.inc()
        logger.info(
            f"[Recurrence] Created successor {successor.id} for {reminder.id} "
            f"at {data.scheduled_at.isoformat()} (occurrence {data.occurrence_number})"
        )
        return successor
