from datetime import date, datetime
from typing import List, Optional

from sqlalchemy import or_, select, update
from sqlalchemy.orm import Session

from reminder_engine.utils.timezone import to_utc_aware
from .models import Reminder, User
from .schemas import ReminderCreate


def create_reminder(db: Session, data: ReminderCreate) -> Reminder:
    reminder = Reminder(
        user_id=data.user_id,
        channel_target=data.channel_target,
        message=data.message,
        scheduled_at=to_utc_aware(data.scheduled_at),
        sent_at=None,
        is_recurring=data.is_recurring,
        recurrence_pattern=data.recurrence_pattern,
        parent_reminder_id=data.parent_reminder_id,
        occurrence_number=data.occurrence_number,
    )
    db.add(reminder)
    db.commit()
    db.refresh(reminder)
    return reminder


def get_reminder(db: Session, reminder_id: str) -> Optional[Reminder]:
    return db.get(Reminder, reminder_id)


def list_reminders(
    db: Session,
    user_id: Optional[str] = None,
    pending: Optional[bool] = None,
    limit: int = 100,
) -> List[Reminder]:
    stmt = select(Reminder).order_by(Reminder.scheduled_at.desc()).limit(limit)
    if user_id:
        stmt = stmt.where(Reminder.user_id == user_id)
    if pending is True:
        stmt = stmt.where(Reminder.sent_at.is_(None))
    elif pending is False:
        stmt = stmt.where(Reminder.sent_at.isnot(None))
    return list(db.execute(stmt).scalars())


def get_due_reminders(db: Session, now: datetime) -> List[Reminder]:
    """Pending reminders whose scheduled_at has passed, oldest first."""
    stmt = (
        select(Reminder)
        .where(Reminder.sent_at.is_(None))
        .where(Reminder.scheduled_at <= to_utc_aware(now))
        .order_by(Reminder.scheduled_at.asc())
    )
    return list(db.execute(stmt).scalars())


def get_reminders_between(db: Session, user_id: str, start: datetime, end: datetime) -> List[Reminder]:
    stmt = (
        select(Reminder)
        .where(Reminder.user_id == user_id)
        .where(Reminder.scheduled_at >= to_utc_aware(start))
        .where(Reminder.scheduled_at < to_utc_aware(end))
        .order_by(Reminder.scheduled_at.asc())
    )
    return list(db.execute(stmt).scalars())


def mark_sent(db: Session, reminder_id: str, sent_at: datetime) -> bool:
    """Set sent_at only if it is still NULL. Returns False when another run got there first."""
    result = db.execute(
        update(Reminder)
        .where(Reminder.id == reminder_id)
        .where(Reminder.sent_at.is_(None))
        .values(sent_at=to_utc_aware(sent_at))
    )
    db.commit()
    return result.rowcount == 1


def list_users(db: Session) -> List[User]:
    return list(db.execute(select(User).order_by(User.created_at.asc())).scalars())


def claim_daily_summary(db: Session, user_id: str, local_date: date) -> bool:
    """Record local_date as the user's last summary day unless it already is."""
    result = db.execute(
        update(User)
        .where(User.id == user_id)
        .where(or_(User.last_summary_date.is_(None), User.last_summary_date < local_date))
        .values(last_summary_date=local_date)
    )
    db.commit()
    return result.rowcount == 1
