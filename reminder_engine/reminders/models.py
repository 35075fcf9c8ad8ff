"""
Reminder and user tables read and written by the delivery engine
"""
import uuid

from sqlalchemy import Column, String, Text, DateTime, Date, Boolean, Integer, JSON, Index

from reminder_engine.db.base import Base
from reminder_engine.utils.timezone import utc_now


def _new_id() -> str:
    return str(uuid.uuid4())


class Reminder(Base):
    """One occurrence of a reminder; recurring chains are linked through parent_reminder_id"""
    __tablename__ = "reminders"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String, nullable=False, index=True)
    channel_target = Column(String, nullable=False)  # Telegram chat id
    message = Column(Text, nullable=False)
    scheduled_at = Column(DateTime(timezone=True), nullable=False, index=True)
    sent_at = Column(DateTime(timezone=True), nullable=True)  # NULL means pending

    # Recurrence fields (NULL for one-time reminders)
    is_recurring = Column(Boolean, nullable=False, default=False)
    recurrence_pattern = Column(JSON, nullable=True)
    parent_reminder_id = Column(String(36), nullable=True)
    occurrence_number = Column(Integer, nullable=False, default=1)

    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)

    __table_args__ = (
        Index("ix_reminders_pending", "sent_at", "scheduled_at"),
        Index("ix_reminders_user_time", "user_id", "scheduled_at"),
        Index("ix_reminders_parent_id", "parent_reminder_id"),
    )

    def __repr__(self) -> str:
        return f"<Reminder id={self.id} user={self.user_id} scheduled_at={self.scheduled_at}>"


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=_new_id)
    channel_target = Column(String, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    preferences = Column(JSON, nullable=False, default=dict)  # daily_summary_time, timezone, language
    last_summary_date = Column(Date, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
