"""
Store interfaces used by the engine and their SQLAlchemy implementations
"""
from datetime import date, datetime
from typing import Callable, List, Optional, Protocol

from sqlalchemy.orm import Session

from . import repository
from .models import Reminder, User
from .schemas import ReminderCreate


class ReminderStore(Protocol):
    def find_pending(self, now: datetime) -> List[Reminder]: ...

    def mark_sent(self, reminder_id: str, now: datetime) -> bool: ...

    def create(self, data: ReminderCreate) -> Reminder: ...

    def find_scheduled_between(self, user_id: str, start: datetime, end: datetime) -> List[Reminder]: ...


class UserStore(Protocol):
    def find_all(self) -> List[User]: ...

    def claim_daily_summary(self, user_id: str, local_date: date) -> bool: ...


class SqlReminderStore:
    """Opens a short-lived session per call so one instance can be shared by worker threads."""

    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    def find_pending(self, now: datetime) -> List[Reminder]:
        with self._session_factory() as db:
            return repository.get_due_reminders(db, now)

    def mark_sent(self, reminder_id: str, now: datetime) -> bool:
        with self._session_factory() as db:
            return repository.mark_sent(db, reminder_id, now)

    def create(self, data: ReminderCreate) -> Reminder:
        with self._session_factory() as db:
            return repository.create_reminder(db, data)

    def find_scheduled_between(self, user_id: str, start: datetime, end: datetime) -> List[Reminder]:
        with self._session_factory() as db:
            return repository.get_reminders_between(db, user_id, start, end)

    def get(self, reminder_id: str) -> Optional[Reminder]:
        with self._session_factory() as db:
            return repository.get_reminder(db, reminder_id)


class SqlUserStore:
    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    def find_all(self) -> List[User]:
        with self._session_factory() as db:
            return repository.list_users(db)

    def claim_daily_summary(self, user_id: str, local_date: date) -> bool:
        with self._session_factory() as db:
            return repository.claim_daily_summary(db, user_id, local_date)
