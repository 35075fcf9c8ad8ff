from datetime import datetime, timezone
from typing import List, Optional, Tuple

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from reminder_engine.db.base import Base
from reminder_engine.reminders import models  # noqa: F401
from reminder_engine.reminders.config import ReminderSettings
from reminder_engine.reminders.notifier import NotificationResult, Notifier
from reminder_engine.reminders.repository import create_reminder
from reminder_engine.reminders.schemas import ReminderCreate
from reminder_engine.reminders.store import SqlReminderStore, SqlUserStore

NOW = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


class FakeNotifier(Notifier):
    """Records deliveries; fails or raises for selected channel targets."""

    def __init__(self, fail_for: Tuple[str, ...] = (), raise_for: Tuple[str, ...] = ()):
        self.fail_for = set(fail_for)
        self.raise_for = set(raise_for)
        self.sent: List[Tuple[str, str]] = []
        self.attempts: List[str] = []

    def send(self, target: str, text: str) -> NotificationResult:
        self.attempts.append(target)
        if target in self.raise_for:
            raise RuntimeError(f"connection reset for {target}")
        if target in self.fail_for:
            return NotificationResult(ok=False, error="chat not found")
        self.sent.append((target, text))
        return NotificationResult(ok=True, message_id=str(len(self.sent)))


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


@pytest.fixture
def reminder_store(session_factory):
    return SqlReminderStore(session_factory)


@pytest.fixture
def user_store(session_factory):
    return SqlUserStore(session_factory)


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def settings():
    return ReminderSettings(
        CRON_SECRET="s3cret",
        ALLOW_UNAUTHENTICATED_CRON=False,
        DAILY_SUMMARY_UTC_HOUR=None,
        SUMMARY_ENABLED=True,
        TELEGRAM_BOT_TOKEN="123:abc",
        DISPATCH_CONCURRENCY=1,
        METRICS_ENABLED=False,
    )


@pytest.fixture
def make_reminder(session_factory):
    def _make(
        scheduled_at: datetime,
        message: str = "Take the pills",
        channel_target: str = "1001",
        user_id: str = "user-1",
        recurrence_pattern: Optional[dict] = None,
    ):
        with session_factory() as db:
            return create_reminder(
                db,
                ReminderCreate(
                    user_id=user_id,
                    channel_target=channel_target,
                    message=message,
                    scheduled_at=scheduled_at,
                    recurrence_pattern=recurrence_pattern,
                ),
            )

    return _make


@pytest.fixture
def make_user(session_factory):
    def _make(
        user_id: str,
        channel_target: Optional[str] = "2001",
        is_active: bool = True,
        daily_summary_time: Optional[str] = "08:00",
        tz_name: Optional[str] = "UTC",
    ):
        prefs = {}
        if daily_summary_time:
            prefs["daily_summary_time"] = daily_summary_time
        if tz_name:
            prefs["timezone"] = tz_name
        with session_factory() as db:
            user = models.User(id=user_id, channel_target=channel_target, is_active=is_active, preferences=prefs)
            db.add(user)
            db.commit()
            db.refresh(user)
            return user

    return _make
