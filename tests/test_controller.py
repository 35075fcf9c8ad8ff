import logging
from datetime import timedelta

import pytest

from reminder_engine.reminders.controller import RunController, verify_shared_secret
from reminder_engine.reminders.exceptions import AuthError, SelectionError
from reminder_engine.reminders.store import SqlReminderStore

from .conftest import NOW


class ExplodingUserStore:
    def find_all(self):
        raise RuntimeError("users table missing")

    def claim_daily_summary(self, user_id, local_date):
        raise AssertionError("not reached")


class BrokenSelectStore(SqlReminderStore):
    def find_pending(self, now):
        raise RuntimeError("database unavailable")


def test_run_returns_result_with_timestamp(settings, reminder_store, user_store, notifier, make_reminder):
    r = make_reminder(NOW - timedelta(hours=1))
    controller = RunController(settings, reminder_store, notifier, user_store=user_store)

    result = controller.run(now=NOW, auth_token="s3cret")

    assert result.ok is True
    assert result.timestamp == NOW
    assert result.processed == 1
    assert result.sent == 1
    assert result.details[0].id == r.id


def test_wrong_token_is_rejected_before_any_work(settings, reminder_store, notifier, make_reminder):
    make_reminder(NOW - timedelta(hours=1))
    controller = RunController(settings, reminder_store, notifier)

    with pytest.raises(AuthError):
        controller.run(now=NOW, auth_token="nope")
    with pytest.raises(AuthError):
        controller.run(now=NOW, auth_token=None)
    assert notifier.attempts == []


def test_missing_secret_requires_explicit_opt_in(settings, caplog):
    closed = settings.model_copy(update={"CRON_SECRET": None, "ALLOW_UNAUTHENTICATED_CRON": False})
    with pytest.raises(AuthError):
        verify_shared_secret(closed, None)

    opened = settings.model_copy(update={"CRON_SECRET": None, "ALLOW_UNAUTHENTICATED_CRON": True})
    with caplog.at_level(logging.WARNING):
        verify_shared_secret(opened, None)
    assert "unauthenticated" in caplog.text


def test_selection_failure_propagates(settings, session_factory, notifier):
    controller = RunController(settings, BrokenSelectStore(session_factory), notifier)
    with pytest.raises(SelectionError):
        controller.run(now=NOW, auth_token="s3cret")
    assert notifier.attempts == []


def test_summary_failure_does_not_affect_result(settings, reminder_store, notifier, make_reminder):
    make_reminder(NOW - timedelta(minutes=1))
    controller = RunController(settings, reminder_store, notifier, user_store=ExplodingUserStore())

    result = controller.run(now=NOW, auth_token="s3cret")

    assert result.sent == 1
    assert result.errors == 0


def test_second_run_finds_nothing_left(settings, reminder_store, notifier, make_reminder):
    make_reminder(NOW - timedelta(minutes=1))
    controller = RunController(settings, reminder_store, notifier)

    controller.run(now=NOW, auth_token="s3cret")
    again = controller.run(now=NOW + timedelta(minutes=1), auth_token="s3cret")

    assert again.processed == 0
    assert len(notifier.sent) == 1
