from functools import lru_cache
from typing import Generator, Optional

from fastapi import Depends, Header, HTTPException, status

from reminder_engine.db.session import SessionLocal
from reminder_engine.reminders.config import ReminderSettings, get_settings
from reminder_engine.reminders.controller import RunController, verify_shared_secret
from reminder_engine.reminders.exceptions import AuthError
from reminder_engine.reminders.notifier import Notifier, TelegramNotifier
from reminder_engine.reminders.store import SqlReminderStore, SqlUserStore


def get_db() -> Generator:
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def extract_token(
    authorization: Optional[str] = Header(None),
    x_cron_secret: Optional[str] = Header(None),
) -> Optional[str]:
    """Token from ``Authorization: Bearer <secret>`` or ``X-Cron-Secret``."""
    if authorization and authorization.startswith("Bearer "):
        return authorization.split(" ", 1)[1].strip()
    if x_cron_secret:
        return x_cron_secret
    return None


def verify_secret_dependency(
    token: Optional[str] = Depends(extract_token),
    settings: ReminderSettings = Depends(get_settings),
) -> bool:
    try:
        verify_shared_secret(settings, token)
    except AuthError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )
    return True


@lru_cache
def get_notifier() -> Notifier:
    """One notifier, and one HTTP session, per process."""
    return TelegramNotifier(get_settings())


def get_run_controller(
    settings: ReminderSettings = Depends(get_settings),
    notifier: Notifier = Depends(get_notifier),
) -> RunController:
    return RunController(
        settings,
        SqlReminderStore(SessionLocal),
        notifier,
        user_store=SqlUserStore(SessionLocal),
    )
