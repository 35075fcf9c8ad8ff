"""One reminder run for deployments driven by system cron.

Run every minute, e.g.:
    reminder-engine-run
    python -m reminder_engine.reminders.run_once
"""
import json
import logging
import sys

from reminder_engine.core.config import settings as core_settings
from reminder_engine.db.base import Base
from reminder_engine.db.session import SessionLocal, engine
from .config import get_settings
from .controller import RunController
from .exceptions import AuthError, SelectionError
from .notifier import TelegramNotifier
from .store import SqlReminderStore, SqlUserStore

logger = logging.getLogger(__name__)


def main() -> int:
    logging.basicConfig(
        level=getattr(logging, core_settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    settings = get_settings()
    if core_settings.CREATE_TABLES_ON_STARTUP:
        Base.metadata.create_all(bind=engine)

    controller = RunController(
        settings,
        SqlReminderStore(SessionLocal),
        TelegramNotifier(settings),
        user_store=SqlUserStore(SessionLocal),
    )
    logger.info("[CRON] reminder run: job started")
    try:
        # Local invocation carries the configured secret itself
        result = controller.run(auth_token=settings.CRON_SECRET)
    except AuthError as e:
        logger.error(f"[CRON] reminder run refused: {e}")
        return 2
    except SelectionError as e:
        logger.error(f"[CRON] reminder run failed: {e}")
        return 1

    print(json.dumps(result.model_dump(mode="json", exclude_none=True)))
    logger.info("[CRON] reminder run: job completed")
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
