import hmac
import logging
from datetime import datetime
from typing import Optional

from reminder_engine.utils.timezone import to_utc_aware, utc_now
from .config import ReminderSettings
from .dispatcher import DeliveryDispatcher, select_due
from .exceptions import AuthError, SelectionError
from .metrics import reminder_runs_total
from .notifier import Notifier
from .recurrence import RecurrenceExpander
from .schemas import RunResult
from .store import ReminderStore, UserStore
from .summary import DailySummaryGate

logger = logging.getLogger(__name__)


def verify_shared_secret(settings: ReminderSettings, auth_token: Optional[str]) -> None:
    """Raise AuthError unless the token matches CRON_SECRET.

    Without a configured secret, access is only granted when
    ALLOW_UNAUTHENTICATED_CRON is set, and each bypass is logged.
    """
    secret = settings.CRON_SECRET
    if secret:
        if not auth_token or not hmac.compare_digest(auth_token.encode(), secret.encode()):
            raise AuthError("Invalid cron secret")
        return
    if settings.ALLOW_UNAUTHENTICATED_CRON:
        logger.warning("⚠️ [Reminders] No cron secret configured, allowing unauthenticated access (ALLOW_UNAUTHENTICATED_CRON)")
        return
    raise AuthError("Cron secret not configured and unauthenticated access is not allowed")


class RunController:
    """Entry point of one reminder run: authenticate, select, dispatch, summarize."""

    def __init__(
        self,
        settings: ReminderSettings,
        reminder_store: ReminderStore,
        notifier: Notifier,
        user_store: Optional[UserStore] = None,
    ):
        self.settings = settings
        self.reminder_store = reminder_store
        self.dispatcher = DeliveryDispatcher(
            reminder_store,
            notifier,
            expander=RecurrenceExpander(reminder_store),
            template=settings.DELIVERY_TEMPLATE,
            max_workers=settings.DISPATCH_CONCURRENCY,
        )
        self.summary_gate = (
            DailySummaryGate(settings, user_store, reminder_store, notifier) if user_store is not None else None
        )

    def run(self, now: Optional[datetime] = None, auth_token: Optional[str] = None) -> RunResult:
        try:
            verify_shared_secret(self.settings, auth_token)
        except AuthError:
            reminder_runs_total.labels(outcome="unauthorized").inc()
            raise

        now = to_utc_aware(now) if now else utc_now()
        logger.info(f"🕒 [Reminders] Run started at {now.isoformat()}")

        try:
            due = select_due(self.reminder_store, now)
        except SelectionError:
            reminder_runs_total.labels(outcome="selection_failed").inc()
            raise

        result = self.dispatcher.dispatch(due, now)

        if self.summary_gate is not None:
            try:
                self.summary_gate.maybe_run_daily_summaries(now)
            except Exception as e:
                logger.exception(f"❌ [Summary] Daily summaries aborted: {e!r}")

        reminder_runs_total.labels(outcome="ok").inc()
        logger.info(
            f"✅ [Reminders] Run complete: processed={result.processed} sent={result.sent} "
            f"errors={result.errors} skipped={result.skipped}"
        )
        return result.model_copy(update={"timestamp": now})
