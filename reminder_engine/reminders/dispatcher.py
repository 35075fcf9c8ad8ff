import html
import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import List, Optional

from reminder_engine.utils.timezone import to_utc_aware
from .exceptions import DeliveryError, MarkSentError, RecurrenceError, SelectionError
from .metrics import (
    reminders_dispatch_failed_total,
    reminders_dispatch_skipped_total,
    reminders_dispatch_success_total,
)
from .models import Reminder
from .notifier import Notifier
from .recurrence import RecurrenceExpander
from .schemas import RunDetail, RunResult
from .store import ReminderStore

logger = logging.getLogger(__name__)

DEFAULT_DELIVERY_TEMPLATE = "🔔 <b>Reminder</b>\n\n{message}"


def is_due(reminder: Reminder, now: datetime) -> bool:
    return reminder.sent_at is None and to_utc_aware(reminder.scheduled_at) <= to_utc_aware(now)


def select_due(store: ReminderStore, now: datetime) -> List[Reminder]:
    """Return every due reminder. A store failure aborts the run."""
    try:
        pending = store.find_pending(now)
    except Exception as e:
        logger.error(f"❌ [Reminders] Could not list pending reminders: {e!r}")
        raise SelectionError(f"Could not list pending reminders: {e}") from e
    return [r for r in pending if is_due(r, now)]


def format_delivery_text(message: str, template: str = DEFAULT_DELIVERY_TEMPLATE) -> str:
    return template.format(message=html.escape(message, quote=False))


class DeliveryDispatcher:
    """Delivers due reminders one by one and folds the outcomes into a RunResult.

    Each reminder is isolated: a failure is recorded in its detail and the
    next reminder is still processed. With ``max_workers > 1`` items go
    through a bounded thread pool; the conditional mark-sent keeps this safe
    against concurrent runs and details keep the selector order.
    """

    def __init__(
        self,
        store: ReminderStore,
        notifier: Notifier,
        expander: Optional[RecurrenceExpander] = None,
        template: str = DEFAULT_DELIVERY_TEMPLATE,
        max_workers: int = 1,
    ):
        self.store = store
        self.notifier = notifier
        self.expander = expander or RecurrenceExpander(store)
        self.template = template
        self.max_workers = max(1, max_workers)

    def dispatch(self, due: List[Reminder], now: datetime) -> RunResult:
        if self.max_workers == 1 or len(due) <= 1:
            details = [self._process(reminder, now) for reminder in due]
        else:
            with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="reminder-dispatch") as pool:
                details = list(pool.map(lambda r: self._process(r, now), due))
        return RunResult.from_details(details)

    def _process(self, reminder: Reminder, now: datetime) -> RunDetail:
        try:
            claimed = self._deliver(reminder, now)
        except (DeliveryError, MarkSentError) as e:
            reminders_dispatch_failed_total.inc()
            logger.error(f"❌ [Reminders] {reminder.id}: {e}")
            return RunDetail(id=str(reminder.id), status="error", error=str(e))

        if not claimed:
            reminders_dispatch_skipped_total.inc()
            logger.info(f"⏭️  [Reminders] {reminder.id} already marked sent by another run")
            return RunDetail(id=str(reminder.id), status="skipped", error="already sent")

        if reminder.is_recurring and reminder.recurrence_pattern:
            try:
                self._expand(reminder)
            except RecurrenceError as e:
                reminders_dispatch_failed_total.inc()
                logger.error(f"❌ [Reminders] {reminder.id} delivered but recurrence failed: {e}")
                return RunDetail(id=str(reminder.id), status="error", error=str(e))

        reminders_dispatch_success_total.inc()
        logger.info(f"✅ [Reminders] Sent {reminder.id} to {reminder.channel_target}")
        return RunDetail(id=str(reminder.id), status="sent")

    def _deliver(self, reminder: Reminder, now: datetime) -> bool:
        try:
            text = format_delivery_text(reminder.message, self.template)
            result = self.notifier.send(reminder.channel_target, text)
        except Exception as e:
            raise DeliveryError(f"Delivery failed: {e}") from e
        if not result.ok:
            raise DeliveryError(f"Delivery failed: {result.error or 'unknown error'}")

        try:
            return self.store.mark_sent(reminder.id, now)
        except Exception as e:
            raise MarkSentError(f"Delivered but could not mark sent: {e}") from e

    def _expand(self, reminder: Reminder) -> None:
        try:
            self.expander.expand(reminder)
        except Exception as e:
            raise RecurrenceError(f"Could not schedule next occurrence: {e}") from e
