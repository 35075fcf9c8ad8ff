import html
import logging
from datetime import date, datetime
from typing import List, Optional

from reminder_engine.utils.timezone import get_zoneinfo, local_day_bounds, parse_clock_time, to_utc_aware
from .config import ReminderSettings
from .exceptions import SummaryError
from .metrics import daily_summaries_failed_total, daily_summaries_sent_total
from .models import Reminder, User
from .notifier import Notifier
from .schemas import SummaryReport
from .store import ReminderStore, UserStore

logger = logging.getLogger(__name__)


def is_eligible(user: User) -> bool:
    prefs = user.preferences or {}
    return bool(user.is_active and prefs.get("daily_summary_time"))


def build_summary_text(reminders: List[Reminder], tz_name: str) -> str:
    tz = get_zoneinfo(tz_name)
    if not reminders:
        return "☀️ <b>Daily summary</b>\n\nNo reminders scheduled for today."
    lines = [f"☀️ <b>Daily summary</b>\n\nYou have {len(reminders)} reminder(s) today:"]
    for r in reminders:
        local_time = to_utc_aware(r.scheduled_at).astimezone(tz).strftime("%H:%M")
        lines.append(f"• {local_time} {html.escape(r.message, quote=False)}")
    return "\n".join(lines)


class DailySummaryGate:
    """Sends each eligible user at most one summary per local day.

    A user is due once their local clock reaches ``daily_summary_time``; the
    local date is claimed in the users table right before sending, so repeated
    or overlapping runs never send twice for the same day. Checks that fail
    before the claim leave the day open for a later run.
    """

    def __init__(
        self,
        settings: ReminderSettings,
        user_store: UserStore,
        reminder_store: ReminderStore,
        notifier: Notifier,
    ):
        self.settings = settings
        self.user_store = user_store
        self.reminder_store = reminder_store
        self.notifier = notifier

    def is_open(self, now: datetime) -> bool:
        if not self.settings.SUMMARY_ENABLED:
            return False
        hour = self.settings.DAILY_SUMMARY_UTC_HOUR
        return hour is None or to_utc_aware(now).hour == hour

    def maybe_run_daily_summaries(self, now: datetime) -> SummaryReport:
        if not self.is_open(now):
            return SummaryReport(gate_open=False)

        eligible = [u for u in self.user_store.find_all() if is_eligible(u)]
        sent = skipped = failed = 0
        for user in eligible:
            try:
                if self._run_for_user(user, now):
                    sent += 1
                else:
                    skipped += 1
            except Exception as e:
                failed += 1
                daily_summaries_failed_total.inc()
                logger.error(f"❌ [Summary] Failed to send summary to user {user.id}: {e!r}")

        if eligible:
            logger.info(f"📊 [Summary] {sent} sent, {skipped} skipped, {failed} failed of {len(eligible)} eligible")
        return SummaryReport(gate_open=True, eligible=len(eligible), sent=sent, skipped=skipped, failed=failed)

    def local_summary_date(self, user: User, now: datetime) -> Optional[date]:
        """The user's local date if their summary time has been reached, else None."""
        prefs = user.preferences or {}
        summary_time = parse_clock_time(prefs["daily_summary_time"])
        local_now = to_utc_aware(now).astimezone(get_zoneinfo(prefs.get("timezone")))
        if local_now.time() < summary_time:
            return None
        return local_now.date()

    def _run_for_user(self, user: User, now: datetime) -> bool:
        local_date = self.local_summary_date(user, now)
        if local_date is None:
            return False
        if not user.channel_target:
            raise SummaryError("user has no channel target")
        tz_name = (user.preferences or {}).get("timezone")
        start, end = local_day_bounds(local_date, get_zoneinfo(tz_name))
        reminders = self.reminder_store.find_scheduled_between(user.id, start, end)
        text = build_summary_text(reminders, tz_name)

        # only the send itself may lose the day
        if not self.user_store.claim_daily_summary(user.id, local_date):
            return False
        result = self.notifier.send(user.channel_target, text)
        if not result.ok:
            raise SummaryError(result.error or "delivery failed")

        daily_summaries_sent_total.inc()
        logger.info(f"☀️ [Summary] Sent daily summary for {local_date} to user {user.id}")
        return True
