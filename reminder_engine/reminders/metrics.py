from prometheus_client import Counter


reminder_runs_total = Counter(
    "reminder_runs_total",
    "Total reminder runs by outcome",
    ["outcome"],
)

reminders_created_total = Counter(
    "reminders_created_total",
    "Total reminders created via API",
)

reminders_dispatch_success_total = Counter(
    "reminders_dispatch_success_total",
    "Total reminders delivered and marked sent",
)

reminders_dispatch_failed_total = Counter(
    "reminders_dispatch_failed_total",
    "Total reminders that failed delivery, mark-sent or recurrence",
)

reminders_dispatch_skipped_total = Counter(
    "reminders_dispatch_skipped_total",
    "Total reminders already marked sent by a concurrent run",
)

recurrence_successors_created_total = Counter(
    "reminder_recurrence_successors_created_total",
    "Total successor reminders created for recurring chains",
)

daily_summaries_sent_total = Counter(
    "reminder_daily_summaries_sent_total",
    "Total daily summaries delivered",
)

daily_summaries_failed_total = Counter(
    "reminder_daily_summaries_failed_total",
    "Total daily summaries that failed for a user",
)
