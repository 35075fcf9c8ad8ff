class ReminderEngineError(Exception):
    """Base class for reminder engine errors."""


class AuthError(ReminderEngineError):
    """The invocation could not be authenticated."""


class SelectionError(ReminderEngineError):
    """Due reminders could not be listed; the run aborts before any side effect."""


class DeliveryError(ReminderEngineError):
    """The notifier rejected, failed or timed out for one reminder."""


class MarkSentError(ReminderEngineError):
    """Delivery succeeded but recording sent_at failed."""


class RecurrenceError(ReminderEngineError):
    """The successor of a delivered recurring reminder could not be created."""


class SummaryError(ReminderEngineError):
    """A daily summary could not be built or delivered for one user."""
