"""Reminder delivery engine (selector, dispatcher, recurrence, daily summaries).

A run is triggered externally, either by an HTTP call to the cron endpoint or
by the ``reminder-engine-run`` command. Each run is a stateless unit of work:
due reminders are delivered through the notifier, conditionally marked sent,
and recurring ones are expanded into their next occurrence.
"""
