"""
Schemas for reminders, recurrence patterns and run results
"""
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from reminder_engine.utils.timezone import to_utc_aware


FREQUENCIES = ("daily", "weekly", "monthly")

DetailStatus = Literal["sent", "error", "skipped"]


class RecurrencePattern(BaseModel):
    """Recurrence pattern stored as JSON on a reminder.

    ``frequency`` is kept as a free string here because stored patterns with
    an unknown frequency must still load (they simply end the chain).
    """
    frequency: str
    interval: int = Field(default=1, ge=1)
    end_date: Optional[datetime] = None
    max_occurrences: Optional[int] = Field(default=None, ge=1)
    # day of month a monthly chain returns to after a short month clamps it
    anchor_day: Optional[int] = Field(default=None, ge=1, le=31)

    model_config = ConfigDict(extra="ignore")

    @field_validator("end_date")
    @classmethod
    def _end_date_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return to_utc_aware(v)


class ReminderCreate(BaseModel):
    """Schema for creating a reminder (also used for recurrence successors)"""
    user_id: str
    channel_target: str
    message: str = Field(..., min_length=1)
    scheduled_at: datetime
    is_recurring: bool = False
    recurrence_pattern: Optional[Dict[str, Any]] = None
    parent_reminder_id: Optional[str] = None
    occurrence_number: int = Field(default=1, ge=1)

    @field_validator("scheduled_at")
    @classmethod
    def _scheduled_at_utc(cls, v: datetime) -> datetime:
        return to_utc_aware(v)

    @model_validator(mode="after")
    def _check_recurrence(self) -> "ReminderCreate":
        if self.recurrence_pattern is None:
            if self.is_recurring:
                raise ValueError("recurrence_pattern is required for recurring reminders")
            return self
        pattern = RecurrencePattern.model_validate(self.recurrence_pattern)
        if pattern.frequency not in FREQUENCIES:
            raise ValueError(f"frequency must be one of {', '.join(FREQUENCIES)}")
        if pattern.frequency == "monthly" and pattern.anchor_day is None:
            pattern.anchor_day = self.scheduled_at.day
        self.is_recurring = True
        self.recurrence_pattern = pattern.model_dump(mode="json")
        return self


class ReminderRead(BaseModel):
    id: str
    user_id: str
    channel_target: str
    message: str
    scheduled_at: datetime
    sent_at: Optional[datetime] = None
    is_recurring: bool
    recurrence_pattern: Optional[Dict[str, Any]] = None
    parent_reminder_id: Optional[str] = None
    occurrence_number: int
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class RunDetail(BaseModel):
    id: str
    status: DetailStatus
    error: Optional[str] = None

    model_config = ConfigDict(frozen=True)


class RunResult(BaseModel):
    """Outcome of one run; built once from the per-item details"""
    ok: bool = True
    timestamp: Optional[datetime] = None
    processed: int = 0
    sent: int = 0
    errors: int = 0
    skipped: int = 0
    details: List[RunDetail] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_details(cls, details: List[RunDetail], timestamp: Optional[datetime] = None) -> "RunResult":
        return cls(
            timestamp=timestamp,
            processed=len(details),
            sent=sum(1 for d in details if d.status == "sent"),
            errors=sum(1 for d in details if d.status == "error"),
            skipped=sum(1 for d in details if d.status == "skipped"),
            details=list(details),
        )


class SummaryReport(BaseModel):
    gate_open: bool = False
    eligible: int = 0
    sent: int = 0
    skipped: int = 0
    failed: int = 0
