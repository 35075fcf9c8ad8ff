from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ReminderSettings(BaseSettings):
    # Cron authentication
    CRON_SECRET: Optional[str] = None
    ALLOW_UNAUTHENTICATED_CRON: bool = False  # explicit opt-in when no secret is set

    # Daily summaries
    SUMMARY_ENABLED: bool = True
    DAILY_SUMMARY_UTC_HOUR: Optional[int] = Field(default=None, ge=0, le=23)

    # Telegram
    TELEGRAM_BOT_TOKEN: Optional[str] = None
    TELEGRAM_API_BASE: str = "https://api.telegram.org"
    TELEGRAM_PARSE_MODE: str = "HTML"
    NOTIFIER_TIMEOUT_SECONDS: float = Field(default=10.0, gt=0)

    # Dispatch
    DISPATCH_CONCURRENCY: int = Field(default=1, ge=1)
    DELIVERY_TEMPLATE: str = "🔔 <b>Reminder</b>\n\n{message}"

    # Metrics
    METRICS_ENABLED: bool = True

    @field_validator("DELIVERY_TEMPLATE")
    @classmethod
    def _check_delivery_template(cls, v: str) -> str:
        try:
            v.format(message="")
        except (KeyError, IndexError, ValueError) as e:
            raise ValueError(f"DELIVERY_TEMPLATE may only use the {{message}} placeholder: {e!r}") from e
        return v

    model_config = SettingsConfigDict(env_prefix="REMINDER_", env_file=".env", extra="ignore")


@lru_cache
def get_settings() -> ReminderSettings:
    return ReminderSettings()
