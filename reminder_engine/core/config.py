from typing import Optional
from enum import Enum
from urllib.parse import quote_plus

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class Settings(BaseSettings):
    # Environment Configuration
    ENVIRONMENT: Environment = Environment.DEVELOPMENT

    # Project Information
    PROJECT_NAME: str = "Reminder Engine"
    VERSION: str = "0.1.0"
    API_V1_STR: str = "/api/v1"

    # Server Configuration
    SERVER_HOST: str = "0.0.0.0"
    SERVER_PORT: int = 8000

    # Database
    POSTGRES_SERVER: Optional[str] = None
    POSTGRES_PORT: Optional[int] = None
    POSTGRES_USER: Optional[str] = None
    POSTGRES_PASSWORD: Optional[str] = None
    POSTGRES_DB: Optional[str] = None
    SQLALCHEMY_DATABASE_URI: Optional[str] = None
    SQLITE_FALLBACK_PATH: str = "./reminders.db"
    CREATE_TABLES_ON_STARTUP: bool = True

    # Timezone used when a user has none set
    DEFAULT_TIMEZONE: str = "UTC"

    LOG_LEVEL: str = "INFO"

    @model_validator(mode="after")
    def _derive_database_uri(self) -> "Settings":
        if self.SQLALCHEMY_DATABASE_URI:
            return self
        if self.POSTGRES_USER and self.POSTGRES_SERVER and self.POSTGRES_DB:
            safe_user = quote_plus(self.POSTGRES_USER)
            port = self.POSTGRES_PORT or 5432
            if self.POSTGRES_PASSWORD:
                safe_password = quote_plus(self.POSTGRES_PASSWORD)
                self.SQLALCHEMY_DATABASE_URI = (
                    f"postgresql://{safe_user}:{safe_password}@{self.POSTGRES_SERVER}:{port}/{self.POSTGRES_DB}"
                )
            else:
                self.SQLALCHEMY_DATABASE_URI = (
                    f"postgresql://{safe_user}@{self.POSTGRES_SERVER}:{port}/{self.POSTGRES_DB}"
                )
        else:
            self.SQLALCHEMY_DATABASE_URI = f"sqlite:///{self.SQLITE_FALLBACK_PATH}"
        return self

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == Environment.PRODUCTION

    @property
    def uses_sqlite(self) -> bool:
        return str(self.SQLALCHEMY_DATABASE_URI).startswith("sqlite")

    model_config = SettingsConfigDict(case_sensitive=True, env_file=".env", extra="ignore")


settings = Settings()
