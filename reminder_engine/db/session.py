from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from reminder_engine.core.config import settings


def _engine_kwargs() -> dict:
    if settings.uses_sqlite:
        # Worker threads share the engine when dispatch concurrency is enabled
        return {"connect_args": {"check_same_thread": False}, "echo": False}
    return {
        "pool_size": 10,
        "max_overflow": 20,
        "pool_recycle": 300,   # Recycle connections every 5 minutes
        "pool_pre_ping": True, # Validate connections before use
        "pool_timeout": 30,
        "echo": False,
    }


engine = create_engine(settings.SQLALCHEMY_DATABASE_URI, **_engine_kwargs())

SessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)
