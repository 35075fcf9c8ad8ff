import logging
import sys
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from prometheus_fastapi_instrumentator import Instrumentator

from reminder_engine.core.config import settings
from reminder_engine.db.base import Base
from reminder_engine.db.session import engine
from reminder_engine.reminders import models  # noqa: F401  registers tables
from reminder_engine.reminders.api import cron_router, router as reminders_router
from reminder_engine.reminders.config import get_settings

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting up {settings.PROJECT_NAME}...")
    if settings.CREATE_TABLES_ON_STARTUP:
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables ensured")

    reminder_settings = get_settings()
    if not reminder_settings.CRON_SECRET:
        if reminder_settings.ALLOW_UNAUTHENTICATED_CRON:
            logger.warning("⚠️ REMINDER_CRON_SECRET is not set and ALLOW_UNAUTHENTICATED_CRON is on: cron endpoint is open")
        else:
            logger.warning("⚠️ REMINDER_CRON_SECRET is not set: cron endpoint will reject every call")
    if not reminder_settings.TELEGRAM_BOT_TOKEN:
        logger.warning("⚠️ REMINDER_TELEGRAM_BOT_TOKEN is not set: deliveries will fail and stay pending")
    yield
    logger.info(f"{settings.PROJECT_NAME} shutdown complete")


def create_app() -> FastAPI:
    app = FastAPI(title=settings.PROJECT_NAME, version=settings.VERSION, lifespan=lifespan)
    app.include_router(cron_router, prefix=settings.API_V1_STR, tags=["cron"])
    app.include_router(reminders_router, prefix=f"{settings.API_V1_STR}/reminders", tags=["reminders"])
    if get_settings().METRICS_ENABLED:
        Instrumentator().instrument(app).expose(app, endpoint="/metrics")
    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "reminder_engine.main:app",
        host=settings.SERVER_HOST,
        port=settings.SERVER_PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )
