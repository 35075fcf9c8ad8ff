import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from reminder_engine.api.deps import extract_token, get_db, get_run_controller, verify_secret_dependency
from .controller import RunController
from .exceptions import AuthError, SelectionError
from .metrics import reminders_created_total
from .repository import create_reminder, get_reminder, list_reminders
from .schemas import ReminderCreate, ReminderRead, RunResult

logger = logging.getLogger(__name__)

cron_router = APIRouter()
router = APIRouter(dependencies=[Depends(verify_secret_dependency)])


@cron_router.api_route(
    "/cron",
    methods=["GET", "POST"],
    response_model=RunResult,
    response_model_exclude_none=True,
)
def run_cron_endpoint(
    token: Optional[str] = Depends(extract_token),
    controller: RunController = Depends(get_run_controller),
):
    """Process due reminders. Called periodically by an external scheduler."""
    try:
        return controller.run(auth_token=token)
    except AuthError:
        return JSONResponse(status_code=401, content={"error": "Unauthorized"})
    except SelectionError as e:
        logger.error(f"Cron error: {e}")
        return JSONResponse(status_code=500, content={"error": "Internal error", "message": str(e)})


@router.get("/health")
def health_check():
    return {"status": "healthy", "service": "reminders"}


@router.post("/", response_model=ReminderRead, status_code=201)
def create_reminder_endpoint(payload: ReminderCreate, db: Session = Depends(get_db)):
    reminder = create_reminder(db, payload)
    reminders_created_total.inc()
    return reminder


@router.get("/", response_model=List[ReminderRead])
def list_reminders_endpoint(
    user_id: Optional[str] = None,
    pending: Optional[bool] = None,
    limit: int = 100,
    db: Session = Depends(get_db),
):
    return list_reminders(db, user_id=user_id, pending=pending, limit=limit)


@router.get("/{reminder_id}", response_model=ReminderRead)
def get_reminder_endpoint(reminder_id: str, db: Session = Depends(get_db)):
    reminder = get_reminder(db, reminder_id)
    if not reminder:
        raise HTTPException(status_code=404, detail="Reminder not found")
    return reminder
