"""Door check-in endpoints for event staff"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlmodel import Session

from fest_registry.auth.dependencies import require_admin
from fest_registry.models.database import get_db
from fest_registry.models.user import User
from fest_registry.services.checkin_service import CheckInService
from fest_registry.services.event_service import EventService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Check-in"])


class CheckInRequest(BaseModel):
    registration_id: str = Field(
        ..., min_length=1, description="Registration id scanned from the attendee"
    )


class CheckInResponse(BaseModel):
    success: bool
    registration_id: str
    name: str
    team_name: Optional[str] = None
    checked_in_at: Optional[datetime] = None


class AttendanceResponse(BaseModel):
    event_id: str
    total: int
    checked_in: int
    not_checked_in: int


@router.post("/events/{event_id}/check-in", response_model=CheckInResponse)
def check_in(
    event_id: str,
    request: CheckInRequest,
    staff: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    registration = CheckInService(db).check_in(
        request.registration_id.strip(), event_id, staff.id
    )
    return CheckInResponse(
        success=True,
        registration_id=registration.id,
        name=registration.name,
        team_name=registration.team_name,
        checked_in_at=registration.checked_in_at,
    )


@router.get("/events/{event_id}/attendance", response_model=AttendanceResponse)
def attendance(
    event_id: str,
    staff: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    EventService(db).require_event(event_id)
    summary = CheckInService(db).attendance(event_id)
    return AttendanceResponse(
        event_id=summary.event_id,
        total=summary.total,
        checked_in=summary.checked_in,
        not_checked_in=summary.not_checked_in,
    )
