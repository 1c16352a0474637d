"""Event listing and admin event management endpoints"""

import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, ConfigDict
from sqlmodel import Session

from fest_registry.auth.dependencies import require_admin
from fest_registry.models.database import get_db
from fest_registry.models.event import EventCategory, EventStatus
from fest_registry.models.user import User
from fest_registry.services.event_service import EventCreate, EventService, EventUpdate

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Events"])


class EventResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    description: str
    category: EventCategory
    date: datetime
    location: Optional[str] = None
    banner_url: Optional[str] = None
    max_participants: int
    current_participants: int
    is_paid: bool
    price: Optional[float] = None
    is_team_event: bool
    max_team_size: Optional[int] = None
    status: EventStatus
    is_full: bool


@router.get("/events", response_model=List[EventResponse])
def list_events(
    status: Optional[EventStatus] = None,
    category: Optional[EventCategory] = None,
    db: Session = Depends(get_db),
):
    """Public event listing, soonest first"""
    return EventService(db).list_events(status=status, category=category)


@router.get("/events/{event_id}", response_model=EventResponse)
def get_event(event_id: str, db: Session = Depends(get_db)):
    return EventService(db).require_event(event_id)


@router.post(
    "/events", response_model=EventResponse, status_code=status.HTTP_201_CREATED
)
def create_event(
    request: EventCreate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    event = EventService(db).create_event(request)
    logger.info(f"Admin {admin.id} created event {event.id}")
    return event


@router.patch("/events/{event_id}", response_model=EventResponse)
def update_event(
    event_id: str,
    request: EventUpdate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return EventService(db).update_event(event_id, request)


@router.delete("/events/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_event(
    event_id: str,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    EventService(db).delete_event(event_id)
    logger.info(f"Admin {admin.id} deleted event {event_id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
