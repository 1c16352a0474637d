"""Transactional building blocks shared by registration and team joins.

All functions here take the session of an already-open transaction (see
run_in_transaction) and never commit. Counter increments are conditional
UPDATE statements that re-check their bound in the same statement, so two
transactions racing for the last slot cannot both succeed.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field
from sqlalchemy import update
from sqlmodel import Session

from fest_registry.errors import (
    AlreadyRegistered,
    EventCancelled,
    EventFull,
    EventNotFound,
    TeamFull,
)
from fest_registry.models.event import Event, EventStatus
from fest_registry.models.registration import (
    PaymentStatus,
    Registration,
    RegistrationStatus,
    TeamRole,
    registration_id_for,
)
from fest_registry.models.team import Team


class ContactInfo(BaseModel):
    """Contact details captured on the registration form"""

    name: str = Field(default="", max_length=200)
    email: str = Field(default="", max_length=320)
    phone: str = Field(default="", max_length=32)
    college: str = Field(default="", max_length=200)
    student_id: Optional[str] = Field(default=None, max_length=64)


def load_open_event(db: Session, event_id: str) -> Event:
    """Re-read and lock the event row; reject missing or cancelled events."""
    event = db.get(Event, event_id, with_for_update=True, populate_existing=True)
    if event is None:
        raise EventNotFound(event_id)
    if event.status == EventStatus.CANCELLED:
        raise EventCancelled(event_id)
    return event


def ensure_not_registered(db: Session, event_id: str, user_id: str) -> str:
    """Return the deterministic registration id, or raise if it is taken."""
    registration_id = registration_id_for(event_id, user_id)
    existing = db.get(Registration, registration_id, populate_existing=True)
    if existing is not None:
        raise AlreadyRegistered(event_id, user_id)
    return registration_id


def claim_event_slot(db: Session, event_id: str) -> None:
    """Increment current_participants by one if a slot is still free."""
    stmt = (
        update(Event)
        .where(
            Event.id == event_id,
            Event.current_participants < Event.max_participants,
        )
        .values(
            current_participants=Event.current_participants + 1,
            updated_at=datetime.now(timezone.utc),
        )
        .execution_options(synchronize_session=False)
    )
    result = db.exec(stmt)
    if result.rowcount != 1:
        raise EventFull(event_id)


def claim_team_slot(db: Session, team_id: str, max_team_size: int) -> None:
    """Increment a team's member_count by one if it is below max_team_size."""
    stmt = (
        update(Team)
        .where(Team.id == team_id, Team.member_count < max_team_size)
        .values(
            member_count=Team.member_count + 1,
            updated_at=datetime.now(timezone.utc),
        )
        .execution_options(synchronize_session=False)
    )
    result = db.exec(stmt)
    if result.rowcount != 1:
        raise TeamFull(team_id)


def new_registration(
    registration_id: str,
    event: Event,
    user_id: str,
    contact: ContactInfo,
    team: Optional[Team] = None,
    team_role: Optional[TeamRole] = None,
) -> Registration:
    payment_status = PaymentStatus.PENDING if event.is_paid else PaymentStatus.NOT_REQUIRED
    return Registration(
        id=registration_id,
        event_id=event.id,
        user_id=user_id,
        name=contact.name,
        email=contact.email,
        phone=contact.phone,
        college=contact.college,
        student_id=contact.student_id,
        team_id=team.id if team else None,
        team_name=team.name if team else None,
        team_role=team_role,
        payment_status=payment_status,
        status=RegistrationStatus.PENDING,
    )
