"""Event service: admin management of events"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator
from sqlalchemy import delete, func, update
from sqlmodel import Session, select

from fest_registry.errors import (
    EventHasRegistrations,
    EventNotFound,
    InvalidCapacity,
    InvalidEventSettings,
)
from fest_registry.models.event import Event, EventCategory, EventStatus
from fest_registry.models.payment import Payment, PaymentRecordStatus
from fest_registry.models.registration import PaymentStatus, Registration
from fest_registry.models.team import Team
from fest_registry.services.transactions import run_in_transaction

logger = logging.getLogger(__name__)


def _check_paid_and_team_rules(
    is_paid: bool,
    price: Optional[Decimal],
    is_team_event: bool,
    max_team_size: Optional[int],
) -> None:
    if is_paid and (price is None or price <= 0):
        raise ValueError("Paid events need a price greater than zero")
    if is_team_event and max_team_size is not None and max_team_size < 1:
        raise ValueError("max_team_size must be >= 1")


def _check_existing_teams(db: Session, event: Event, values: dict) -> None:
    """Reject team settings that existing teams already exceed."""
    largest = db.exec(
        select(func.max(Team.member_count)).where(Team.event_id == event.id)
    ).one()
    if not largest:
        return

    if not values.get("is_team_event", event.is_team_event):
        raise InvalidEventSettings("Event already has teams")
    new_size = values.get("max_team_size", event.max_team_size) or 1
    if new_size < largest:
        raise InvalidEventSettings(
            f"max_team_size cannot be lower than the largest team ({largest})"
        )


def _waive_pending_payments(db: Session, event_id: str) -> None:
    """Settle registrations still owing money once an event becomes free."""
    now = datetime.now(timezone.utc)
    waived = db.exec(
        update(Registration)
        .where(
            Registration.event_id == event_id,
            Registration.payment_status == PaymentStatus.PENDING,
        )
        .values(payment_status=PaymentStatus.NOT_REQUIRED, updated_at=now)
        .execution_options(synchronize_session=False)
    )
    db.exec(
        update(Payment)
        .where(
            Payment.event_id == event_id,
            Payment.status == PaymentRecordStatus.PENDING,
        )
        .values(
            status=PaymentRecordStatus.FAILED,
            failure_reason="event is no longer paid",
            updated_at=now,
        )
        .execution_options(synchronize_session=False)
    )
    logger.info(f"Waived payment for {waived.rowcount} registrations on {event_id}")


class EventCreate(BaseModel):
    """Fields an admin supplies when creating an event"""

    title: str = Field(min_length=1, max_length=200)
    description: str = ""
    category: EventCategory = EventCategory.OTHER
    date: datetime
    location: Optional[str] = None
    banner_url: Optional[str] = None
    max_participants: int = Field(ge=0)
    is_paid: bool = False
    price: Optional[Decimal] = Field(default=None, ge=0)
    is_team_event: bool = False
    max_team_size: Optional[int] = Field(default=None, ge=1)
    status: EventStatus = EventStatus.UPCOMING

    @model_validator(mode="after")
    def _validate_rules(self):
        _check_paid_and_team_rules(
            self.is_paid, self.price, self.is_team_event, self.max_team_size
        )
        return self


class EventUpdate(BaseModel):
    """Partial update; current_participants is not editable here"""

    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    category: Optional[EventCategory] = None
    date: Optional[datetime] = None
    location: Optional[str] = None
    banner_url: Optional[str] = None
    max_participants: Optional[int] = Field(default=None, ge=0)
    is_paid: Optional[bool] = None
    price: Optional[Decimal] = Field(default=None, ge=0)
    is_team_event: Optional[bool] = None
    max_team_size: Optional[int] = Field(default=None, ge=1)
    status: Optional[EventStatus] = None


class EventService:
    """Service for handling event operations"""

    def __init__(self, db_session: Session):
        self.db = db_session

    def create_event(self, data: EventCreate) -> Event:
        event = Event(**data.model_dump(), current_participants=0)
        self.db.add(event)
        self.db.commit()
        self.db.refresh(event)

        logger.info(f"Event created successfully: {event.id}")
        return event

    def get_event(self, event_id: str) -> Optional[Event]:
        """Get an event by ID, always reading the current row"""
        return self.db.get(Event, event_id, populate_existing=True)

    def require_event(self, event_id: str) -> Event:
        event = self.get_event(event_id)
        if event is None:
            raise EventNotFound(event_id)
        return event

    def list_events(
        self,
        status: Optional[EventStatus] = None,
        category: Optional[EventCategory] = None,
    ) -> List[Event]:
        """Events ordered by date ascending, optionally filtered"""
        stmt = select(Event)
        if status is not None:
            stmt = stmt.where(Event.status == status)
        if category is not None:
            stmt = stmt.where(Event.category == category)
        stmt = stmt.order_by(Event.date.asc())
        return list(self.db.exec(stmt.execution_options(populate_existing=True)).all())

    def update_event(self, event_id: str, changes: EventUpdate) -> Event:
        """
        Apply an admin edit.

        Lowering max_participants below the number of registrations already
        taken raises InvalidCapacity; the guard is part of the UPDATE itself
        so it holds against concurrent registrations. Team settings cannot
        drop below existing teams, and making a paid event free waives what
        its registrations still owe.
        """
        values = changes.model_dump(exclude_unset=True)

        def _update(db: Session) -> Event:
            event = db.get(Event, event_id, with_for_update=True, populate_existing=True)
            if event is None:
                raise EventNotFound(event_id)
            if not values:
                return event

            try:
                _check_paid_and_team_rules(
                    values.get("is_paid", event.is_paid),
                    values.get("price", event.price),
                    values.get("is_team_event", event.is_team_event),
                    values.get("max_team_size", event.max_team_size),
                )
            except ValueError as e:
                raise InvalidEventSettings(str(e)) from e

            if "is_team_event" in values or "max_team_size" in values:
                _check_existing_teams(db, event, values)

            stmt = update(Event).where(Event.id == event_id)
            new_max = values.get("max_participants")
            if new_max is not None:
                stmt = stmt.where(Event.current_participants <= new_max)

            result = db.exec(
                stmt.values(**values, updated_at=datetime.now(timezone.utc))
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                raise InvalidCapacity(
                    "max_participants cannot be lower than current registrations"
                )

            if event.is_paid and values.get("is_paid") is False:
                _waive_pending_payments(db, event_id)
            return event

        event = run_in_transaction(self.db, _update)
        logger.info(f"Event updated successfully: {event_id}")
        return event

    def delete_event(self, event_id: str) -> None:
        """Delete an event nobody has registered for"""

        def _delete(db: Session) -> None:
            event = db.get(Event, event_id, with_for_update=True, populate_existing=True)
            if event is None:
                raise EventNotFound(event_id)
            result = db.exec(
                delete(Event)
                .where(Event.id == event_id, Event.current_participants == 0)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                raise EventHasRegistrations(event_id)
            db.expunge(event)

        run_in_transaction(self.db, _delete)
        logger.info(f"Event deleted: {event_id}")
