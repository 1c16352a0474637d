"""Registration service: the capacity-safe registration transaction"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from fest_registry.errors import AlreadyRegistered, EventFull, RegistrationNotFound
from fest_registry.models.registration import (
    Registration,
    RegistrationStatus,
    TeamRole,
    registration_id_for,
)
from fest_registry.models.user import User
from fest_registry.services.booking import (
    ContactInfo,
    claim_event_slot,
    ensure_not_registered,
    load_open_event,
    new_registration,
)
from fest_registry.services.team_service import add_team
from fest_registry.services.transactions import run_in_transaction

logger = logging.getLogger(__name__)


@dataclass
class RegistrationWithUser:
    registration: Registration
    user: Optional[User]


class RegistrationService:
    """Service for managing event registrations"""

    def __init__(self, db_session: Session):
        self.db = db_session

    def register(
        self,
        event_id: str,
        user_id: str,
        contact: ContactInfo,
        team_name: Optional[str] = None,
    ) -> Registration:
        """
        Register a user for an event, optionally founding a team.

        Runs as one transaction: the event is re-read inside it, capacity and
        duplicate checks happen there, and the registration insert plus the
        participant counter increment commit together or not at all.

        Args:
            event_id: Event to register for
            user_id: Authenticated user's id
            contact: Contact details from the registration form
            team_name: When given, a new team led by this user is created

        Returns:
            Registration: The created registration (id is "{event_id}_{user_id}")

        Raises:
            EventNotFound, EventCancelled, EventFull, AlreadyRegistered,
            NotATeamEvent
        """

        def _register(db: Session) -> Registration:
            event = load_open_event(db, event_id)
            registration_id = ensure_not_registered(db, event_id, user_id)
            if event.is_full:
                raise EventFull(event_id)

            team = None
            if team_name and team_name.strip():
                team = add_team(db, event, user_id, team_name)

            registration = new_registration(
                registration_id,
                event,
                user_id,
                contact,
                team=team,
                team_role=TeamRole.LEADER if team else None,
            )
            db.add(registration)
            try:
                db.flush()
            except IntegrityError as e:
                # A concurrent insert won the deterministic primary key
                raise AlreadyRegistered(event_id, user_id) from e

            claim_event_slot(db, event_id)
            return registration

        registration = run_in_transaction(self.db, _register)
        logger.info(f"Created registration {registration.id} for event {event_id}")
        return registration

    def get_registration_by_id(self, registration_id: str) -> Optional[Registration]:
        """Get a registration by ID"""
        return self.db.get(Registration, registration_id, populate_existing=True)

    def get_registration(self, event_id: str, user_id: str) -> Optional[Registration]:
        """Get the user's registration for an event, if any"""
        return self.get_registration_by_id(registration_id_for(event_id, user_id))

    def get_registrations_for_event(self, event_id: str) -> List[RegistrationWithUser]:
        """All registrations for an event with the registrant's user row"""
        stmt = (
            select(Registration, User)
            .join(User, User.id == Registration.user_id, isouter=True)
            .where(Registration.event_id == event_id)
            .order_by(Registration.registered_at.asc())
        )
        return [
            RegistrationWithUser(registration=reg, user=user)
            for reg, user in self.db.exec(stmt).all()
        ]

    def get_registrations_for_user(self, user_id: str) -> List[Registration]:
        stmt = (
            select(Registration)
            .where(Registration.user_id == user_id)
            .order_by(Registration.registered_at.desc())
        )
        return list(self.db.exec(stmt).all())

    def update_registration_status(
        self, registration_id: str, status: RegistrationStatus
    ) -> Registration:
        """Admin approval or rejection of a registration"""

        def _update(db: Session) -> Registration:
            registration = db.get(
                Registration,
                registration_id,
                with_for_update=True,
                populate_existing=True,
            )
            if registration is None:
                raise RegistrationNotFound(registration_id)
            registration.status = status
            registration.updated_at = datetime.now(timezone.utc)
            db.add(registration)
            return registration

        registration = run_in_transaction(self.db, _update)
        logger.info(f"Registration {registration_id} marked {status.value}")
        return registration
