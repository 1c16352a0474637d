"""Check-in service: door validation of registrations"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import func, update
from sqlmodel import Session, select

from fest_registry.errors import (
    AlreadyCheckedIn,
    EventMismatch,
    NotApproved,
    PaymentPending,
    RegistrationNotFound,
)
from fest_registry.models.registration import (
    PaymentStatus,
    Registration,
    RegistrationStatus,
)
from fest_registry.services.transactions import run_in_transaction

logger = logging.getLogger(__name__)

SETTLED_PAYMENT_STATUSES = (PaymentStatus.COMPLETED, PaymentStatus.NOT_REQUIRED)


@dataclass
class AttendanceSummary:
    event_id: str
    total: int
    checked_in: int

    @property
    def not_checked_in(self) -> int:
        return self.total - self.checked_in


class CheckInService:
    """Service validating and recording check-ins at the event"""

    def __init__(self, db_session: Session):
        self.db = db_session

    def check_in(
        self, registration_id: str, event_id: str, staff_user_id: str
    ) -> Registration:
        """
        Mark a registration as present at the event.

        The final write only succeeds while checked_in is still false, so two
        simultaneous scans of the same code produce one check-in and one
        AlreadyCheckedIn.

        Raises:
            RegistrationNotFound, EventMismatch, NotApproved, PaymentPending,
            AlreadyCheckedIn
        """

        def _check_in(db: Session) -> Registration:
            registration = db.get(Registration, registration_id, populate_existing=True)
            if registration is None:
                raise RegistrationNotFound(registration_id)
            if registration.event_id != event_id:
                raise EventMismatch(registration_id, event_id)
            if registration.status != RegistrationStatus.APPROVED:
                raise NotApproved(registration_id)
            if registration.payment_status not in SETTLED_PAYMENT_STATUSES:
                raise PaymentPending(registration_id)
            if registration.checked_in:
                raise AlreadyCheckedIn(registration_id)

            now = datetime.now(timezone.utc)
            result = db.exec(
                update(Registration)
                .where(
                    Registration.id == registration_id,
                    Registration.checked_in.is_(False),
                )
                .values(
                    checked_in=True,
                    checked_in_at=now,
                    checked_in_by=staff_user_id,
                    updated_at=now,
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                raise AlreadyCheckedIn(registration_id)
            return registration

        registration = run_in_transaction(self.db, _check_in)
        logger.info(f"Registration {registration_id} checked in by {staff_user_id}")
        return registration

    def attendance(self, event_id: str) -> AttendanceSummary:
        """Counts of registrations and check-ins for an event's roster"""
        total = self.db.exec(
            select(func.count(Registration.id)).where(Registration.event_id == event_id)
        ).one()
        checked_in = self.db.exec(
            select(func.count(Registration.id)).where(
                Registration.event_id == event_id,
                Registration.checked_in.is_(True),
            )
        ).one()
        return AttendanceSummary(event_id=event_id, total=total, checked_in=checked_in)
