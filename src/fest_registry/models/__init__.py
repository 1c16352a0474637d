"""Database models for Fest Registry"""

from fest_registry.models.event import Event, EventCategory, EventStatus
from fest_registry.models.payment import Payment, PaymentRecordStatus
from fest_registry.models.registration import (
    PaymentStatus,
    Registration,
    RegistrationStatus,
    TeamRole,
    registration_id_for,
)
from fest_registry.models.team import Team, TeamMember
from fest_registry.models.user import User, UserRole

__all__ = [
    "Event",
    "EventCategory",
    "EventStatus",
    "Payment",
    "PaymentRecordStatus",
    "PaymentStatus",
    "Registration",
    "RegistrationStatus",
    "Team",
    "TeamMember",
    "TeamRole",
    "User",
    "UserRole",
    "registration_id_for",
]
