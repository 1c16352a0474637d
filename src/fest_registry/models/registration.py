"""SQLModel Registration model"""

import enum
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, DateTime, UniqueConstraint
from sqlmodel import Field, SQLModel

from fest_registry.models.event import enum_column


class RegistrationStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    NOT_REQUIRED = "not_required"


class TeamRole(str, enum.Enum):
    LEADER = "leader"
    MEMBER = "member"


def registration_id_for(event_id: str, user_id: str) -> str:
    """Deterministic primary key: at most one registration per (event, user)."""
    return f"{event_id}_{user_id}"


class Registration(SQLModel, table=True):
    """A user's claim on one slot at one event"""

    __tablename__ = "registrations"

    id: str = Field(primary_key=True)
    event_id: str = Field(foreign_key="events.id", index=True)
    user_id: str = Field(index=True)

    name: str = Field(default="")
    email: str = Field(default="")
    phone: str = Field(default="")
    college: str = Field(default="")
    student_id: Optional[str] = None

    team_id: Optional[str] = Field(default=None, foreign_key="teams.id", index=True)
    team_name: Optional[str] = None
    team_role: Optional[TeamRole] = Field(
        default=None,
        sa_column=enum_column(TeamRole, "team_role"),
    )

    payment_status: PaymentStatus = Field(
        default=PaymentStatus.PENDING,
        sa_column=enum_column(
            PaymentStatus, "registration_payment_status", PaymentStatus.PENDING
        ),
    )
    payment_id: Optional[str] = None
    status: RegistrationStatus = Field(
        default=RegistrationStatus.PENDING,
        sa_column=enum_column(
            RegistrationStatus, "registration_status", RegistrationStatus.PENDING
        ),
    )

    checked_in: bool = Field(default=False)
    checked_in_at: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime(timezone=True), nullable=True)
    )
    checked_in_by: Optional[str] = None

    registered_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    updated_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    __table_args__ = (
        UniqueConstraint("event_id", "user_id", name="uq_registrations_event_user"),
    )
