"""SQLModel Event model"""

import enum
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy import CheckConstraint, Column, DateTime, Integer, Numeric
from sqlalchemy import Enum as SAEnum
from sqlmodel import Field, SQLModel


class EventCategory(str, enum.Enum):
    TECHNICAL = "technical"
    CULTURAL = "cultural"
    SPORTS = "sports"
    OTHER = "other"


class EventStatus(str, enum.Enum):
    UPCOMING = "upcoming"
    ONGOING = "ongoing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


def enum_column(enum_cls, name: str, default=None) -> Column:
    """String-backed enum column storing member values (portable across backends).

    Columns without a default are nullable.
    """
    return Column(
        SAEnum(
            enum_cls,
            name=name,
            native_enum=False,
            length=20,
            values_callable=lambda members: [m.value for m in members],
        ),
        nullable=default is None,
        default=default,
        server_default=default.value if default is not None else None,
    )


class Event(SQLModel, table=True):
    """A fest event with a bounded number of participant slots.

    current_participants is owned by the registration and team transactions;
    nothing else writes it.
    """

    __tablename__ = "events"

    id: str = Field(default_factory=lambda: uuid.uuid4().hex, primary_key=True)
    title: str
    description: str = Field(default="")
    category: EventCategory = Field(
        default=EventCategory.OTHER,
        sa_column=enum_column(EventCategory, "event_category", EventCategory.OTHER),
    )
    date: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))
    location: Optional[str] = None
    banner_url: Optional[str] = None

    max_participants: int = Field(sa_column=Column(Integer, nullable=False))
    current_participants: int = Field(
        default=0,
        sa_column=Column(Integer, nullable=False, server_default="0"),
    )

    is_paid: bool = Field(default=False)
    price: Optional[Decimal] = Field(
        default=None, sa_column=Column(Numeric(10, 2), nullable=True)
    )
    is_team_event: bool = Field(default=False)
    max_team_size: Optional[int] = None

    status: EventStatus = Field(
        default=EventStatus.UPCOMING,
        sa_column=enum_column(EventStatus, "event_status", EventStatus.UPCOMING),
    )
    created_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    updated_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    __table_args__ = (
        CheckConstraint("max_participants >= 0", name="ck_events_max_ge_0"),
        CheckConstraint("current_participants >= 0", name="ck_events_current_ge_0"),
        CheckConstraint(
            "current_participants <= max_participants",
            name="ck_events_current_le_max",
        ),
    )

    @property
    def effective_team_size(self) -> int:
        """Team size limit; events without one allow a single-member team."""
        return self.max_team_size or 1

    @property
    def is_full(self) -> bool:
        return self.current_participants >= self.max_participants
