"""SQLModel Payment model"""

import enum
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy import Column, Numeric
from sqlmodel import Field, SQLModel

from fest_registry.models.event import enum_column


class PaymentRecordStatus(str, enum.Enum):
    """Lifecycle of one payment attempt; completed and failed are terminal."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class Payment(SQLModel, table=True):
    """One attempt at paying for a registration through the gateway"""

    __tablename__ = "payments"

    id: str = Field(default_factory=lambda: uuid.uuid4().hex, primary_key=True)
    registration_id: str = Field(foreign_key="registrations.id", index=True)
    user_id: str = Field(index=True)
    event_id: str = Field(foreign_key="events.id")
    amount: Decimal = Field(sa_column=Column(Numeric(10, 2), nullable=False))
    currency: str = Field(default="INR", max_length=3)
    status: PaymentRecordStatus = Field(
        default=PaymentRecordStatus.PENDING,
        sa_column=enum_column(
            PaymentRecordStatus, "payment_status", PaymentRecordStatus.PENDING
        ),
    )
    gateway_order_id: Optional[str] = Field(default=None, index=True)
    # One gateway payment can settle at most one record
    gateway_payment_id: Optional[str] = Field(default=None, unique=True, index=True)
    failure_reason: Optional[str] = None
    created_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    updated_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    @property
    def amount_minor_units(self) -> int:
        """Amount in the currency's smallest unit (paise for INR)."""
        return int((self.amount * 100).to_integral_value())
