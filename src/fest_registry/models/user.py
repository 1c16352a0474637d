"""SQLModel User model"""

import enum
from datetime import datetime, timezone
from typing import Optional

from sqlmodel import Field, SQLModel

from fest_registry.models.event import enum_column


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    USER = "user"


class User(SQLModel, table=True):
    """User row created on first sign-in; id is the identity provider subject"""

    __tablename__ = "users"

    id: str = Field(primary_key=True)
    email: str = Field(index=True)
    name: Optional[str] = None
    role: UserRole = Field(
        default=UserRole.USER,
        sa_column=enum_column(UserRole, "user_role", UserRole.USER),
    )
    created_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    updated_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
