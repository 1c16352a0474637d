"""Team models: a team and its member rows"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import CheckConstraint, Column, Integer, UniqueConstraint
from sqlmodel import Field, SQLModel


class Team(SQLModel, table=True):
    """Team registered for a team event.

    member_count mirrors the number of team_members rows and is the value the
    size check is enforced against.
    """

    __tablename__ = "teams"

    id: str = Field(default_factory=lambda: uuid.uuid4().hex, primary_key=True)
    event_id: str = Field(foreign_key="events.id", index=True)
    name: str
    invite_code: str = Field(index=True)
    leader_id: str
    member_count: int = Field(
        default=1,
        sa_column=Column(Integer, nullable=False, server_default="1"),
    )
    created_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    updated_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    __table_args__ = (
        UniqueConstraint("event_id", "invite_code", name="uq_teams_event_invite_code"),
        CheckConstraint("member_count >= 1", name="ck_teams_member_count_ge_1"),
    )


class TeamMember(SQLModel, table=True):
    """One user's membership in a team."""

    __tablename__ = "team_members"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    team_id: str = Field(foreign_key="teams.id", index=True)
    user_id: str
    joined_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    __table_args__ = (
        UniqueConstraint("team_id", "user_id", name="uq_team_members_team_user"),
    )
