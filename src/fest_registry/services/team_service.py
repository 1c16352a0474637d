"""Team service: invite codes, team creation and joining by invite code"""

import logging
import secrets
import string
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from fest_registry.errors import (
    AlreadyRegistered,
    InvalidInviteCode,
    NotATeamEvent,
    TeamFull,
    TeamNotFound,
)
from fest_registry.models.event import Event
from fest_registry.models.registration import Registration, TeamRole
from fest_registry.models.team import Team, TeamMember
from fest_registry.services.booking import (
    ContactInfo,
    claim_event_slot,
    claim_team_slot,
    ensure_not_registered,
    load_open_event,
    new_registration,
)
from fest_registry.services.transactions import run_in_transaction

logger = logging.getLogger(__name__)

# URL-safe alphabet, 64 symbols: 10 characters give 60 bits of entropy
INVITE_CODE_ALPHABET = string.ascii_letters + string.digits + "-_"
INVITE_CODE_LENGTH = 10
MAX_INVITE_CODE_ATTEMPTS = 5


def generate_invite_code(length: int = INVITE_CODE_LENGTH) -> str:
    return "".join(secrets.choice(INVITE_CODE_ALPHABET) for _ in range(length))


def add_team(db: Session, event: Event, leader_id: str, name: str) -> Team:
    """Insert a team led by leader_id inside the caller's transaction.

    The leader is the first member. The invite code is unique per event; a
    code already in use is regenerated before insert.
    """
    if not event.is_team_event:
        raise NotATeamEvent(event.id)

    for _ in range(MAX_INVITE_CODE_ATTEMPTS):
        code = generate_invite_code()
        taken = db.exec(
            select(Team.id).where(Team.event_id == event.id, Team.invite_code == code)
        ).first()
        if taken is None:
            break
    else:
        raise RuntimeError("Could not generate a unique invite code")

    team = Team(
        event_id=event.id,
        name=name.strip(),
        invite_code=code,
        leader_id=leader_id,
        member_count=1,
    )
    db.add(team)
    # No relationship() between the tables, so flush the parent row first
    db.flush()
    db.add(TeamMember(team_id=team.id, user_id=leader_id))
    db.flush()
    return team


class TeamService:
    """Service for creating teams and joining them by invite code"""

    def __init__(self, db_session: Session):
        self.db = db_session

    def create_team(self, event_id: str, leader_id: str, name: str) -> Team:
        """Create a team with the leader as its only member, in its own transaction."""

        def _create(db: Session) -> Team:
            event = load_open_event(db, event_id)
            return add_team(db, event, leader_id, name)

        team = run_in_transaction(self.db, _create)
        logger.info(f"Created team {team.id} for event {event_id}")
        return team

    def join_team(
        self,
        event_id: str,
        user_id: str,
        invite_code: str,
        contact: ContactInfo,
    ) -> Registration:
        """
        Join the team behind invite_code and register the user for the event.

        Team size, duplicate registration and event capacity are all
        re-checked inside one transaction; the member_count and
        current_participants increments are conditional on their limits.

        Raises:
            InvalidInviteCode: No team for (event_id, invite_code)
            TeamFull: The team already has max_team_size members
            AlreadyRegistered: The user already holds a registration
            EventFull: The event has no free slot
        """

        def _join(db: Session) -> Registration:
            team = db.exec(
                select(Team)
                .where(Team.event_id == event_id, Team.invite_code == invite_code)
                .with_for_update()
                .execution_options(populate_existing=True)
            ).first()
            if team is None:
                raise InvalidInviteCode()

            event = load_open_event(db, event_id)
            max_team_size = event.effective_team_size
            if team.member_count >= max_team_size:
                raise TeamFull(team.id)

            registration_id = ensure_not_registered(db, event_id, user_id)

            claim_team_slot(db, team.id, max_team_size)
            db.add(TeamMember(team_id=team.id, user_id=user_id))
            registration = new_registration(
                registration_id,
                event,
                user_id,
                contact,
                team=team,
                team_role=TeamRole.MEMBER,
            )
            db.add(registration)
            try:
                db.flush()
            except IntegrityError as e:
                raise AlreadyRegistered(event_id, user_id) from e

            claim_event_slot(db, event_id)
            return registration

        registration = run_in_transaction(self.db, _join)
        logger.info(
            f"User {user_id} joined team {registration.team_id} for event {event_id}"
        )
        return registration

    def get_team(self, team_id: str) -> Team:
        team = self.db.get(Team, team_id, populate_existing=True)
        if team is None:
            raise TeamNotFound(team_id)
        return team

    def get_team_by_invite_code(self, event_id: str, invite_code: str) -> Optional[Team]:
        stmt = select(Team).where(
            Team.event_id == event_id, Team.invite_code == invite_code
        )
        return self.db.exec(stmt).first()

    def list_members(self, team_id: str) -> List[str]:
        """Member user ids in join order, leader first"""
        stmt = (
            select(TeamMember.user_id)
            .where(TeamMember.team_id == team_id)
            .order_by(TeamMember.joined_at.asc(), TeamMember.id.asc())
        )
        return list(self.db.exec(stmt).all())

    def list_teams_for_event(self, event_id: str) -> List[Team]:
        stmt = select(Team).where(Team.event_id == event_id).order_by(Team.created_at)
        return list(self.db.exec(stmt).all())
