"""Registration, team and profile endpoints"""

import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, ConfigDict, Field
from sqlmodel import Session

from fest_registry.auth.dependencies import get_current_user, require_admin
from fest_registry.errors import NotRegistrationOwner, RegistrationNotFound
from fest_registry.models.database import get_db
from fest_registry.models.registration import (
    PaymentStatus,
    RegistrationStatus,
    TeamRole,
)
from fest_registry.models.user import User, UserRole
from fest_registry.services.booking import ContactInfo
from fest_registry.services.event_service import EventService
from fest_registry.services.registration_service import RegistrationService
from fest_registry.services.team_service import TeamService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Registrations"])


class RegisterRequest(ContactInfo):
    team_name: Optional[str] = Field(
        default=None,
        max_length=100,
        description="Create a new team led by the registrant (team events only)",
    )


class JoinTeamRequest(ContactInfo):
    invite_code: str = Field(..., min_length=1, max_length=32)


class StatusUpdateRequest(BaseModel):
    status: RegistrationStatus


class RegistrationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    event_id: str
    user_id: str
    name: str
    email: str
    phone: str
    college: str
    student_id: Optional[str] = None
    team_id: Optional[str] = None
    team_name: Optional[str] = None
    team_role: Optional[TeamRole] = None
    payment_status: PaymentStatus
    payment_id: Optional[str] = None
    status: RegistrationStatus
    checked_in: bool
    checked_in_at: Optional[datetime] = None
    registered_at: Optional[datetime] = None


class RegistrationWithTeamResponse(RegistrationResponse):
    invite_code: Optional[str] = None


class RegistrantResponse(RegistrationResponse):
    user_email: Optional[str] = None
    user_name: Optional[str] = None


class TeamResponse(BaseModel):
    id: str
    event_id: str
    name: str
    leader_id: str
    member_count: int
    members: List[str]
    invite_code: Optional[str] = None


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    name: Optional[str] = None
    role: UserRole


class ProfileResponse(BaseModel):
    user: UserResponse
    registrations: List[RegistrationResponse]


@router.post(
    "/events/{event_id}/register",
    response_model=RegistrationWithTeamResponse,
    status_code=status.HTTP_201_CREATED,
)
def register_for_event(
    event_id: str,
    request: RegisterRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Register the signed-in user; a team_name also founds a team"""
    registration_service = RegistrationService(db)
    contact = ContactInfo(**request.model_dump(exclude={"team_name"}))
    registration = registration_service.register(
        event_id, user.id, contact, team_name=request.team_name
    )

    response = RegistrationWithTeamResponse.model_validate(registration)
    if registration.team_id:
        # The founder needs the code to invite teammates
        team = TeamService(db).get_team(registration.team_id)
        response.invite_code = team.invite_code
    return response


@router.post(
    "/events/{event_id}/teams/join",
    response_model=RegistrationResponse,
    status_code=status.HTTP_201_CREATED,
)
def join_team(
    event_id: str,
    request: JoinTeamRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    contact = ContactInfo(**request.model_dump(exclude={"invite_code"}))
    return TeamService(db).join_team(
        event_id, user.id, request.invite_code.strip(), contact
    )


@router.get(
    "/events/{event_id}/registrations", response_model=List[RegistrantResponse]
)
def list_event_registrations(
    event_id: str,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    EventService(db).require_event(event_id)
    rows = RegistrationService(db).get_registrations_for_event(event_id)

    registrants = []
    for row in rows:
        item = RegistrantResponse.model_validate(row.registration)
        if row.user is not None:
            item.user_email = row.user.email
            item.user_name = row.user.name
        registrants.append(item)
    return registrants


@router.get("/registrations/{registration_id}", response_model=RegistrationResponse)
def get_registration(
    registration_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    registration = RegistrationService(db).get_registration_by_id(registration_id)
    if registration is None:
        raise RegistrationNotFound(registration_id)
    if registration.user_id != user.id and not user.is_admin:
        raise NotRegistrationOwner(registration_id)
    return registration


@router.patch(
    "/registrations/{registration_id}/status", response_model=RegistrationResponse
)
def update_registration_status(
    registration_id: str,
    request: StatusUpdateRequest,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    registration = RegistrationService(db).update_registration_status(
        registration_id, request.status
    )
    logger.info(
        f"Admin {admin.id} set registration {registration_id} to "
        f"{request.status.value}"
    )
    return registration


@router.get("/teams/{team_id}", response_model=TeamResponse)
def get_team(
    team_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Team details; the invite code is only shown to members and admins"""
    team_service = TeamService(db)
    team = team_service.get_team(team_id)
    members = team_service.list_members(team_id)

    return TeamResponse(
        id=team.id,
        event_id=team.event_id,
        name=team.name,
        leader_id=team.leader_id,
        member_count=team.member_count,
        members=members,
        invite_code=team.invite_code if user.id in members or user.is_admin else None,
    )


@router.get("/me", response_model=ProfileResponse)
def get_profile(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    registrations = RegistrationService(db).get_registrations_for_user(user.id)
    return ProfileResponse(
        user=UserResponse.model_validate(user),
        registrations=[RegistrationResponse.model_validate(r) for r in registrations],
    )
