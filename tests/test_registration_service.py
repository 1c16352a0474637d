"""Tests for RegistrationService.register and admin approval"""

import pytest

from fest_registry.errors import (
    AlreadyRegistered,
    EventCancelled,
    EventFull,
    EventNotFound,
    NotATeamEvent,
    RegistrationNotFound,
)
from fest_registry.models.event import EventStatus
from fest_registry.models.registration import (
    PaymentStatus,
    RegistrationStatus,
    TeamRole,
)
from fest_registry.services.event_service import EventUpdate


def test_register_creates_pending_registration(
    make_event, registration_service, event_service, contact
):
    event = make_event()

    registration = registration_service.register(event.id, "user-a", contact())

    assert registration.id == f"{event.id}_user-a"
    assert registration.status == RegistrationStatus.PENDING
    assert registration.payment_status == PaymentStatus.NOT_REQUIRED
    assert registration.checked_in is False
    assert registration.name == "Asha Rao"
    assert event_service.get_event(event.id).current_participants == 1


def test_paid_event_registration_waits_for_payment(
    make_event, registration_service, contact
):
    event = make_event(is_paid=True)

    registration = registration_service.register(event.id, "user-a", contact())

    assert registration.payment_status == PaymentStatus.PENDING


def test_last_slot_then_event_full(make_event, registration_service, event_service, contact):
    event = make_event(max_participants=1)

    registration_service.register(event.id, "user-a", contact())
    with pytest.raises(EventFull):
        registration_service.register(event.id, "user-b", contact("Bala K"))

    refreshed = event_service.get_event(event.id)
    assert refreshed.current_participants == 1
    assert registration_service.get_registration(event.id, "user-b") is None


def test_repeat_registration_on_full_event_is_already_registered(
    make_event, registration_service, contact
):
    event = make_event(max_participants=1)
    registration_service.register(event.id, "user-a", contact())

    with pytest.raises(AlreadyRegistered):
        registration_service.register(event.id, "user-a", contact())


def test_duplicate_registration_rejected_other_event_allowed(
    make_event, registration_service, event_service, contact
):
    first = make_event(title="Quiz")
    second = make_event(title="Debate")

    registration_service.register(first.id, "user-a", contact(email="u@x.com"))
    with pytest.raises(AlreadyRegistered):
        registration_service.register(first.id, "user-a", contact(email="u@x.com"))

    other = registration_service.register(second.id, "user-a", contact(email="u@x.com"))
    assert other.event_id == second.id
    # The rejected attempt did not consume a slot
    assert event_service.get_event(first.id).current_participants == 1


def test_register_unknown_event(registration_service, contact):
    with pytest.raises(EventNotFound):
        registration_service.register("missing-event", "user-a", contact())


def test_register_cancelled_event(make_event, registration_service, contact):
    event = make_event(status=EventStatus.CANCELLED)

    with pytest.raises(EventCancelled):
        registration_service.register(event.id, "user-a", contact())


def test_register_with_team_name_founds_team(
    make_event, registration_service, team_service, contact
):
    event = make_event(is_team_event=True, max_team_size=4)

    registration = registration_service.register(
        event.id, "leader", contact(), team_name="Null Pointers"
    )

    assert registration.team_role == TeamRole.LEADER
    assert registration.team_name == "Null Pointers"
    team = team_service.get_team(registration.team_id)
    assert team.leader_id == "leader"
    assert team.member_count == 1
    assert len(team.invite_code) == 10
    assert team_service.list_members(team.id) == ["leader"]


def test_team_name_on_individual_event_rejected(
    make_event, registration_service, event_service, contact
):
    event = make_event()

    with pytest.raises(NotATeamEvent):
        registration_service.register(event.id, "user-a", contact(), team_name="Solo")

    assert event_service.get_event(event.id).current_participants == 0


def test_capacity_raised_after_full_accepts_again(
    make_event, registration_service, event_service, contact
):
    event = make_event(max_participants=1)
    registration_service.register(event.id, "user-a", contact())

    event_service.update_event(event.id, EventUpdate(max_participants=2))
    registration = registration_service.register(event.id, "user-b", contact("Bala K"))

    assert registration.event_id == event.id
    assert event_service.get_event(event.id).current_participants == 2


def test_update_registration_status(make_event, registration_service, contact):
    event = make_event()
    registration = registration_service.register(event.id, "user-a", contact())

    updated = registration_service.update_registration_status(
        registration.id, RegistrationStatus.APPROVED
    )

    assert updated.status == RegistrationStatus.APPROVED
    assert (
        registration_service.get_registration_by_id(registration.id).status
        == RegistrationStatus.APPROVED
    )


def test_update_status_of_missing_registration(registration_service):
    with pytest.raises(RegistrationNotFound):
        registration_service.update_registration_status(
            "nope", RegistrationStatus.APPROVED
        )


def test_registrations_for_event_and_user(
    make_event, registration_service, user_service, contact
):
    from fest_registry.auth.models import Principal

    event = make_event()
    other_event = make_event(title="Robo Wars")
    user_service.get_or_create_user(
        Principal(user_id="user-a", email="asha@college.example.com", name="Asha")
    )

    registration_service.register(event.id, "user-a", contact())
    registration_service.register(event.id, "user-b", contact("Bala K"))
    registration_service.register(other_event.id, "user-a", contact())

    rows = registration_service.get_registrations_for_event(event.id)
    assert {row.registration.user_id for row in rows} == {"user-a", "user-b"}
    by_user = {row.registration.user_id: row.user for row in rows}
    assert by_user["user-a"].email == "asha@college.example.com"
    assert by_user["user-b"] is None

    mine = registration_service.get_registrations_for_user("user-a")
    assert {r.event_id for r in mine} == {event.id, other_event.id}
