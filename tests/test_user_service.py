"""Tests for user creation on first sign-in"""

from fest_registry.auth.models import Principal
from fest_registry.models.user import UserRole
from fest_registry.services.user_service import resolve_role


def test_resolve_role():
    admins = ["organizer@fest.example.com"]
    domains = ["staff.fest.example.com"]

    assert resolve_role("Organizer@Fest.example.com", admins, domains) == UserRole.ADMIN
    assert resolve_role("volunteer@staff.fest.example.com", admins, domains) == (
        UserRole.ADMIN
    )
    assert resolve_role("student@college.example.com", admins, domains) == UserRole.USER
    assert resolve_role("", admins, domains) == UserRole.USER


def test_first_sign_in_creates_user(user_service):
    principal = Principal(
        user_id="auth|123", email="student@college.example.com", name="Student"
    )

    user = user_service.get_or_create_user(principal)

    assert user.id == "auth|123"
    assert user.role == UserRole.USER
    assert user_service.get_user_by_id("auth|123").email == principal.email


def test_admin_email_gets_admin_role(user_service):
    user = user_service.get_or_create_user(
        Principal(user_id="auth|admin", email="organizer@fest.example.com")
    )

    assert user.is_admin


def test_later_sign_in_keeps_existing_row(user_service):
    first = user_service.get_or_create_user(
        Principal(user_id="auth|123", email="student@college.example.com", name="Old")
    )
    again = user_service.get_or_create_user(
        Principal(user_id="auth|123", email="organizer@fest.example.com", name="New")
    )

    assert again.id == first.id
    assert again.name == "Old"
    assert again.role == UserRole.USER
