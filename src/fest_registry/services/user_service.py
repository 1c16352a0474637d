"""User Service - user rows for signed-in principals"""

import logging
from typing import Iterable, Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from fest_registry.auth.models import Principal
from fest_registry.models.user import User, UserRole

logger = logging.getLogger(__name__)


def resolve_role(
    email: str,
    admin_emails: Iterable[str] = (),
    admin_email_domains: Iterable[str] = (),
) -> UserRole:
    """
    Role for a first sign-in, decided by the email address.

    Args:
        email: Email from the identity provider
        admin_emails: Exact addresses that become admins
        admin_email_domains: Domains (after the @) whose users become admins

    Returns:
        UserRole.ADMIN on a match, otherwise UserRole.USER
    """
    normalized = (email or "").strip().lower()
    if not normalized:
        return UserRole.USER
    if normalized in {e.lower() for e in admin_emails}:
        return UserRole.ADMIN
    domain = normalized.rsplit("@", 1)[-1]
    if domain in {d.lower() for d in admin_email_domains}:
        return UserRole.ADMIN
    return UserRole.USER


class UserService:
    """Service for handling user operations"""

    def __init__(
        self,
        db_session: Session,
        admin_emails: Iterable[str] = (),
        admin_email_domains: Iterable[str] = (),
    ):
        self.db = db_session
        self.admin_emails = list(admin_emails)
        self.admin_email_domains = list(admin_email_domains)

    def get_user_by_id(self, user_id: str) -> Optional[User]:
        """Get a user by their ID"""
        return self.db.get(User, user_id)

    def get_or_create_user(self, principal: Principal) -> User:
        """
        Return the user row for a principal, creating it on first sign-in.

        The role is assigned only at creation; later sign-ins never change it.
        """
        user = self.db.get(User, principal.user_id)
        if user is not None:
            return user

        user = User(
            id=principal.user_id,
            email=principal.email or "",
            name=principal.name,
            role=resolve_role(
                principal.email or "", self.admin_emails, self.admin_email_domains
            ),
        )
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError:
            # Another request created the row first
            self.db.rollback()
            user = self.db.get(User, principal.user_id)
            if user is None:
                raise
            return user

        self.db.refresh(user)
        logger.info(f"User created successfully: {user.id} ({user.role.value})")
        return user
