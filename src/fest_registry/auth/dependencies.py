"""Authentication dependencies for FastAPI"""

from typing import Optional

from authlib.jose.errors import InvalidTokenError
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlmodel import Session

from fest_registry.auth.jwt_utils import jwt_utils
from fest_registry.auth.models import Principal
from fest_registry.config import config
from fest_registry.errors import NotAuthenticated
from fest_registry.logging_config import get_logger
from fest_registry.models.database import get_db
from fest_registry.models.user import User
from fest_registry.services.user_service import UserService

# Missing credentials are reported as 401 below rather than HTTPBearer's 403
security = HTTPBearer(auto_error=False)

logger = get_logger(__name__)


async def get_current_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Principal:
    """
    FastAPI dependency to verify the ID token in the Authorization header

    Returns:
        Principal extracted from the verified token

    Raises:
        NotAuthenticated: No bearer token was sent
        HTTPException: 401 if token is invalid or expired
    """
    if not credentials:
        raise NotAuthenticated()

    try:
        return await jwt_utils.extract_principal(credentials.credentials)
    except InvalidTokenError as e:
        logger.info(f"Rejected bearer token: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )


def get_current_user(
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
) -> User:
    """The signed-in user's row, created on first sign-in"""
    user_service = UserService(
        db,
        admin_emails=config["admin_emails"],
        admin_email_domains=config["admin_email_domains"],
    )
    return user_service.get_or_create_user(principal)


def require_admin(user: User = Depends(get_current_user)) -> User:
    """Reject non-admin users with 403"""
    if not user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return user
