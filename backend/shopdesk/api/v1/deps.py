"""
API Dependencies

Authentication dependencies shared by the order routers.
"""
from typing import Annotated

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from shopdesk.core.security import get_user_from_token
from shopdesk.core.status_config import STAFF_ACCOUNT_TYPES
from shopdesk.db.session import get_db
from shopdesk.exceptions import InvalidTokenError, PermissionDeniedError
from shopdesk.models.user import User

# OAuth2 scheme for token authentication
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")


async def get_current_user(
    token: Annotated[str, Depends(oauth2_scheme)],
    db: Session = Depends(get_db)
) -> User:
    """
    Dependency to get the current authenticated user from access token

    Args:
        token: JWT access token from Authorization header
        db: Database session

    Returns:
        User object if token is valid

    Raises:
        TokenExpiredError if the token has expired
        InvalidTokenError if token is invalid or user not found
        PermissionDeniedError if the account is inactive
    """
    user_id = get_user_from_token(token, expected_type="access")
    if user_id is None:
        raise InvalidTokenError("Could not validate credentials")

    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise InvalidTokenError("Could not validate credentials")

    if not user.is_active:
        raise PermissionDeniedError("User account is inactive")

    return user


async def get_current_staff_user(
    current_user: Annotated[User, Depends(get_current_user)]
) -> User:
    """
    Dependency to require staff access (admin or operator).

    Used by every order management and dashboard endpoint.

    Raises:
        PermissionDeniedError if user is not staff (admin/operator)
    """
    if current_user.account_type not in STAFF_ACCOUNT_TYPES:
        raise PermissionDeniedError("Staff access required")
    return current_user
