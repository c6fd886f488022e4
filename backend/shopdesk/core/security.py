"""
Security helpers: password hashing and JWT access tokens

Token issuance for end users happens upstream of this service; tokens created
here are printed by the admin script and used by the test suite.
"""
from datetime import datetime, timedelta
from typing import Optional

import jwt
from passlib.context import CryptContext

from shopdesk.core.settings import get_settings
from shopdesk.exceptions import TokenExpiredError
from shopdesk.logging_config import get_logger

logger = get_logger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def create_access_token(user_id: int, expires_delta: Optional[timedelta] = None) -> str:
    """Create a signed access token whose subject is the user id."""
    settings = get_settings()
    expire = datetime.utcnow() + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    payload = {"sub": str(user_id), "type": "access", "exp": expire}
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def get_user_from_token(token: str, expected_type: str = "access") -> Optional[int]:
    """
    Decode a token and return the user id it was issued for.

    Returns None for malformed or wrong-type tokens.

    Raises:
        TokenExpiredError: the token signature is valid but it has expired
    """
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except jwt.ExpiredSignatureError:
        logger.info("Rejected expired token")
        raise TokenExpiredError()
    except jwt.InvalidTokenError:
        logger.info("Rejected invalid token")
        return None

    if payload.get("type") != expected_type:
        return None
    try:
        return int(payload["sub"])
    except (KeyError, TypeError, ValueError):
        return None
