from datetime import datetime, timedelta, timezone
import logging
from typing import Any, Dict, Optional, cast

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
import jwt
from jwt import PyJWTError
from passlib.context import CryptContext

from .core.config import settings

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

oauth2_scheme_optional = OAuth2PasswordBearer(tokenUrl="api/v1/auth/login", auto_error=False)


def _secret_value(secret_obj: Any) -> str:
    getter = getattr(secret_obj, "get_secret_value", None)
    if callable(getter):
        return cast(str, getter())
    return cast(str, secret_obj)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a plain password against a hashed password.

    Args:
        plain_password: The plain text password
        hashed_password: The hashed password to compare against

    Returns:
        bool: True if password matches, False otherwise
    """
    try:
        return bool(pwd_context.verify(plain_password, hashed_password))
    except Exception as e:
        logger.error(f"Error verifying password: {str(e)}")
        return False


def get_password_hash(password: str) -> str:
    """
    Hash a password using bcrypt.

    Args:
        password: The plain text password to hash

    Returns:
        str: The hashed password
    """
    hashed = pwd_context.hash(password)
    return str(hashed)


def decode_access_token(token: str) -> Dict[str, Any]:
    """Decode and validate a JWT access token. Raises PyJWTError when invalid or expired."""
    payload_raw = jwt.decode(
        token,
        _secret_value(settings.secret_key),
        algorithms=[settings.algorithm],
    )
    return cast(Dict[str, Any], payload_raw)


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token.

    Args:
        data: The data to encode in the token (``sub`` is the user email)
        expires_delta: Optional expiration time delta

    Returns:
        str: The encoded JWT token
    """
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(
            minutes=settings.access_token_expire_minutes
        )

    to_encode.update({"exp": expire, "iat": datetime.now(timezone.utc)})

    encoded_jwt = cast(
        str,
        jwt.encode(
            to_encode,
            _secret_value(settings.secret_key),
            algorithm=settings.algorithm,
        ),
    )

    logger.info(f"Created access token for user: {data.get('sub')}")
    return encoded_jwt


def _has_subject(payload: Dict[str, Any]) -> bool:
    return isinstance(payload.get("user_id"), str) or isinstance(payload.get("sub"), str)


def claims_from_token(token: Optional[str]) -> Optional[Dict[str, Any]]:
    """Return the claims of a valid token naming a user, None for anything else."""
    if not token:
        return None
    try:
        payload = decode_access_token(token)
    except PyJWTError as e:
        logger.debug(f"JWT validation error: {str(e)}")
        return None
    return payload if _has_subject(payload) else None


async def get_current_token_claims(
    request: Request, token: Optional[str] = Depends(oauth2_scheme_optional)
) -> Dict[str, Any]:
    """
    Dependency returning the decoded claims of the caller's JWT.

    Users are resolved from ``user_id`` (stable across email changes), with
    ``sub`` kept for tokens that only carry the email.

    EventSource clients cannot set headers, so a ``token`` query parameter
    is accepted when no Authorization header is present.

    Raises:
        HTTPException: If token is missing, invalid or expired
    """
    not_authenticated = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Not authenticated",
        headers={"WWW-Authenticate": "Bearer"},
    )
    invalid_credentials = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    if not token:
        token = request.query_params.get("token")
    if not token:
        raise not_authenticated

    try:
        payload = decode_access_token(token)
    except PyJWTError as e:
        logger.error(f"JWT validation error: {str(e)}")
        raise invalid_credentials

    if not _has_subject(payload):
        logger.warning("Token payload has neither 'user_id' nor 'sub'")
        raise invalid_credentials

    subject = payload.get("user_id") or payload.get("sub")
    logger.debug(f"Successfully validated token for user: {subject}")
    return payload
