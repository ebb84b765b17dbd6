# servicehub/api/dependencies/auth.py
"""
Authentication and authorization dependencies.

The JWT carries the caller's id (``user_id``) and email (``sub``). The user
row is loaded through the request's own session (off the event loop) so
services can mutate it inside their transactions.

Streaming endpoints use ``get_current_user_stream`` instead, which loads the
user through a short-lived session closed before the response starts.
"""

import asyncio
import logging
from typing import Any, Dict

from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session

from ...auth import get_current_token_claims
from ...models.user import User
from ...repositories.factory import RepositoryFactory
from ...services.auth_service import load_token_user
from .database import get_db

logger = logging.getLogger(__name__)


def _user_not_found() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="User not found",
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    claims: Dict[str, Any] = Depends(get_current_token_claims),
    db: Session = Depends(get_db),
) -> User:
    """
    Get the current authenticated user from the database.

    Raises:
        HTTPException: 401 if the token's user no longer exists
    """
    user_repository = RepositoryFactory.create_user_repository(db)
    user = await asyncio.to_thread(user_repository.get_by_token_claims, claims)
    if not user:
        logger.info(f"Token subject {claims.get('user_id') or claims.get('sub')} has no account")
        raise _user_not_found()
    return user


async def get_current_user_stream(
    claims: Dict[str, Any] = Depends(get_current_token_claims),
) -> User:
    """
    Active user for SSE streams, loaded without the request session.

    FastAPI only runs ``get_db`` cleanup after the response completes, which
    for a stream is when the client leaves.

    Raises:
        HTTPException: 401 if the user is missing or deactivated
    """
    user = await asyncio.to_thread(load_token_user, claims)
    if not user:
        raise _user_not_found()
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Account is deactivated"
        )
    return user


async def get_current_active_user(
    current_user: User = Depends(get_current_user),
) -> User:
    """
    Get the current authenticated and active user.

    Raises:
        HTTPException: If user is not active
    """
    if not current_user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Account is deactivated"
        )
    return current_user


async def get_current_customer(
    current_user: User = Depends(get_current_active_user),
) -> User:
    """
    Raises:
        HTTPException: If user is not a customer
    """
    if not current_user.is_customer:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN, detail="Customer access required"
        )
    return current_user


async def get_current_provider(
    current_user: User = Depends(get_current_active_user),
) -> User:
    """
    Raises:
        HTTPException: If user is not a provider
    """
    if not current_user.is_provider:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN, detail="Provider access required"
        )
    return current_user


async def require_admin(
    current_user: User = Depends(get_current_active_user),
) -> User:
    """
    Raises:
        HTTPException: If user is not an admin
    """
    if not current_user.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return current_user
