# servicehub/routes/v1/auth.py
"""
Authentication routes - API v1

Versioned authentication endpoints under /api/v1/auth.

Endpoints:
    POST /register                       → Customer or provider registration
    POST /login                          → Email/password login
    POST /logout                         → Stateless logout acknowledgement
    GET /profile                         → Current user
    PUT /profile                         → Update current user profile
    GET /verify                          → Validate the bearer token
"""

import asyncio
import logging

from fastapi import APIRouter, Depends, status

from ...api.dependencies.auth import get_current_active_user
from ...api.dependencies.services import get_auth_service
from ...core.exceptions import DomainException, handle_domain_exception
from ...middleware.rate_limiter import auth_rate_limit
from ...models.user import User
from ...schemas.auth import (
    AuthResponse,
    LoginRequest,
    ProfileUpdateRequest,
    RegisterRequest,
    VerifyTokenResponse,
)
from ...schemas.common import MessageResponse
from ...schemas.user import UserResponse
from ...services.auth_service import AuthService

logger = logging.getLogger(__name__)

# V1 router - no prefix here, will be added when mounting in main.py
router = APIRouter(tags=["auth-v1"])


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(auth_rate_limit)],
)
async def register(
    payload: RegisterRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    """Register a customer or provider and return a token for the new account."""
    try:
        user = await asyncio.to_thread(auth_service.register_user, payload)
    except DomainException as e:
        handle_domain_exception(e)

    return AuthResponse(
        message="User registered successfully",
        token=auth_service.issue_token(user),
        user=UserResponse.model_validate(user),
    )


@router.post("/login", response_model=AuthResponse, dependencies=[Depends(auth_rate_limit)])
async def login(
    payload: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    try:
        user = await asyncio.to_thread(
            auth_service.authenticate_user,
            payload.email,
            payload.password,
            payload.role,
        )
    except DomainException as e:
        handle_domain_exception(e)

    return AuthResponse(
        message="Login successful",
        token=auth_service.issue_token(user),
        user=UserResponse.model_validate(user),
    )


@router.post("/logout", response_model=MessageResponse)
async def logout(current_user: User = Depends(get_current_active_user)) -> MessageResponse:
    """Tokens are stateless; the client discards its copy."""
    logger.info(f"User {current_user.id} logged out")
    return MessageResponse(message="Logout successful")


@router.get("/profile", response_model=UserResponse)
async def get_profile(current_user: User = Depends(get_current_active_user)) -> UserResponse:
    return UserResponse.model_validate(current_user)


@router.put("/profile", response_model=UserResponse)
async def update_profile(
    payload: ProfileUpdateRequest,
    current_user: User = Depends(get_current_active_user),
    auth_service: AuthService = Depends(get_auth_service),
) -> UserResponse:
    try:
        user = await asyncio.to_thread(auth_service.update_profile, current_user, payload)
    except DomainException as e:
        handle_domain_exception(e)
    return UserResponse.model_validate(user)


@router.get("/verify", response_model=VerifyTokenResponse)
async def verify_token(
    current_user: User = Depends(get_current_active_user),
) -> VerifyTokenResponse:
    return VerifyTokenResponse(valid=True, user=UserResponse.model_validate(current_user))
