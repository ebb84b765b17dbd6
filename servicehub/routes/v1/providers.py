# servicehub/routes/v1/providers.py
"""
Provider routes - API v1

Endpoints:
    GET /                                → Search active providers
    GET /services                        → Service type catalogue
    PUT /availability                    → Replace the caller's weekday map (providers)
    GET /earnings                        → Earnings summary (providers)
    GET /{provider_id}                   → One active provider

Static paths are declared before ``/{provider_id}`` so they are not
captured as ids.
"""

import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ...api.dependencies.auth import get_current_active_user, get_current_provider
from ...api.dependencies.services import get_provider_service
from ...core.constants import DEFAULT_PROVIDER_PAGE_SIZE, MAX_PROVIDER_PAGE_SIZE
from ...core.enums import ServiceType
from ...core.exceptions import DomainException, handle_domain_exception
from ...models.user import User
from ...schemas.provider import (
    AvailabilityResponse,
    AvailabilityUpdateRequest,
    EarningsResponse,
    ProviderListResponse,
    ServiceTypesResponse,
)
from ...schemas.user import UserResponse
from ...services.provider_service import ProviderService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["providers-v1"])


# ============================================================================
# Static routes (no path parameters)
# ============================================================================


@router.get("", response_model=ProviderListResponse)
async def list_providers(
    service_type: Optional[ServiceType] = Query(None),
    location: Optional[str] = Query(None, max_length=255),
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PROVIDER_PAGE_SIZE, ge=1, le=MAX_PROVIDER_PAGE_SIZE),
    current_user: User = Depends(get_current_active_user),
    provider_service: ProviderService = Depends(get_provider_service),
) -> ProviderListResponse:
    """Active providers, newest first, filtered by service type and location."""
    try:
        result = await asyncio.to_thread(
            provider_service.list_providers,
            service_type.value if service_type else None,
            location,
            page,
            limit,
        )
    except DomainException as e:
        handle_domain_exception(e)

    return ProviderListResponse(
        providers=[UserResponse.model_validate(p) for p in result["providers"]],
        total=result["total"],
        total_pages=result["total_pages"],
        current_page=result["current_page"],
    )


@router.get("/services", response_model=ServiceTypesResponse)
async def list_service_types() -> ServiceTypesResponse:
    return ServiceTypesResponse(services=ProviderService.list_service_types())


@router.put("/availability", response_model=AvailabilityResponse)
async def update_availability(
    payload: AvailabilityUpdateRequest,
    current_user: User = Depends(get_current_provider),
    provider_service: ProviderService = Depends(get_provider_service),
) -> AvailabilityResponse:
    availability = {day: window.model_dump() for day, window in payload.availability.items()}
    try:
        merged = await asyncio.to_thread(
            provider_service.update_availability, current_user, availability
        )
    except DomainException as e:
        handle_domain_exception(e)
    return AvailabilityResponse(message="Availability updated successfully", availability=merged)


@router.get("/earnings", response_model=EarningsResponse)
async def get_earnings(
    current_user: User = Depends(get_current_provider),
    provider_service: ProviderService = Depends(get_provider_service),
) -> EarningsResponse:
    try:
        earnings = await asyncio.to_thread(provider_service.get_earnings, current_user.id)
    except DomainException as e:
        handle_domain_exception(e)
    return EarningsResponse(**earnings)


# ============================================================================
# Dynamic routes
# ============================================================================


@router.get("/{provider_id}", response_model=UserResponse)
async def get_provider(
    provider_id: str,
    current_user: User = Depends(get_current_active_user),
    provider_service: ProviderService = Depends(get_provider_service),
) -> UserResponse:
    try:
        provider = await asyncio.to_thread(provider_service.get_provider, provider_id)
    except DomainException as e:
        handle_domain_exception(e)
    return UserResponse.model_validate(provider)
