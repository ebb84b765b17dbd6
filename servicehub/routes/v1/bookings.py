# servicehub/routes/v1/bookings.py
"""
Booking routes - API v1

Versioned booking endpoints under /api/v1/bookings.
All business logic delegated to BookingService; notifications are sent
here once the service call has committed.

Endpoints:
    POST /                               → Request a booking (customers, multipart)
    GET /customer                        → Caller's bookings as customer
    GET /provider                        → Caller's bookings as provider
    GET /{booking_id}                    → One booking (participants)
    PUT /{booking_id}/cancel             → Cancel a pending booking (customer)
    PUT /{booking_id}/status             → Move along the status table (provider)
    POST /{booking_id}/rate              → Rate a completed booking (customer)
    PUT /{booking_id}/reschedule         → Move a pending/confirmed booking (customer)
"""

import asyncio
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from pydantic import ValidationError

from ...api.dependencies.auth import (
    get_current_active_user,
    get_current_customer,
    get_current_provider,
)
from ...api.dependencies.services import get_booking_service, get_notification_service
from ...core.exceptions import DomainException, handle_domain_exception
from ...errors import first_error_message
from ...models.user import User
from ...schemas.booking import (
    BookingCreate,
    BookingEnvelope,
    BookingRating,
    BookingReschedule,
    BookingResponse,
    BookingStatusUpdate,
)
from ...services.booking_service import BookingService
from ...services.notification_service import NotificationService
from ...services.upload_service import IncomingFile, UploadService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["bookings-v1"])


async def _read_attachments(
    attachments: Optional[List[UploadFile]], upload_service: UploadService
) -> List[IncomingFile]:
    # Browsers send an empty part when no file was picked
    uploads = [upload for upload in attachments or [] if upload.filename]
    upload_service.check_count(len(uploads))
    return [await upload_service.read_upload(upload) for upload in uploads]


# ============================================================================
# SECTION 1: Static routes (no path parameters)
# ============================================================================


@router.post("", response_model=BookingEnvelope, status_code=status.HTTP_201_CREATED)
async def create_booking(
    provider_id: Optional[str] = Form(None),
    service_type: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    scheduled_date: Optional[str] = Form(None),
    scheduled_time: Optional[str] = Form(None),
    estimated_hours: Optional[str] = Form(None),
    address: Optional[str] = Form(None),
    total_cost: Optional[str] = Form(None),
    attachments: Optional[List[UploadFile]] = File(None),
    current_user: User = Depends(get_current_customer),
    booking_service: BookingService = Depends(get_booking_service),
    notification_service: NotificationService = Depends(get_notification_service),
) -> BookingEnvelope:
    """
    Request a booking with a provider.

    Form fields are validated before any attachment is written to disk.
    """
    try:
        data = BookingCreate(
            provider_id=provider_id,
            service_type=service_type,
            description=description,
            scheduled_date=scheduled_date,
            scheduled_time=scheduled_time,
            estimated_hours=estimated_hours,
            address=address,
            total_cost=total_cost,
        )
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=first_error_message(e.errors())
        )

    try:
        files = await _read_attachments(attachments, booking_service.upload_service)
        booking = await asyncio.to_thread(
            booking_service.create_booking, current_user, data, files
        )
    except DomainException as e:
        handle_domain_exception(e)

    await notification_service.send(
        booking.provider_id, notification_service.booking_requested(booking, current_user.name)
    )
    return BookingEnvelope(
        message="Booking created successfully",
        booking=BookingResponse.from_booking(booking),
    )


@router.get("/customer", response_model=List[BookingResponse])
async def list_customer_bookings(
    current_user: User = Depends(get_current_customer),
    booking_service: BookingService = Depends(get_booking_service),
) -> List[BookingResponse]:
    try:
        bookings = await asyncio.to_thread(booking_service.list_customer_bookings, current_user)
    except DomainException as e:
        handle_domain_exception(e)
    return [BookingResponse.from_booking(b, with_provider_name=True) for b in bookings]


@router.get("/provider", response_model=List[BookingResponse])
async def list_provider_bookings(
    current_user: User = Depends(get_current_provider),
    booking_service: BookingService = Depends(get_booking_service),
) -> List[BookingResponse]:
    try:
        bookings = await asyncio.to_thread(booking_service.list_provider_bookings, current_user)
    except DomainException as e:
        handle_domain_exception(e)
    return [BookingResponse.from_booking(b, with_customer_name=True) for b in bookings]


# ============================================================================
# SECTION 2: Dynamic routes (/{booking_id})
# ============================================================================


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: str,
    current_user: User = Depends(get_current_active_user),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        booking = await asyncio.to_thread(
            booking_service.get_booking_for_user, booking_id, current_user
        )
    except DomainException as e:
        handle_domain_exception(e)
    return BookingResponse.from_booking(booking, with_provider_name=True, with_customer_name=True)


@router.put("/{booking_id}/cancel", response_model=BookingEnvelope)
async def cancel_booking(
    booking_id: str,
    current_user: User = Depends(get_current_customer),
    booking_service: BookingService = Depends(get_booking_service),
    notification_service: NotificationService = Depends(get_notification_service),
) -> BookingEnvelope:
    try:
        booking = await asyncio.to_thread(booking_service.cancel_booking, booking_id, current_user)
    except DomainException as e:
        handle_domain_exception(e)

    await notification_service.send(
        booking.provider_id, notification_service.booking_cancelled(booking)
    )
    return BookingEnvelope(
        message="Booking cancelled successfully",
        booking=BookingResponse.from_booking(booking),
    )


@router.put("/{booking_id}/status", response_model=BookingEnvelope)
async def update_booking_status(
    booking_id: str,
    payload: BookingStatusUpdate,
    current_user: User = Depends(get_current_provider),
    booking_service: BookingService = Depends(get_booking_service),
    notification_service: NotificationService = Depends(get_notification_service),
) -> BookingEnvelope:
    try:
        booking = await asyncio.to_thread(
            booking_service.update_status, booking_id, current_user, payload.status
        )
    except DomainException as e:
        handle_domain_exception(e)

    await notification_service.send(
        booking.customer_id,
        notification_service.booking_status_changed(booking, current_user.name),
    )
    return BookingEnvelope(
        message="Booking status updated successfully",
        booking=BookingResponse.from_booking(booking),
    )


@router.post("/{booking_id}/rate", response_model=BookingEnvelope)
async def rate_booking(
    booking_id: str,
    payload: BookingRating,
    current_user: User = Depends(get_current_customer),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingEnvelope:
    try:
        booking = await asyncio.to_thread(
            booking_service.rate_booking,
            booking_id,
            current_user,
            payload.rating,
            payload.comment,
        )
    except DomainException as e:
        handle_domain_exception(e)

    return BookingEnvelope(
        message="Rating submitted successfully",
        booking=BookingResponse.from_booking(booking),
    )


@router.put("/{booking_id}/reschedule", response_model=BookingEnvelope)
async def reschedule_booking(
    booking_id: str,
    payload: BookingReschedule,
    current_user: User = Depends(get_current_customer),
    booking_service: BookingService = Depends(get_booking_service),
    notification_service: NotificationService = Depends(get_notification_service),
) -> BookingEnvelope:
    try:
        booking = await asyncio.to_thread(
            booking_service.reschedule_booking,
            booking_id,
            current_user,
            payload.scheduled_date,
            payload.scheduled_time,
        )
    except DomainException as e:
        handle_domain_exception(e)

    await notification_service.send(
        booking.provider_id,
        notification_service.booking_rescheduled(booking, current_user.name),
    )
    return BookingEnvelope(
        message="Booking rescheduled successfully",
        booking=BookingResponse.from_booking(booking),
    )
