# backend/tablebook/routes/v1/reservations.py
"""
Reservation routes - API v1

Versioned reservation endpoints under /api/v1/reservations.
All business logic delegated to BookingService.

Endpoints:
    POST /                       → Reserve a table (diner)
    GET /                        → Reservations visible to the caller
    GET /{reservation_id}        → One reservation
    PATCH /{reservation_id}/status   → Confirm, complete or cancel (operator/admin)
    PATCH /{reservation_id}/schedule → Move to another table or time (admin)
    DELETE /{reservation_id}     → Delete (operator/admin)
"""

import asyncio
import logging
from typing import List, NoReturn, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from ...api.dependencies.auth import get_current_principal
from ...api.dependencies.services import get_booking_service
from ...core.exceptions import DomainException
from ...models.reservation import ReservationStatus
from ...principal import Principal
from ...schemas.reservation import (
    ReservationCreate,
    ReservationReschedule,
    ReservationResponse,
    ReservationStatusUpdate,
)
from ...services.booking_service import BookingService

logger = logging.getLogger(__name__)

# V1 router - no prefix here, will be added when mounting in main.py
router = APIRouter(tags=["reservations-v1"])


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


@router.post(
    "",
    response_model=ReservationResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        401: {"description": "Not authenticated"},
        403: {"description": "Only diners can reserve"},
        404: {"description": "Table not found"},
        409: {"description": "Table already reserved at that time"},
    },
)
async def create_reservation(
    payload: ReservationCreate,
    principal: Principal = Depends(get_current_principal),
    booking_service: BookingService = Depends(get_booking_service),
) -> ReservationResponse:
    try:
        reservation = await asyncio.to_thread(
            booking_service.create_reservation,
            principal,
            payload.table_id,
            payload.reserved_at,
        )
        return ReservationResponse.model_validate(reservation)
    except DomainException as e:
        handle_domain_exception(e)


@router.get("", response_model=List[ReservationResponse])
async def list_reservations(
    status_filter: Optional[ReservationStatus] = Query(None, alias="status"),
    table_id: Optional[int] = Query(None, gt=0),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    principal: Principal = Depends(get_current_principal),
    booking_service: BookingService = Depends(get_booking_service),
) -> List[ReservationResponse]:
    """Admins see every reservation, operators those on their tables, diners their own."""
    try:
        reservations = await asyncio.to_thread(
            booking_service.list_reservations,
            principal,
            status=status_filter,
            table_id=table_id,
            skip=skip,
            limit=limit,
        )
        return [ReservationResponse.model_validate(r) for r in reservations]
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/{reservation_id}", response_model=ReservationResponse)
async def get_reservation(
    reservation_id: int,
    principal: Principal = Depends(get_current_principal),
    booking_service: BookingService = Depends(get_booking_service),
) -> ReservationResponse:
    try:
        reservation = await asyncio.to_thread(booking_service.get_reservation, principal, reservation_id)
        return ReservationResponse.model_validate(reservation)
    except DomainException as e:
        handle_domain_exception(e)


@router.patch(
    "/{reservation_id}/status",
    response_model=ReservationResponse,
    responses={
        403: {"description": "Caller cannot change this reservation's status"},
        404: {"description": "Reservation not found"},
        409: {"description": "Reservation was modified concurrently"},
        422: {"description": "Transition not allowed from the current status"},
    },
)
async def update_reservation_status(
    reservation_id: int,
    payload: ReservationStatusUpdate,
    principal: Principal = Depends(get_current_principal),
    booking_service: BookingService = Depends(get_booking_service),
) -> ReservationResponse:
    try:
        reservation = await asyncio.to_thread(
            booking_service.update_status,
            principal,
            reservation_id,
            payload.status,
            payload.expected_version,
        )
        return ReservationResponse.model_validate(reservation)
    except DomainException as e:
        handle_domain_exception(e)


@router.patch("/{reservation_id}/schedule", response_model=ReservationResponse)
async def reschedule_reservation(
    reservation_id: int,
    payload: ReservationReschedule,
    principal: Principal = Depends(get_current_principal),
    booking_service: BookingService = Depends(get_booking_service),
) -> ReservationResponse:
    """Move a PENDING or CONFIRMED reservation (admin only)."""
    try:
        reservation = await asyncio.to_thread(
            lambda: booking_service.reschedule(
                principal,
                reservation_id,
                table_id=payload.table_id,
                reserved_at=payload.reserved_at,
                expected_version=payload.expected_version,
            )
        )
        return ReservationResponse.model_validate(reservation)
    except DomainException as e:
        handle_domain_exception(e)


@router.delete(
    "/{reservation_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
)
async def delete_reservation(
    reservation_id: int,
    expected_version: Optional[int] = Query(None, ge=1),
    principal: Principal = Depends(get_current_principal),
    booking_service: BookingService = Depends(get_booking_service),
) -> Response:
    try:
        await asyncio.to_thread(
            booking_service.delete_reservation, principal, reservation_id, expected_version
        )
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except DomainException as e:
        handle_domain_exception(e)
