# backend/tablebook/routes/v1/reviews.py
"""
Reviews routes - API v1

Versioned review endpoints under /api/v1/reviews.
All business logic delegated to ReviewService.

Endpoints:
    POST /                → Review a completed reservation (diner)
    GET /                 → Reviews visible to the caller
    GET /reviewable       → Caller's completed reservations still awaiting a review
    GET /{review_id}      → One review
    PATCH /{review_id}    → Edit rating/comment (author or admin)
    DELETE /{review_id}   → Delete (author or admin)
"""

import asyncio
import logging
from typing import List, NoReturn

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from ...api.dependencies.auth import get_current_principal
from ...api.dependencies.services import get_review_service
from ...core.exceptions import DomainException
from ...principal import Principal
from ...schemas.reservation import ReservationResponse
from ...schemas.review import ReviewCreate, ReviewResponse, ReviewUpdate
from ...services.review_service import ReviewService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["reviews-v1"])


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


# Static routes first (before dynamic routes with path parameters)


@router.post(
    "",
    response_model=ReviewResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        403: {"description": "Not the reservation's diner"},
        404: {"description": "Reservation not found"},
        409: {"description": "Reservation already reviewed"},
        422: {"description": "Reservation is not completed"},
    },
)
async def create_review(
    payload: ReviewCreate,
    principal: Principal = Depends(get_current_principal),
    review_service: ReviewService = Depends(get_review_service),
) -> ReviewResponse:
    try:
        review = await asyncio.to_thread(
            review_service.create_review,
            principal,
            payload.reservation_id,
            payload.rating,
            payload.comment,
        )
        return ReviewResponse.model_validate(review)
    except DomainException as e:
        handle_domain_exception(e)


@router.get("", response_model=List[ReviewResponse])
async def list_reviews(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    principal: Principal = Depends(get_current_principal),
    review_service: ReviewService = Depends(get_review_service),
) -> List[ReviewResponse]:
    try:
        reviews = await asyncio.to_thread(review_service.list_reviews, principal, skip, limit)
        return [ReviewResponse.model_validate(r) for r in reviews]
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/reviewable", response_model=List[ReservationResponse])
async def list_reviewable_reservations(
    principal: Principal = Depends(get_current_principal),
    review_service: ReviewService = Depends(get_review_service),
) -> List[ReservationResponse]:
    try:
        reservations = await asyncio.to_thread(review_service.list_reviewable_reservations, principal)
        return [ReservationResponse.model_validate(r) for r in reservations]
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/{review_id}", response_model=ReviewResponse)
async def get_review(
    review_id: int,
    principal: Principal = Depends(get_current_principal),
    review_service: ReviewService = Depends(get_review_service),
) -> ReviewResponse:
    try:
        review = await asyncio.to_thread(review_service.get_review, principal, review_id)
        return ReviewResponse.model_validate(review)
    except DomainException as e:
        handle_domain_exception(e)


@router.patch("/{review_id}", response_model=ReviewResponse)
async def update_review(
    review_id: int,
    payload: ReviewUpdate,
    principal: Principal = Depends(get_current_principal),
    review_service: ReviewService = Depends(get_review_service),
) -> ReviewResponse:
    changes = payload.model_dump(exclude_unset=True)
    try:
        review = await asyncio.to_thread(
            lambda: review_service.update_review(principal, review_id, **changes)
        )
        return ReviewResponse.model_validate(review)
    except DomainException as e:
        handle_domain_exception(e)


@router.delete("/{review_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
async def delete_review(
    review_id: int,
    principal: Principal = Depends(get_current_principal),
    review_service: ReviewService = Depends(get_review_service),
) -> Response:
    try:
        await asyncio.to_thread(review_service.delete_review, principal, review_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except DomainException as e:
        handle_domain_exception(e)
