# backend/tablebook/routes/v1/restaurants.py
"""
Restaurant and table routes - API v1

Mounted twice in main.py: ``router`` under /api/v1/restaurants and
``tables_router`` under /api/v1/tables. All business logic delegated to
RestaurantService.
"""

import asyncio
import logging
from typing import List, NoReturn, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from ...api.dependencies.auth import get_current_principal
from ...api.dependencies.services import get_restaurant_service
from ...core.exceptions import DomainException
from ...principal import Principal
from ...schemas.restaurant import (
    RestaurantCreate,
    RestaurantResponse,
    RestaurantUpdate,
    TableCreate,
    TableResponse,
    TableUpdate,
)
from ...services.restaurant_service import RestaurantService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["restaurants-v1"])
tables_router = APIRouter(tags=["tables-v1"])


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


# =============================================================================
# Restaurants
# =============================================================================


@router.post("", response_model=RestaurantResponse, status_code=status.HTTP_201_CREATED)
async def create_restaurant(
    payload: RestaurantCreate,
    principal: Principal = Depends(get_current_principal),
    service: RestaurantService = Depends(get_restaurant_service),
) -> RestaurantResponse:
    try:
        restaurant = await asyncio.to_thread(
            service.create_restaurant,
            principal,
            payload.name,
            payload.address,
            payload.phone,
            payload.owner_id,
        )
        return RestaurantResponse.model_validate(restaurant)
    except DomainException as e:
        handle_domain_exception(e)


@router.get("", response_model=List[RestaurantResponse])
async def list_restaurants(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    principal: Principal = Depends(get_current_principal),
    service: RestaurantService = Depends(get_restaurant_service),
) -> List[RestaurantResponse]:
    try:
        restaurants = await asyncio.to_thread(service.list_restaurants, principal, skip, limit)
        return [RestaurantResponse.model_validate(r) for r in restaurants]
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/{restaurant_id}", response_model=RestaurantResponse)
async def get_restaurant(
    restaurant_id: int,
    principal: Principal = Depends(get_current_principal),
    service: RestaurantService = Depends(get_restaurant_service),
) -> RestaurantResponse:
    try:
        restaurant = await asyncio.to_thread(service.get_restaurant, principal, restaurant_id)
        return RestaurantResponse.model_validate(restaurant)
    except DomainException as e:
        handle_domain_exception(e)


@router.patch("/{restaurant_id}", response_model=RestaurantResponse)
async def update_restaurant(
    restaurant_id: int,
    payload: RestaurantUpdate,
    principal: Principal = Depends(get_current_principal),
    service: RestaurantService = Depends(get_restaurant_service),
) -> RestaurantResponse:
    changes = payload.model_dump(exclude_unset=True)
    try:
        restaurant = await asyncio.to_thread(
            lambda: service.update_restaurant(principal, restaurant_id, **changes)
        )
        return RestaurantResponse.model_validate(restaurant)
    except DomainException as e:
        handle_domain_exception(e)


@router.delete(
    "/{restaurant_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    responses={409: {"description": "Restaurant still has pending or confirmed reservations"}},
)
async def delete_restaurant(
    restaurant_id: int,
    principal: Principal = Depends(get_current_principal),
    service: RestaurantService = Depends(get_restaurant_service),
) -> Response:
    try:
        await asyncio.to_thread(service.delete_restaurant, principal, restaurant_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except DomainException as e:
        handle_domain_exception(e)


@router.post(
    "/{restaurant_id}/tables",
    response_model=TableResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_table(
    restaurant_id: int,
    payload: TableCreate,
    principal: Principal = Depends(get_current_principal),
    service: RestaurantService = Depends(get_restaurant_service),
) -> TableResponse:
    try:
        table = await asyncio.to_thread(
            service.create_table, principal, restaurant_id, payload.code, payload.capacity
        )
        return TableResponse.model_validate(table)
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/{restaurant_id}/tables", response_model=List[TableResponse])
async def list_restaurant_tables(
    restaurant_id: int,
    principal: Principal = Depends(get_current_principal),
    service: RestaurantService = Depends(get_restaurant_service),
) -> List[TableResponse]:
    try:
        tables = await asyncio.to_thread(service.list_tables, principal, restaurant_id)
        return [TableResponse.model_validate(t) for t in tables]
    except DomainException as e:
        handle_domain_exception(e)


# =============================================================================
# Tables
# =============================================================================


@tables_router.get("", response_model=List[TableResponse])
async def list_tables(
    restaurant_id: Optional[int] = Query(None, gt=0),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    principal: Principal = Depends(get_current_principal),
    service: RestaurantService = Depends(get_restaurant_service),
) -> List[TableResponse]:
    try:
        tables = await asyncio.to_thread(service.list_tables, principal, restaurant_id, skip, limit)
        return [TableResponse.model_validate(t) for t in tables]
    except DomainException as e:
        handle_domain_exception(e)


@tables_router.get("/{table_id}", response_model=TableResponse)
async def get_table(
    table_id: int,
    principal: Principal = Depends(get_current_principal),
    service: RestaurantService = Depends(get_restaurant_service),
) -> TableResponse:
    try:
        table = await asyncio.to_thread(service.get_table, principal, table_id)
        return TableResponse.model_validate(table)
    except DomainException as e:
        handle_domain_exception(e)


@tables_router.patch("/{table_id}", response_model=TableResponse)
async def update_table(
    table_id: int,
    payload: TableUpdate,
    principal: Principal = Depends(get_current_principal),
    service: RestaurantService = Depends(get_restaurant_service),
) -> TableResponse:
    try:
        table = await asyncio.to_thread(
            service.update_table, principal, table_id, payload.code, payload.capacity
        )
        return TableResponse.model_validate(table)
    except DomainException as e:
        handle_domain_exception(e)


@tables_router.delete("/{table_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
async def delete_table(
    table_id: int,
    principal: Principal = Depends(get_current_principal),
    service: RestaurantService = Depends(get_restaurant_service),
) -> Response:
    try:
        await asyncio.to_thread(service.delete_table, principal, table_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except DomainException as e:
        handle_domain_exception(e)
