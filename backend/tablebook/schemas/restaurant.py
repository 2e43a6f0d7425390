# backend/tablebook/schemas/restaurant.py
from datetime import datetime
from typing import Optional

from pydantic import Field

from ..core.constants import (
    MAX_TABLE_CAPACITY,
    MIN_TABLE_CAPACITY,
    RESTAURANT_ADDRESS_MAX_LENGTH,
    RESTAURANT_NAME_MAX_LENGTH,
    RESTAURANT_PHONE_MAX_LENGTH,
    TABLE_CODE_MAX_LENGTH,
)
from ._strict_base import StrictModel, StrictRequestModel


class RestaurantCreate(StrictRequestModel):
    name: str = Field(..., min_length=1, max_length=RESTAURANT_NAME_MAX_LENGTH)
    address: str = Field(..., min_length=1, max_length=RESTAURANT_ADDRESS_MAX_LENGTH)
    phone: str = Field(..., min_length=1, max_length=RESTAURANT_PHONE_MAX_LENGTH)
    # Only honoured for admins; operators always own what they create
    owner_id: Optional[str] = None


class RestaurantUpdate(StrictRequestModel):
    name: Optional[str] = Field(None, min_length=1, max_length=RESTAURANT_NAME_MAX_LENGTH)
    address: Optional[str] = Field(None, min_length=1, max_length=RESTAURANT_ADDRESS_MAX_LENGTH)
    phone: Optional[str] = Field(None, min_length=1, max_length=RESTAURANT_PHONE_MAX_LENGTH)
    owner_id: Optional[str] = None


class RestaurantResponse(StrictModel):
    id: int
    name: str
    address: str
    phone: str
    owner_id: Optional[str]
    created_at: datetime


class TableCreate(StrictRequestModel):
    code: str = Field(..., min_length=1, max_length=TABLE_CODE_MAX_LENGTH)
    capacity: int = Field(..., ge=MIN_TABLE_CAPACITY, le=MAX_TABLE_CAPACITY)


class TableUpdate(StrictRequestModel):
    code: Optional[str] = Field(None, min_length=1, max_length=TABLE_CODE_MAX_LENGTH)
    capacity: Optional[int] = Field(None, ge=MIN_TABLE_CAPACITY, le=MAX_TABLE_CAPACITY)


class TableResponse(StrictModel):
    id: int
    code: str
    capacity: int
    restaurant_id: int
