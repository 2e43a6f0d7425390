# backend/tablebook/schemas/reservation.py
from datetime import datetime
from typing import Optional

from pydantic import Field, model_validator

from ..models.reservation import ReservationStatus
from ._strict_base import StrictModel, StrictRequestModel


class ReservationCreate(StrictRequestModel):
    table_id: int = Field(..., gt=0)
    reserved_at: datetime


class ReservationStatusUpdate(StrictRequestModel):
    status: ReservationStatus
    expected_version: Optional[int] = Field(None, ge=1)


class ReservationReschedule(StrictRequestModel):
    table_id: Optional[int] = Field(None, gt=0)
    reserved_at: Optional[datetime] = None
    expected_version: Optional[int] = Field(None, ge=1)

    @model_validator(mode="after")
    def _require_change(self) -> "ReservationReschedule":
        if self.table_id is None and self.reserved_at is None:
            raise ValueError("Provide a new table_id, reserved_at, or both")
        return self


class ReservationResponse(StrictModel):
    id: int
    table_id: int
    diner_id: str
    reserved_at: datetime
    status: ReservationStatus
    version: int
    created_at: datetime
