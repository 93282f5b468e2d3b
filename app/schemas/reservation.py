"""Reservation schemas."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel

from app.models.reservation import ReservationStatus


class ReservationCreate(BaseModel):
    """Schema for creating a reservation."""
    equipment_id: int
    start_time: datetime
    end_time: datetime
    purpose: Optional[str] = ""


class ReservationUpdate(BaseModel):
    """Schema for updating a reservation. Only sent fields are changed."""
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    purpose: Optional[str] = None
    status: Optional[ReservationStatus] = None


class ConflictCheck(BaseModel):
    """Ask whether an interval is free."""
    equipment_id: int
    start_time: datetime
    end_time: datetime
    exclude_id: Optional[int] = None


class ConflictCheckResult(BaseModel):
    has_conflict: bool
    message: str


class ReservationCreated(BaseModel):
    """Result of a successful booking."""
    id: int
    status: ReservationStatus
    message: str


class ReservationResponse(BaseModel):
    """Schema for reservation response."""
    id: int
    equipment_id: int
    user_id: int
    start_time: datetime
    end_time: datetime
    purpose: Optional[str] = None
    status: ReservationStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    username: Optional[str] = None
    email: Optional[str] = None
    equipment_name: Optional[str] = None
    equipment_location: Optional[str] = None

    class Config:
        from_attributes = True
