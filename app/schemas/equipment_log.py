"""Equipment log schemas."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

from app.models.equipment_log import DEFAULT_LOG_TYPE


class EquipmentLogCreate(BaseModel):
    """Schema for adding a log entry to the equipment in the path."""
    content: str
    reservation_id: Optional[int] = None
    log_type: str = Field(DEFAULT_LOG_TYPE, min_length=1, max_length=50)


class EquipmentLogUpdate(BaseModel):
    """Only the content of an entry can be edited."""
    content: str


class EquipmentLogResponse(BaseModel):
    """Schema for log entry response."""
    id: int
    equipment_id: int
    user_id: int
    reservation_id: Optional[int] = None
    log_type: str
    content: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    username: Optional[str] = None
    department: Optional[str] = None
    equipment_name: Optional[str] = None

    class Config:
        from_attributes = True
