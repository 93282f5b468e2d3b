"""Equipment schemas for request/response validation."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

from app.models.equipment import EquipmentStatus


class EquipmentBase(BaseModel):
    """Base equipment schema."""
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    location: Optional[str] = None
    image_url: Optional[str] = None


class EquipmentCreate(EquipmentBase):
    """Schema for creating equipment."""
    status: EquipmentStatus = EquipmentStatus.AVAILABLE
    manager_id: Optional[int] = None
    image_file_url: Optional[str] = None


class EquipmentUpdate(BaseModel):
    """Schema for updating equipment. Only sent fields are changed."""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    location: Optional[str] = None
    status: Optional[EquipmentStatus] = None
    manager_id: Optional[int] = None
    image_url: Optional[str] = None
    image_file_url: Optional[str] = None
    brochure_url: Optional[str] = None
    manual_url: Optional[str] = None
    quick_guide_url: Optional[str] = None


class EquipmentStatusUpdate(BaseModel):
    """Body of the status endpoint. Validated by the registry."""
    status: str


class EquipmentResponse(EquipmentBase):
    """Schema for equipment response."""
    id: int
    status: EquipmentStatus
    manager_id: Optional[int] = None
    image_file_url: Optional[str] = None
    brochure_url: Optional[str] = None
    manual_url: Optional[str] = None
    quick_guide_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
