"""Equipment routes."""
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.auth import require_admin
from app.database import get_db
from app.models.user import User
from app.schemas.equipment import EquipmentCreate, EquipmentResponse, EquipmentStatusUpdate, EquipmentUpdate
from app.services import equipment_registry

router = APIRouter(prefix="/equipment", tags=["Equipment"])


@router.get("/", response_model=List[EquipmentResponse])
async def list_equipment(skip: int = 0, limit: int = 100, db: Session = Depends(get_db)):
    """List all equipment, newest first."""
    return equipment_registry.list_equipment(db, skip=skip, limit=limit)


@router.get("/available", response_model=List[EquipmentResponse])
async def list_available_equipment(db: Session = Depends(get_db)):
    """Equipment that can be booked right now."""
    return equipment_registry.list_available(db)


@router.get("/{equipment_id}", response_model=EquipmentResponse)
async def get_equipment(equipment_id: int, db: Session = Depends(get_db)):
    return equipment_registry.get_equipment(db, equipment_id)


@router.post("/", response_model=EquipmentResponse, status_code=status.HTTP_201_CREATED)
async def create_equipment(
    equipment_data: EquipmentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """Register a new piece of equipment (admin only)."""
    return equipment_registry.create_equipment(db, equipment_data)


@router.put("/{equipment_id}", response_model=EquipmentResponse)
async def update_equipment(
    equipment_id: int,
    equipment_data: EquipmentUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """Change equipment fields (admin only). Only sent fields are changed."""
    return equipment_registry.update_equipment(db, equipment_id, equipment_data)


@router.patch("/{equipment_id}/status", response_model=EquipmentResponse)
async def update_equipment_status(
    equipment_id: int,
    status_data: EquipmentStatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """Switch between available and maintenance."""
    return equipment_registry.update_status(db, equipment_id, status_data.status)


@router.delete("/{equipment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_equipment(
    equipment_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """Delete equipment (admin only). Refused while reservations reference it."""
    equipment_registry.get_equipment(db, equipment_id)
    if equipment_registry.has_reservations(db, equipment_id):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot delete equipment with existing reservations"
        )
    equipment_registry.delete_equipment(db, equipment_id)
