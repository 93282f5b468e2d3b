"""Equipment usage log routes."""
from typing import List

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.auth import ensure_owner_or_admin, get_current_user
from app.database import get_db
from app.models.user import User
from app.schemas.equipment_log import EquipmentLogCreate, EquipmentLogResponse, EquipmentLogUpdate
from app.services import usage_log

router = APIRouter(prefix="/logs", tags=["Equipment Logs"])


@router.get("/equipment/{equipment_id}", response_model=List[EquipmentLogResponse])
async def equipment_logs(
    equipment_id: int,
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return usage_log.get_by_equipment(db, equipment_id, limit=limit)


@router.post("/equipment/{equipment_id}", response_model=EquipmentLogResponse, status_code=status.HTTP_201_CREATED)
async def add_equipment_log(
    equipment_id: int,
    log_data: EquipmentLogCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Leave a remark on the equipment, optionally tied to a reservation."""
    return usage_log.create(
        db,
        equipment_id,
        current_user.id,
        log_data.content,
        reservation_id=log_data.reservation_id,
        log_type=log_data.log_type,
    )


@router.get("/reservation/{reservation_id}", response_model=List[EquipmentLogResponse])
async def reservation_logs(
    reservation_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return usage_log.get_by_reservation(db, reservation_id)


@router.get("/recent", response_model=List[EquipmentLogResponse])
async def recent_logs(
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return usage_log.get_recent(db, limit=limit)


@router.put("/{log_id}", response_model=EquipmentLogResponse)
async def update_log(
    log_id: int,
    log_data: EquipmentLogUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Edit a remark (author or admin)."""
    entry = usage_log.get_log(db, log_id)
    ensure_owner_or_admin(entry.user_id, current_user, "edit")
    return usage_log.update(db, log_id, log_data.content)


@router.delete("/{log_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_log(
    log_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    entry = usage_log.get_log(db, log_id)
    ensure_owner_or_admin(entry.user_id, current_user, "delete")
    usage_log.delete(db, log_id)
