"""Reservation routes."""
from datetime import datetime
from typing import Callable, List

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app import errors
from app.auth import (
    ensure_can_manage,
    ensure_can_view_reservation,
    ensure_owner_or_admin,
    get_current_user,
    is_manager_of,
    require_admin,
)
from app.clock import get_clock
from app.database import get_db
from app.models.reservation import ReservationStatus
from app.models.user import User
from app.schemas.reservation import (
    ConflictCheck,
    ConflictCheckResult,
    ReservationCreate,
    ReservationCreated,
    ReservationResponse,
    ReservationUpdate,
)
from app.services import permission_ledger, reservation_engine

router = APIRouter(prefix="/reservations", tags=["Reservations"])

STATUS_MESSAGES = {
    ReservationStatus.PENDING: "Reservation requested, awaiting approval",
    ReservationStatus.CONFIRMED: "Reservation confirmed",
}


@router.get("/", response_model=List[ReservationResponse])
async def list_reservations(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """All reservations (admin only)."""
    return reservation_engine.list_all(db)


@router.get("/manager", response_model=List[ReservationResponse])
async def list_managed_reservations(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Reservations on equipment the current user manages."""
    if current_user.is_admin:
        return reservation_engine.list_all(db)
    managed = permission_ledger.get_managed_equipment(db, current_user.id)
    return reservation_engine.list_by_equipment_ids(db, [e.id for e in managed])


@router.get("/my", response_model=List[ReservationResponse])
async def my_reservations(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return reservation_engine.list_by_user(db, current_user.id)


@router.get("/upcoming", response_model=List[ReservationResponse])
async def upcoming_reservations(
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    clock: Callable[[], datetime] = Depends(get_clock),
    current_user: User = Depends(get_current_user)
):
    """Confirmed reservations that have not started yet."""
    return reservation_engine.list_upcoming(db, now=clock(), limit=limit)


@router.get("/equipment/{equipment_id}", response_model=List[ReservationResponse])
async def equipment_reservations(
    equipment_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Active reservations of one piece of equipment, for calendar display."""
    return reservation_engine.list_by_equipment(db, equipment_id)


@router.get("/range", response_model=List[ReservationResponse])
async def reservations_in_range(
    start: datetime = Query(..., description="Range start"),
    end: datetime = Query(..., description="Range end"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return reservation_engine.list_in_range(db, start, end)


@router.post("/check-conflict", response_model=ConflictCheckResult)
async def check_conflict(
    check: ConflictCheck,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    has_conflict = reservation_engine.check_conflict(
        db, check.equipment_id, check.start_time, check.end_time, exclude_id=check.exclude_id
    )
    return ConflictCheckResult(
        has_conflict=has_conflict,
        message="Time slot is already reserved" if has_conflict else "Time slot is available",
    )


@router.post("/", response_model=ReservationCreated, status_code=status.HTTP_201_CREATED)
async def create_reservation(
    reservation_data: ReservationCreate,
    db: Session = Depends(get_db),
    clock: Callable[[], datetime] = Depends(get_clock),
    current_user: User = Depends(get_current_user)
):
    """Book a time slot. The status depends on the user's access level."""
    reservation = reservation_engine.create_reservation(
        db,
        reservation_data.equipment_id,
        current_user,
        reservation_data.start_time,
        reservation_data.end_time,
        purpose=reservation_data.purpose,
        now=clock(),
    )
    reservation_status = ReservationStatus(reservation.status)
    return ReservationCreated(
        id=reservation.id,
        status=reservation_status,
        message=STATUS_MESSAGES[reservation_status],
    )


@router.get("/{reservation_id}", response_model=ReservationResponse)
async def get_reservation(
    reservation_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    reservation = reservation_engine.get_reservation(db, reservation_id)
    ensure_can_view_reservation(db, reservation, current_user)
    return reservation


@router.put("/{reservation_id}", response_model=ReservationResponse)
async def update_reservation(
    reservation_id: int,
    update_data: ReservationUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Change times, purpose or status (owner or admin)."""
    reservation = reservation_engine.get_reservation(db, reservation_id)
    ensure_owner_or_admin(reservation.user_id, current_user, "update")
    if (
        update_data.status == ReservationStatus.CONFIRMED
        and reservation.status != ReservationStatus.CONFIRMED.value
        and not is_manager_of(db, reservation.equipment_id, current_user)
    ):
        raise errors.AuthorizationError("Only an admin or equipment manager can confirm reservations")

    return reservation_engine.update_reservation(
        db,
        reservation_id,
        start=update_data.start_time,
        end=update_data.end_time,
        purpose=update_data.purpose,
        status=update_data.status,
    )


@router.post("/{reservation_id}/approve", response_model=ReservationResponse)
async def approve_reservation(
    reservation_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Confirm a pending reservation (admin or equipment manager)."""
    reservation = reservation_engine.get_reservation(db, reservation_id)
    ensure_can_manage(db, reservation.equipment_id, current_user)
    return reservation_engine.approve_reservation(db, reservation_id)


@router.post("/{reservation_id}/cancel", response_model=ReservationResponse)
async def cancel_reservation(
    reservation_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    reservation = reservation_engine.get_reservation(db, reservation_id)
    ensure_owner_or_admin(reservation.user_id, current_user, "cancel")
    return reservation_engine.cancel_reservation(db, reservation_id)


@router.post("/{reservation_id}/restore", response_model=ReservationResponse)
async def restore_reservation(
    reservation_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """Bring a cancelled reservation back as confirmed, if its slot is still free."""
    return reservation_engine.restore_reservation(db, reservation_id)


@router.delete("/{reservation_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_reservation(
    reservation_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    reservation_engine.delete_reservation(db, reservation_id)
