"""
Reservation engine - interval conflict detection and status assignment.

A reservation occupies the half-open interval [start_time, end_time) on one
piece of equipment. For any equipment, no two reservations whose status is not
``cancelled`` may overlap.

Every write that can introduce an overlap (create, time change, restore) runs
as one transactional unit per equipment: the equipment row is locked with
``SELECT ... FOR UPDATE`` and the write itself is a single conditional
statement guarded by ``NOT EXISTS (<overlapping reservation>)``. A guarded
write that touches no row means the slot was taken, and the transaction is
rolled back.
"""
import logging
from datetime import datetime
from typing import Dict, FrozenSet, Iterable, List, Optional

from sqlalchemy import DateTime, Integer, String, Text, and_, insert, literal, select, update
from sqlalchemy.orm import Session, joinedload

from app import errors
from app.clock import to_utc_naive, utcnow
from app.models.equipment import Equipment, EquipmentStatus
from app.models.permission import PermissionLevel
from app.models.reservation import Reservation, ReservationStatus
from app.models.user import User, UserRole
from app.services import permission_ledger

logger = logging.getLogger(__name__)

reservations = Reservation.__table__

# Initial status of a booking made by a non-admin, by grant level
LEVEL_STATUS: Dict[PermissionLevel, ReservationStatus] = {
    PermissionLevel.NORMAL: ReservationStatus.PENDING,
    PermissionLevel.AUTONOMOUS: ReservationStatus.CONFIRMED,
    PermissionLevel.MANAGER: ReservationStatus.CONFIRMED,
}

# Status changes allowed through update. Leaving cancelled is only possible
# through restore, and nothing re-enters pending.
ALLOWED_TRANSITIONS: Dict[ReservationStatus, FrozenSet[ReservationStatus]] = {
    ReservationStatus.PENDING: frozenset({ReservationStatus.CONFIRMED, ReservationStatus.CANCELLED}),
    ReservationStatus.CONFIRMED: frozenset({ReservationStatus.CANCELLED}),
    ReservationStatus.CANCELLED: frozenset(),
}


def initial_status(role: UserRole, level: Optional[PermissionLevel]) -> ReservationStatus:
    """Status a new reservation receives.

    Admins are confirmed without consulting grants. Everyone else is
    confirmed with an autonomous or manager grant and pending with a normal
    grant or none.
    """
    if UserRole(role) == UserRole.ADMIN:
        return ReservationStatus.CONFIRMED
    if level is None:
        return ReservationStatus.PENDING
    return LEVEL_STATUS[PermissionLevel(level)]


def _validated_interval(start: datetime, end: datetime):
    if start is None or end is None:
        raise errors.ValidationError("Start time and end time are required")
    start, end = to_utc_naive(start), to_utc_naive(end)
    if end <= start:
        raise errors.ValidationError("End time must be after start time")
    return start, end


def _overlapping(table, equipment_id: int, start: datetime, end: datetime, exclude_id: Optional[int] = None):
    """Rows of ``table`` on the equipment that are active and overlap [start, end)."""
    clause = and_(
        table.c.equipment_id == equipment_id,
        table.c.status != ReservationStatus.CANCELLED.value,
        table.c.start_time < end,
        table.c.end_time > start,
    )
    if exclude_id is not None:
        clause = and_(clause, table.c.id != exclude_id)
    return clause


def _slot_free(equipment_id: int, start: datetime, end: datetime, exclude_id: Optional[int] = None):
    other = reservations.alias("other")
    return ~select(other.c.id).where(_overlapping(other, equipment_id, start, end, exclude_id)).exists()


def _lock_equipment(db: Session, equipment_id: int) -> Equipment:
    """Load the equipment row FOR UPDATE, serializing writers on it."""
    equipment = db.execute(
        select(Equipment).where(Equipment.id == equipment_id).with_for_update()
    ).scalar_one_or_none()
    if equipment is None:
        raise errors.NotFoundError("Equipment not found")
    return equipment


def check_conflict(
    db: Session,
    equipment_id: int,
    start: datetime,
    end: datetime,
    exclude_id: Optional[int] = None,
) -> bool:
    """True if an active reservation on the equipment overlaps [start, end)."""
    start, end = _validated_interval(start, end)
    stmt = select(reservations.c.id).where(_overlapping(reservations, equipment_id, start, end, exclude_id)).limit(1)
    return db.execute(stmt).first() is not None


def create_reservation(
    db: Session,
    equipment_id: int,
    user: User,
    start: datetime,
    end: datetime,
    purpose: Optional[str] = "",
    now: Optional[datetime] = None,
) -> Reservation:
    """
    Book [start, end) on the equipment for ``user``.

    Checks, in order: not in the past, end after start, equipment exists and
    is available, slot free. The status is then decided by the user's role
    and grant level. Nothing is written when any check fails.
    """
    if start is None or end is None:
        raise errors.ValidationError("Start time and end time are required")
    now = to_utc_naive(now or utcnow())
    start, end = to_utc_naive(start), to_utc_naive(end)

    if start < now:
        raise errors.ValidationError("Cannot create reservation in the past")
    start, end = _validated_interval(start, end)

    try:
        equipment = _lock_equipment(db, equipment_id)
        if equipment.status != EquipmentStatus.AVAILABLE.value:
            raise errors.ValidationError("Equipment is not available")

        level = None
        if user.role != UserRole.ADMIN:
            grant = permission_ledger.has_permission(db, equipment_id, user.id)
            level = grant.level if grant else None
        status = initial_status(user.role, level)

        candidate = select(
            literal(equipment_id, Integer),
            literal(user.id, Integer),
            literal(start, DateTime),
            literal(end, DateTime),
            literal(purpose or "", Text),
            literal(status.value, String),
        ).where(_slot_free(equipment_id, start, end))
        stmt = (
            insert(reservations)
            .from_select(["equipment_id", "user_id", "start_time", "end_time", "purpose", "status"], candidate)
            .returning(reservations.c.id)
        )
        reservation_id = db.execute(stmt).scalar_one_or_none()
        if reservation_id is None:
            logger.info("Reservation on equipment %s [%s, %s) refused: slot occupied", equipment_id, start, end)
            raise errors.ConflictError("Time slot is already reserved")

        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(
        "Reservation %s created on equipment %s by user %s [%s, %s) -> %s",
        reservation_id, equipment_id, user.id, start, end, status.value,
    )
    return get_reservation(db, reservation_id)


def update_reservation(
    db: Session,
    reservation_id: int,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    purpose: Optional[str] = None,
    status: Optional[ReservationStatus] = None,
) -> Reservation:
    """
    Change times, purpose or status of a reservation.

    A changed interval is re-checked for overlaps, excluding the reservation
    itself. The creation policy (past check, status assignment) is not re-run.
    Only the fields that change are written, and only if the row still has
    the status it was read with under the equipment lock.
    """
    reservation = get_reservation(db, reservation_id)

    try:
        _lock_equipment(db, reservation.equipment_id)
        reservation = _reload(db, reservation_id)
        current = ReservationStatus(reservation.status)

        new_start = to_utc_naive(start) if start is not None else reservation.start_time
        new_end = to_utc_naive(end) if end is not None else reservation.end_time
        times_changed = (new_start, new_end) != (reservation.start_time, reservation.end_time)
        if times_changed:
            new_start, new_end = _validated_interval(new_start, new_end)

        new_status = current
        if status is not None and ReservationStatus(status) != current:
            new_status = ReservationStatus(status)
            if new_status not in ALLOWED_TRANSITIONS[current]:
                raise errors.ValidationError(f"Cannot change status from {current.value} to {new_status.value}")

        values = {}
        if times_changed:
            values.update(start_time=new_start, end_time=new_end)
        if purpose is not None and purpose != reservation.purpose:
            values["purpose"] = purpose
        if new_status != current:
            values["status"] = new_status.value

        if values:
            stmt = (
                update(reservations)
                .where(reservations.c.id == reservation_id, reservations.c.status == current.value)
                .values(**values)
            )
            guarded = times_changed and new_status != ReservationStatus.CANCELLED
            if guarded:
                stmt = stmt.where(_slot_free(reservation.equipment_id, new_start, new_end, exclude_id=reservation_id))
            if db.execute(stmt).rowcount != 1:
                _raise_write_refused(db, reservation_id, current, guarded)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(reservation)
    logger.info("Reservation %s updated (%s)", reservation_id, new_status.value)
    return reservation


def _reload(db: Session, reservation_id: int) -> Reservation:
    """Re-read the row, overwriting whatever the session already holds."""
    reservation = _query(db).populate_existing().filter(Reservation.id == reservation_id).first()
    if not reservation:
        raise errors.NotFoundError("Reservation not found")
    return reservation


def _raise_write_refused(db: Session, reservation_id: int, expected: ReservationStatus, guarded: bool):
    """A guarded write touched no row: tell a stale status from an occupied slot."""
    stored = db.execute(select(reservations.c.status).where(reservations.c.id == reservation_id)).scalar_one_or_none()
    if stored != expected.value:
        logger.info("Write to reservation %s refused: status changed to %s", reservation_id, stored)
        raise errors.ConflictError("Reservation was changed by another request, reload and retry")
    if guarded:
        logger.info("Write to reservation %s refused: slot occupied", reservation_id)
    raise errors.ConflictError("Time slot is already reserved")


def approve_reservation(db: Session, reservation_id: int) -> Reservation:
    """pending -> confirmed."""
    reservation = get_reservation(db, reservation_id)
    if reservation.status != ReservationStatus.PENDING.value:
        raise errors.ValidationError("Only pending reservations can be approved")
    return update_reservation(db, reservation_id, status=ReservationStatus.CONFIRMED)


def cancel_reservation(db: Session, reservation_id: int) -> Reservation:
    """Mark cancelled. The interval is free for other bookings at once."""
    reservation = get_reservation(db, reservation_id)
    reservation.status = ReservationStatus.CANCELLED.value
    db.commit()
    db.refresh(reservation)
    logger.info("Reservation %s cancelled", reservation_id)
    return reservation


def restore_reservation(db: Session, reservation_id: int) -> Reservation:
    """
    cancelled -> confirmed, if its interval is still free.

    Raises ConflictError and leaves the reservation cancelled when another
    active reservation now overlaps it. The past check of creation is not
    applied here.
    """
    reservation = get_reservation(db, reservation_id)

    try:
        _lock_equipment(db, reservation.equipment_id)
        reservation = _reload(db, reservation_id)
        if reservation.status != ReservationStatus.CANCELLED.value:
            raise errors.ValidationError("Only cancelled reservations can be restored")

        start, end = reservation.start_time, reservation.end_time
        stmt = (
            update(reservations)
            .where(
                reservations.c.id == reservation_id,
                reservations.c.status == ReservationStatus.CANCELLED.value,
                reservations.c.start_time == start,
                reservations.c.end_time == end,
            )
            .where(_slot_free(reservation.equipment_id, start, end, exclude_id=reservation_id))
            .values(status=ReservationStatus.CONFIRMED.value)
        )
        if db.execute(stmt).rowcount != 1:
            stored = db.execute(
                select(reservations.c.status, reservations.c.start_time, reservations.c.end_time)
                .where(reservations.c.id == reservation_id)
            ).first()
            if stored is None or tuple(stored) != (ReservationStatus.CANCELLED.value, start, end):
                raise errors.ConflictError("Reservation was changed by another request, reload and retry")
            logger.info("Restore of reservation %s refused: slot occupied", reservation_id)
            raise errors.ConflictError("Cannot restore - time slot is now occupied by another reservation")
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(reservation)
    logger.info("Reservation %s restored", reservation_id)
    return reservation


def delete_reservation(db: Session, reservation_id: int) -> None:
    """Hard delete. Log entries keep existing without the reference."""
    reservation = get_reservation(db, reservation_id)
    db.delete(reservation)
    db.commit()
    logger.info("Reservation %s deleted", reservation_id)


# --- Read projections ---

def _query(db: Session):
    return db.query(Reservation).options(joinedload(Reservation.user), joinedload(Reservation.equipment))


def find_reservation(db: Session, reservation_id: int) -> Optional[Reservation]:
    return _query(db).filter(Reservation.id == reservation_id).first()


def get_reservation(db: Session, reservation_id: int) -> Reservation:
    reservation = find_reservation(db, reservation_id)
    if not reservation:
        raise errors.NotFoundError("Reservation not found")
    return reservation


def list_all(db: Session) -> List[Reservation]:
    return _query(db).order_by(Reservation.start_time.desc()).all()


def list_by_user(db: Session, user_id: int) -> List[Reservation]:
    return _query(db).filter(Reservation.user_id == user_id).order_by(Reservation.start_time.desc()).all()


def list_by_equipment(db: Session, equipment_id: int) -> List[Reservation]:
    """Active reservations of one piece of equipment, earliest first."""
    return (
        _query(db)
        .filter(
            Reservation.equipment_id == equipment_id,
            Reservation.status != ReservationStatus.CANCELLED.value,
        )
        .order_by(Reservation.start_time.asc())
        .all()
    )


def list_by_equipment_ids(db: Session, equipment_ids: Iterable[int]) -> List[Reservation]:
    equipment_ids = list(equipment_ids)
    if not equipment_ids:
        return []
    return (
        _query(db)
        .filter(Reservation.equipment_id.in_(equipment_ids))
        .order_by(Reservation.start_time.desc())
        .all()
    )


def list_upcoming(db: Session, now: Optional[datetime] = None, limit: int = 10) -> List[Reservation]:
    now = to_utc_naive(now or utcnow())
    return (
        _query(db)
        .filter(
            Reservation.start_time >= now,
            Reservation.status == ReservationStatus.CONFIRMED.value,
        )
        .order_by(Reservation.start_time.asc())
        .limit(limit)
        .all()
    )


def list_in_range(db: Session, start: datetime, end: datetime) -> List[Reservation]:
    """Active reservations lying entirely inside [start, end]."""
    start, end = to_utc_naive(start), to_utc_naive(end)
    return (
        _query(db)
        .filter(
            Reservation.start_time >= start,
            Reservation.end_time <= end,
            Reservation.status != ReservationStatus.CANCELLED.value,
        )
        .order_by(Reservation.start_time.asc())
        .all()
    )
