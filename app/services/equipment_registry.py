"""Equipment registry - equipment records and their availability status."""
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from app import errors
from app.models.equipment import DocumentKind, Equipment, EquipmentStatus
from app.models.reservation import Reservation
from app.models.user import User
from app.schemas.equipment import EquipmentCreate, EquipmentUpdate

logger = logging.getLogger(__name__)


def find_equipment(db: Session, equipment_id: int) -> Optional[Equipment]:
    """Get equipment by id, or None."""
    return db.query(Equipment).filter(Equipment.id == equipment_id).first()


def get_equipment(db: Session, equipment_id: int) -> Equipment:
    """Get equipment by id, raising NotFoundError if it does not exist."""
    equipment = find_equipment(db, equipment_id)
    if not equipment:
        raise errors.NotFoundError("Equipment not found")
    return equipment


def list_equipment(db: Session, skip: int = 0, limit: int = 100) -> List[Equipment]:
    """All equipment, newest first."""
    return (
        db.query(Equipment)
        .order_by(Equipment.created_at.desc(), Equipment.id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )


def list_available(db: Session) -> List[Equipment]:
    """Equipment that can currently be booked, by name."""
    return (
        db.query(Equipment)
        .filter(Equipment.status == EquipmentStatus.AVAILABLE.value)
        .order_by(Equipment.name)
        .all()
    )


def _check_manager(db: Session, manager_id: Optional[int]) -> None:
    if manager_id is not None and not db.query(User.id).filter(User.id == manager_id).first():
        raise errors.NotFoundError("Manager user not found")


def create_equipment(db: Session, data: EquipmentCreate) -> Equipment:
    values = data.model_dump()
    _check_manager(db, values.get("manager_id"))
    values["status"] = data.status.value
    equipment = Equipment(**values)
    db.add(equipment)
    db.commit()
    db.refresh(equipment)
    logger.info("Equipment %s created: %s", equipment.id, equipment.name)
    return equipment


def update_equipment(db: Session, equipment_id: int, data: EquipmentUpdate) -> Equipment:
    """Apply the fields that were sent; leave the rest untouched."""
    equipment = get_equipment(db, equipment_id)

    update_data = data.model_dump(exclude_unset=True)
    if update_data.get("status") is None:
        update_data.pop("status", None)
    else:
        update_data["status"] = EquipmentStatus(update_data["status"]).value
    if "name" in update_data and update_data["name"] is None:
        update_data.pop("name")
    if "manager_id" in update_data:
        _check_manager(db, update_data["manager_id"])

    for field, value in update_data.items():
        setattr(equipment, field, value)

    db.commit()
    db.refresh(equipment)
    return equipment


def update_status(db: Session, equipment_id: int, status: str) -> Equipment:
    """Set availability. Only 'available' and 'maintenance' are accepted."""
    try:
        new_status = EquipmentStatus(status)
    except ValueError:
        raise errors.ValidationError("Valid status is required (available/maintenance)")

    equipment = get_equipment(db, equipment_id)
    equipment.status = new_status.value
    db.commit()
    db.refresh(equipment)
    logger.info("Equipment %s status set to %s", equipment_id, new_status.value)
    return equipment


def set_document_url(db: Session, equipment_id: int, kind: DocumentKind, url: Optional[str]) -> Equipment:
    """Record (or clear, with url=None) the URL of an uploaded document."""
    equipment = get_equipment(db, equipment_id)
    setattr(equipment, kind.column, url)
    db.commit()
    db.refresh(equipment)
    return equipment


def has_reservations(db: Session, equipment_id: int) -> bool:
    return db.query(Reservation.id).filter(Reservation.equipment_id == equipment_id).first() is not None


def delete_equipment(db: Session, equipment_id: int) -> None:
    """Delete equipment together with its grants and log entries.

    Callers must make sure no reservation references it; the foreign key
    rejects the delete otherwise.
    """
    equipment = get_equipment(db, equipment_id)
    db.delete(equipment)
    db.commit()
    logger.info("Equipment %s deleted", equipment_id)
