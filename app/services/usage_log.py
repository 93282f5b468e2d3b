"""Usage log - free-text remarks attached to equipment and reservations."""
import logging
from typing import List, Optional

from sqlalchemy.orm import Session, joinedload

from app import errors
from app.models.equipment import Equipment
from app.models.equipment_log import DEFAULT_LOG_TYPE, EquipmentLog
from app.models.reservation import Reservation

logger = logging.getLogger(__name__)


def _query(db: Session):
    return db.query(EquipmentLog).options(joinedload(EquipmentLog.user), joinedload(EquipmentLog.equipment))


def _newest_first(query):
    return query.order_by(EquipmentLog.created_at.desc(), EquipmentLog.id.desc())


def _clean(content: Optional[str]) -> str:
    if content is None or not content.strip():
        raise errors.ValidationError("Log content is required")
    return content.strip()


def create(
    db: Session,
    equipment_id: int,
    user_id: int,
    content: str,
    reservation_id: Optional[int] = None,
    log_type: str = DEFAULT_LOG_TYPE,
) -> EquipmentLog:
    """Append a remark. A referenced reservation must be on the same equipment."""
    content = _clean(content)
    if not db.query(Equipment.id).filter(Equipment.id == equipment_id).first():
        raise errors.NotFoundError("Equipment not found")

    if reservation_id is not None:
        reservation = db.query(Reservation).filter(Reservation.id == reservation_id).first()
        if not reservation:
            raise errors.NotFoundError("Reservation not found")
        if reservation.equipment_id != equipment_id:
            raise errors.ValidationError("Reservation does not belong to this equipment")

    entry = EquipmentLog(
        equipment_id=equipment_id,
        user_id=user_id,
        reservation_id=reservation_id,
        log_type=log_type or DEFAULT_LOG_TYPE,
        content=content,
    )
    db.add(entry)
    db.commit()
    db.refresh(entry)
    logger.info("Log %s added to equipment %s by user %s", entry.id, equipment_id, user_id)
    return entry


def get_log(db: Session, log_id: int) -> EquipmentLog:
    entry = _query(db).filter(EquipmentLog.id == log_id).first()
    if not entry:
        raise errors.NotFoundError("Log not found")
    return entry


def get_by_equipment(db: Session, equipment_id: int, limit: int = 10) -> List[EquipmentLog]:
    return _newest_first(_query(db).filter(EquipmentLog.equipment_id == equipment_id)).limit(limit).all()


def get_by_reservation(db: Session, reservation_id: int) -> List[EquipmentLog]:
    return _newest_first(_query(db).filter(EquipmentLog.reservation_id == reservation_id)).all()


def get_recent(db: Session, limit: int = 20) -> List[EquipmentLog]:
    return _newest_first(_query(db)).limit(limit).all()


def update(db: Session, log_id: int, content: str) -> EquipmentLog:
    entry = get_log(db, log_id)
    entry.content = _clean(content)
    db.commit()
    db.refresh(entry)
    return entry


def delete(db: Session, log_id: int) -> None:
    entry = get_log(db, log_id)
    db.delete(entry)
    db.commit()
    logger.info("Log %s deleted", log_id)
