"""Default data: an admin account, a test user and sample equipment."""
import logging

from sqlalchemy.orm import Session

from app.auth import get_password_hash
from app.models.equipment import Equipment, EquipmentStatus
from app.models.user import User, UserRole

logger = logging.getLogger(__name__)

DEFAULT_USERS = [
    {"username": "admin", "email": "admin@test.com", "password": "admin123", "role": UserRole.ADMIN,
     "department": "Administration"},
    {"username": "testuser", "email": "user@test.com", "password": "user123", "role": UserRole.STAFF,
     "department": "Materials Lab"},
]

SAMPLE_EQUIPMENT = [
    {"name": "SEM", "description": "Scanning electron microscope for high-resolution surface imaging",
     "location": "1F Analysis Room", "status": EquipmentStatus.AVAILABLE},
    {"name": "AFM", "description": "Atomic force microscope for nanoscale surface topography",
     "location": "2F Nano Lab", "status": EquipmentStatus.AVAILABLE},
    {"name": "XRD", "description": "X-ray diffractometer for crystal structure analysis",
     "location": "1F Analysis Room", "status": EquipmentStatus.AVAILABLE},
    {"name": "FTIR", "description": "Infrared spectrometer for chemical bond analysis",
     "location": "3F Chemistry Lab", "status": EquipmentStatus.AVAILABLE},
    {"name": "Spin Coater", "description": "Spin coating for thin film deposition",
     "location": "B1 Process Room", "status": EquipmentStatus.AVAILABLE},
    {"name": "3D Printer", "description": "FDM 3D printer for prototyping",
     "location": "2F Workshop", "status": EquipmentStatus.MAINTENANCE},
]


def seed_defaults(db: Session) -> None:
    """Create default users and sample equipment. Safe to run repeatedly."""
    for data in DEFAULT_USERS:
        if db.query(User).filter(User.email == data["email"]).first():
            continue
        db.add(User(
            username=data["username"],
            email=data["email"],
            hashed_password=get_password_hash(data["password"]),
            role=data["role"],
            department=data["department"],
            is_active=True,
        ))
        logger.info("Seeded user %s", data["email"])

    if not db.query(Equipment.id).first():
        for data in SAMPLE_EQUIPMENT:
            db.add(Equipment(**{**data, "status": data["status"].value}))
        logger.info("Seeded %d pieces of equipment", len(SAMPLE_EQUIPMENT))

    db.commit()
