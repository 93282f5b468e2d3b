"""Equipment model."""
import enum

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.database import Base


class EquipmentStatus(str, enum.Enum):
    """Availability of a piece of equipment. Maintenance blocks new bookings."""
    AVAILABLE = "available"
    MAINTENANCE = "maintenance"


class DocumentKind(str, enum.Enum):
    """Attachment kinds and the equipment column holding their URL."""
    BROCHURE = "brochure"
    MANUAL = "manual"
    QUICK_GUIDE = "quick_guide"
    IMAGE = "image"

    @property
    def column(self) -> str:
        if self is DocumentKind.IMAGE:
            return "image_file_url"
        return f"{self.value}_url"


class Equipment(Base):
    """Equipment model - a bookable piece of lab equipment."""
    __tablename__ = "equipment"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    location = Column(String(255), nullable=True)
    status = Column(String(20), default=EquipmentStatus.AVAILABLE.value, nullable=False)
    manager_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    # Document URLs
    image_url = Column(Text, nullable=True)  # External image link
    image_file_url = Column(Text, nullable=True)  # Uploaded image
    brochure_url = Column(Text, nullable=True)
    manual_url = Column(Text, nullable=True)
    quick_guide_url = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    manager = relationship("User", foreign_keys=[manager_id])
    reservations = relationship("Reservation", back_populates="equipment")
    permissions = relationship("EquipmentPermission", back_populates="equipment", cascade="all, delete-orphan")
    logs = relationship("EquipmentLog", back_populates="equipment", cascade="all, delete-orphan")
