"""User model and role enumeration."""
import enum
from sqlalchemy import Column, Integer, String, Enum, DateTime, Boolean
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from app.database import Base


class UserRole(str, enum.Enum):
    """User roles for the booking system."""
    INTERN = "intern"
    STUDENT = "student"
    STAFF = "staff"
    EQUIPMENT_MANAGER = "equipment_manager"
    ADMIN = "admin"


# Roles that must name a supervisor when registering
SUPERVISED_ROLES = (UserRole.INTERN, UserRole.STUDENT)

# Roles offered as candidates when granting equipment permissions
GRANTABLE_ROLES = (UserRole.INTERN, UserRole.STUDENT, UserRole.STAFF)


class User(Base):
    """User model for authentication and authorization."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(50), unique=True, index=True, nullable=False)
    email = Column(String(100), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    department = Column(String(100), nullable=True)
    phone = Column(String(30), nullable=True)
    supervisor = Column(String(100), nullable=True)
    role = Column(
        Enum(UserRole, values_callable=lambda roles: [r.value for r in roles], name="user_role"),
        default=UserRole.STUDENT,
        nullable=False,
    )
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    reservations = relationship("Reservation", back_populates="user", cascade="all, delete-orphan")
    permissions = relationship(
        "EquipmentPermission",
        foreign_keys="EquipmentPermission.user_id",
        back_populates="user",
        cascade="all, delete-orphan",
    )
    logs = relationship("EquipmentLog", back_populates="user", cascade="all, delete-orphan")

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
