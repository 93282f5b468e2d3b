# Models package
from app.models.user import User, UserRole
from app.models.equipment import Equipment, EquipmentStatus, DocumentKind
from app.models.permission import EquipmentPermission, PermissionLevel
from app.models.reservation import Reservation, ReservationStatus
from app.models.equipment_log import EquipmentLog
