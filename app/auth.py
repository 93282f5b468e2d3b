"""Authentication and authorization utilities."""
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy import or_
from sqlalchemy.orm import Session

from app import errors
from app.config import settings
from app.database import get_db
from app.models.permission import EquipmentPermission, PermissionLevel
from app.models.reservation import Reservation
from app.models.user import User, UserRole
from app.services import permission_ledger

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/token")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Check a plain password against its hash."""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def create_access_token(user: User, expires_delta: Optional[timedelta] = None) -> str:
    """Signed JWT whose subject is the user id."""
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode = {"sub": str(user.id), "role": UserRole(user.role).value, "exp": expire}
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def authenticate_user(db: Session, login: str, password: str) -> Optional[User]:
    """Find a user by email or username and verify the password."""
    user = db.query(User).filter(or_(User.email == login, User.username == login)).first()
    if not user or not verify_password(password, user.hashed_password):
        return None
    return user


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    """Resolve the bearer token to an active user."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        subject = payload.get("sub")
        if subject is None:
            raise credentials_exception
        user_id = int(subject)
    except (JWTError, ValueError):
        raise credentials_exception

    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise credentials_exception
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Inactive user",
        )
    return user


def require_role(roles: Iterable[UserRole]):
    """Dependency factory: the current user must hold one of ``roles``."""
    allowed = {UserRole(r) for r in roles}

    async def role_checker(current_user: User = Depends(get_current_user)) -> User:
        if UserRole(current_user.role) not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Not enough permissions",
            )
        return current_user

    return role_checker


require_admin = require_role([UserRole.ADMIN])


# --- Resource-level checks (raise AuthorizationError) ---

def is_manager_of(db: Session, equipment_id: int, user: User) -> bool:
    return user.is_admin or permission_ledger.can_manage(db, equipment_id, user.id)


def ensure_can_manage(db: Session, equipment_id: int, user: User) -> None:
    """Admin, or manager-level grant on the equipment."""
    if not is_manager_of(db, equipment_id, user):
        raise errors.AuthorizationError("Equipment manager permission required")


def ensure_owner_or_admin(owner_id: int, user: User, action: str = "modify") -> None:
    if owner_id != user.id and not user.is_admin:
        raise errors.AuthorizationError(f"You can only {action} your own records")


def ensure_can_view_reservation(db: Session, reservation: Reservation, user: User) -> None:
    if reservation.user_id == user.id or is_manager_of(db, reservation.equipment_id, user):
        return
    raise errors.AuthorizationError("Access denied")


def ensure_can_grant(
    user: User,
    level: Optional[PermissionLevel] = None,
    existing: Optional[EquipmentPermission] = None,
) -> None:
    """
    Only admins may hand out the manager level or touch a manager grant.

    The caller has already established that ``user`` manages the equipment.
    """
    if user.is_admin:
        return
    if level is not None and PermissionLevel(level) == PermissionLevel.MANAGER:
        raise errors.AuthorizationError("Only admin can grant manager permission")
    if existing is not None and existing.level == PermissionLevel.MANAGER:
        raise errors.AuthorizationError("Only admin can modify a manager permission")
