"""User schemas for request/response validation."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, EmailStr, Field

from app.models.user import UserRole


class UserBase(BaseModel):
    """Base user schema."""
    username: str = Field(..., min_length=1, max_length=50)
    email: EmailStr
    department: Optional[str] = None
    phone: Optional[str] = None
    supervisor: Optional[str] = None


class UserCreate(UserBase):
    """Schema for registering a user."""
    password: str = Field(..., min_length=4)
    role: UserRole = UserRole.STUDENT


class UserUpdate(BaseModel):
    """Schema for updating a user (admin only)."""
    username: Optional[str] = Field(None, min_length=1, max_length=50)
    email: Optional[EmailStr] = None
    department: Optional[str] = None
    phone: Optional[str] = None
    supervisor: Optional[str] = None
    role: Optional[UserRole] = None
    is_active: Optional[bool] = None


class UserResponse(UserBase):
    """Schema for user response."""
    id: int
    role: UserRole
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UserSummary(BaseModel):
    """Short user listing, e.g. permission candidates."""
    id: int
    username: str
    email: str
    department: Optional[str] = None
    role: UserRole

    class Config:
        from_attributes = True


class LoginRequest(BaseModel):
    """Email/password login body."""
    email: EmailStr
    password: str


class Token(BaseModel):
    """JWT token schema."""
    access_token: str
    token_type: str


class LoginResponse(Token):
    """Token plus the logged-in user."""
    user: UserResponse


class PasswordChange(BaseModel):
    """Schema for changing password."""
    current_password: str
    new_password: str = Field(..., min_length=4)
