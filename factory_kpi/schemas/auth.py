from __future__ import annotations

from datetime import datetime
from typing import Any, List, Literal, Optional

from pydantic import EmailStr, Field

from factory_kpi.schemas.common import CamelModel

Role = Literal["admin", "manager", "user", "viewer"]


class LoginRequest(CamelModel):
    """Username/password credentials."""
    username: str = Field(..., min_length=1, description="Username")
    password: str = Field(..., min_length=1, description="Password")


class UserRead(CamelModel):
    """User read model. The password hash is never exposed."""
    id: str = Field(..., description="User ID")
    username: str = Field(..., description="Login name")
    name: str = Field(..., description="Display name")
    email: str = Field(..., description="User email")
    department: str = Field(..., description="Department name")
    role: str = Field(..., description="admin | manager | user | viewer")
    permissions: List[str] = Field(default_factory=list)
    profile_image: Optional[str] = Field(None, description="Data URL of the profile picture")
    is_active: bool = Field(..., description="Active flag")
    created_at: datetime = Field(..., description="Created timestamp")
    updated_at: datetime = Field(..., description="Updated timestamp")


class UserEnvelope(CamelModel):
    """Response wrapper used by login, me and profile updates."""
    user: UserRead


class ProfileUpdate(CamelModel):
    """Self-service profile changes."""
    name: Optional[str] = Field(None, min_length=1)
    email: Optional[EmailStr] = Field(None)


class PasswordChange(CamelModel):
    """Change own password; the current password must match."""
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6)


class ProfileImageUpdate(CamelModel):
    """Profile picture as a data URL (or null to remove it)."""
    image_data: Optional[str] = Field(None)


class AdminUserCreate(CamelModel):
    """
    Admin create user payload.

    Required fields are checked by the service so each missing field gets its own message.
    """
    username: Optional[str] = Field(None)
    password: Optional[str] = Field(None)
    name: Optional[str] = Field(None)
    email: Optional[str] = Field(None)
    department: Optional[str] = Field(None)
    role: Role = Field("user")
    permissions: List[str] = Field(default_factory=list)
    is_active: bool = Field(True)


class AdminUserUpdate(CamelModel):
    """Admin update user payload. Passwords have a dedicated endpoint."""
    username: Optional[str] = Field(None, min_length=1)
    name: Optional[str] = Field(None, min_length=1)
    email: Optional[EmailStr] = Field(None)
    department: Optional[str] = Field(None)
    role: Optional[Role] = Field(None)
    permissions: Optional[List[str]] = Field(None)
    is_active: Optional[bool] = Field(None)
    password: Optional[str] = Field(None, description="Rejected; use the password endpoint")


class AdminPasswordReset(CamelModel):
    password: Optional[str] = Field(None)


class UserStatusUpdate(CamelModel):
    # Checked by the service; strings like "false" are rejected rather than coerced.
    is_active: Any = Field(None)


class UserImportRow(CamelModel):
    """One row of a bulk user import; values arrive as typed in the sheet."""
    username: Optional[str] = Field(None)
    name: Optional[str] = Field(None)
    email: Optional[str] = Field(None)
    department: Optional[str] = Field(None)
    role: Optional[str] = Field(None)
    password: Optional[str] = Field(None)
    permissions: Optional[Any] = Field(None)
    is_active: Optional[Any] = Field(None)


class UserImportRequest(CamelModel):
    users: Optional[List[UserImportRow]] = Field(None)
    hash_passwords: bool = Field(
        False,
        description="Accepted from older clients and ignored: imported passwords are always stored as bcrypt hashes",
    )


class UserImportResult(CamelModel):
    success: bool
    imported_count: int
    errors: List[str] = Field(default_factory=list, description="First 10 row errors")
    message: str


class UserImportPreview(CamelModel):
    """Parsed upload ready for column mapping."""
    headers: List[str]
    rows: List[dict]
    mapping: dict = Field(default_factory=dict, description="Suggested header -> user field mapping")
    users: List[UserImportRow] = Field(default_factory=list, description="Rows mapped with the suggested mapping")
    total_rows: int


class DepartmentRead(CamelModel):
    id: str
    name: str
    description: Optional[str] = None
    manager_id: Optional[str] = None
    manager_name: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class DepartmentCreate(CamelModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    manager_id: Optional[str] = None
    is_active: bool = True


class DepartmentUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    manager_id: Optional[str] = None
    is_active: Optional[bool] = None
