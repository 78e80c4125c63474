from __future__ import annotations

import logging
from typing import Dict, List, Optional

from fastapi import HTTPException, status

from factory_kpi.core.security import ensure_password_hash, get_password_hash, verify_password
from factory_kpi.core.settings import get_app_settings
from factory_kpi.db.models import Department, User
from factory_kpi.schemas.auth import (
    AdminUserCreate,
    AdminUserUpdate,
    DepartmentCreate,
    DepartmentRead,
    DepartmentUpdate,
    PasswordChange,
    ProfileUpdate,
    UserImportRequest,
    UserImportResult,
)
from factory_kpi.schemas.kpi import ActivityRead
from factory_kpi.services.base import BaseService, drop_nulls
from factory_kpi.services.tabular_import import map_role, map_status

logger = logging.getLogger(__name__)

MAX_REPORTED_IMPORT_ERRORS = 10


def _not_found(what: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{what} not found")


def _bad_request(message: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message)


def _blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


class UserService(BaseService):
    """Authentication, profile, user administration and bulk import."""

    # PUBLIC_INTERFACE
    async def authenticate(self, username: str, password: str) -> User:
        """
        Check credentials and record the login.

        Raises:
            HTTPException: 401 for unknown users, wrong passwords and disabled accounts.
        """
        user = await self.storage.users.get_user_by_username(username)
        if not user or not verify_password(password, user.password):
            logger.info("Failed login for username=%s", username)
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
        if not user.is_active:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Account is disabled")

        try:
            await self._log_activity(user.id, "login", f"{user.name} signed in")
        except Exception:
            # A broken audit trail must not lock users out.
            logger.exception("Failed to record login activity for user %s", user.id)
        return user

    # Profile

    # PUBLIC_INTERFACE
    async def update_profile(self, user: User, payload: ProfileUpdate) -> User:
        values = payload.model_dump(exclude_unset=True, exclude_none=True)
        if not values:
            return user
        updated = await self.storage.users.update_user(user.id, values)
        if updated is None:
            raise _not_found("User")
        await self._log_activity(user.id, "update_profile", "Profile updated")
        return updated

    # PUBLIC_INTERFACE
    async def change_password(self, user: User, payload: PasswordChange) -> None:
        if not verify_password(payload.current_password, user.password):
            raise _bad_request("Current password is incorrect")
        await self.storage.users.update_user(user.id, {"password": get_password_hash(payload.new_password)})
        await self._log_activity(user.id, "change_password", "Password changed")

    # PUBLIC_INTERFACE
    async def update_profile_image(self, user: User, image_data: Optional[str]) -> User:
        updated = await self.storage.users.update_user(user.id, {"profile_image": image_data or None})
        if updated is None:
            raise _not_found("User")
        await self._log_activity(user.id, "update_profile_image", "Profile image updated")
        return updated

    # Administration

    async def list_users(self) -> List[User]:
        return await self.storage.users.list_users()

    # PUBLIC_INTERFACE
    async def create_user(self, payload: AdminUserCreate, actor: User) -> User:
        """
        Create a user on behalf of an admin.

        Blank departments fall back to DEFAULT_DEPARTMENT; passwords that are already
        bcrypt hashes are stored unchanged.
        """
        for field_name, label in (
            ("username", "Username"),
            ("email", "Email"),
            ("name", "Name"),
            ("password", "Password"),
        ):
            if _blank(getattr(payload, field_name)):
                raise _bad_request(f"{label} is required")

        username = payload.username.strip()
        if await self.storage.users.get_user_by_username(username):
            raise _bad_request("Username already exists")

        department = (payload.department or "").strip() or get_app_settings().DEFAULT_DEPARTMENT
        user = User(
            username=username,
            password=ensure_password_hash(payload.password),
            name=payload.name.strip(),
            email=payload.email.strip(),
            department=department,
            role=payload.role,
            permissions=list(payload.permissions),
            is_active=payload.is_active,
        )
        created = await self.storage.users.create_user(user)
        await self._log_activity(actor.id, "create_user", f"Created user {created.username}")
        return created

    # PUBLIC_INTERFACE
    async def update_user(self, user_id: str, payload: AdminUserUpdate, actor: User) -> User:
        if payload.password:
            raise _bad_request("Use the password endpoint to change passwords")
        values = payload.model_dump(exclude_unset=True, exclude={"password"})
        values = {k: v for k, v in values.items() if v is not None}
        if "username" in values:
            other = await self.storage.users.get_user_by_username(values["username"])
            if other and other.id != user_id:
                raise _bad_request("Username already exists")
        updated = await self.storage.users.update_user(user_id, values)
        if updated is None:
            raise _not_found("User")
        await self._log_activity(actor.id, "update_user", f"Updated user {updated.username}")
        return updated

    # PUBLIC_INTERFACE
    async def reset_password(self, user_id: str, password: Optional[str], actor: User) -> None:
        if _blank(password):
            raise _bad_request("Password is required")
        updated = await self.storage.users.update_user(user_id, {"password": get_password_hash(password)})
        if updated is None:
            raise _not_found("User")
        await self._log_activity(actor.id, "reset_password", f"Password reset for {updated.username}")

    # PUBLIC_INTERFACE
    async def set_status(self, user_id: str, is_active: object, actor: User) -> User:
        if not isinstance(is_active, bool):
            raise _bad_request("isActive must be a boolean")
        updated = await self.storage.users.update_user(user_id, {"is_active": is_active})
        if updated is None:
            raise _not_found("User")
        state = "activated" if is_active else "deactivated"
        await self._log_activity(actor.id, "update_user_status", f"User {updated.username} {state}")
        return updated

    # PUBLIC_INTERFACE
    async def delete_user(self, user_id: str, actor: User) -> None:
        if user_id == actor.id:
            raise _bad_request("You cannot delete your own account")
        user = await self.storage.users.get_user(user_id)
        if user is None:
            raise _not_found("User")
        await self.storage.users.delete_user(user_id)
        await self._log_activity(actor.id, "delete_user", f"Deleted user {user.username}")

    # PUBLIC_INTERFACE
    async def import_users(self, payload: UserImportRequest, actor: User) -> UserImportResult:
        """
        Bulk-create users; rows are skipped (and reported) rather than failing the batch.

        Rows need a username and an email; existing usernames/emails are skipped.
        Passwords are always stored hashed whatever hashPasswords says; rows without
        one get IMPORT_DEFAULT_PASSWORD.
        """
        if payload.users is None:
            raise _bad_request("Users array is required")
        if not payload.users:
            raise _bad_request("No users to import")

        settings = get_app_settings()
        existing = await self.storage.users.list_users()
        usernames = {u.username for u in existing}
        emails = {u.email for u in existing}
        imported = 0
        errors: List[str] = []

        for row in payload.users:
            label = row.username or "Unknown"
            if _blank(row.username) or _blank(row.email):
                errors.append(f"Row skipped, username and email are required: {label}")
                continue
            username = row.username.strip()
            email = row.email.strip()
            if username in usernames or email in emails:
                errors.append(f"User already exists: {username}")
                continue

            department = (row.department or "").strip()
            if department.lower() in ("", "null", "undefined"):
                department = settings.IMPORT_DEFAULT_DEPARTMENT
            permissions = row.permissions if isinstance(row.permissions, list) else (
                [p.strip() for p in str(row.permissions).split(",") if p.strip()] if row.permissions else []
            )
            await self.storage.users.create_user(
                User(
                    username=username,
                    password=ensure_password_hash(row.password or settings.IMPORT_DEFAULT_PASSWORD),
                    name=(row.name or "").strip() or username,
                    email=email,
                    department=department,
                    role=map_role(row.role) if row.role else "user",
                    permissions=permissions,
                    is_active=True if row.is_active is None else map_status(row.is_active),
                )
            )
            usernames.add(username)
            emails.add(email)
            imported += 1

        await self._log_activity(actor.id, "import_users", f"Imported {imported} users")
        return UserImportResult(
            success=imported > 0,
            imported_count=imported,
            errors=errors[:MAX_REPORTED_IMPORT_ERRORS],
            message=f"{imported} users imported, {len(errors)} skipped",
        )

    # Departments

    async def _department_read(self, department: Department, names: Dict[str, str]) -> DepartmentRead:
        read = DepartmentRead.model_validate(department)
        read.manager_name = names.get(department.manager_id) if department.manager_id else None
        return read

    # PUBLIC_INTERFACE
    async def list_departments(self) -> List[DepartmentRead]:
        names = await self.storage.users.get_user_names()
        return [await self._department_read(d, names) for d in await self.storage.departments.list_departments()]

    # PUBLIC_INTERFACE
    async def create_department(self, payload: DepartmentCreate, actor: User) -> DepartmentRead:
        name = payload.name.strip()
        if await self.storage.departments.get_department_by_name(name):
            raise _bad_request("Department already exists")
        created = await self.storage.departments.create_department(
            Department(
                name=name,
                description=payload.description,
                manager_id=payload.manager_id,
                is_active=payload.is_active,
            )
        )
        await self._log_activity(actor.id, "create_department", f"Created department {created.name}")
        return await self._department_read(created, await self.storage.users.get_user_names())

    # PUBLIC_INTERFACE
    async def update_department(self, department_id: str, payload: DepartmentUpdate, actor: User) -> DepartmentRead:
        values = drop_nulls(payload.model_dump(exclude_unset=True), "name", "is_active")
        if values.get("name"):
            other = await self.storage.departments.get_department_by_name(values["name"])
            if other and other.id != department_id:
                raise _bad_request("Department already exists")
        updated = await self.storage.departments.update_department(department_id, values)
        if updated is None:
            raise _not_found("Department")
        await self._log_activity(actor.id, "update_department", f"Updated department {updated.name}")
        return await self._department_read(updated, await self.storage.users.get_user_names())

    # PUBLIC_INTERFACE
    async def delete_department(self, department_id: str, actor: User) -> None:
        department = await self.storage.departments.get_department(department_id)
        if department is None:
            raise _not_found("Department")
        await self.storage.departments.delete_department(department_id)
        await self._log_activity(actor.id, "delete_department", f"Deleted department {department.name}")

    # Activity

    # PUBLIC_INTERFACE
    async def list_activity(self, user_id: Optional[str] = None, limit: int = 50) -> List[ActivityRead]:
        names = await self.storage.users.get_user_names()
        result = []
        for entry in await self.storage.activity.list_activity(user_id=user_id, limit=limit):
            read = ActivityRead.model_validate(entry)
            read.user_name = names.get(entry.user_id) if entry.user_id else None
            result.append(read)
        return result
