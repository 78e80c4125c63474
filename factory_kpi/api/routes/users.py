from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, File, Form, Path, UploadFile

from factory_kpi.core.deps import get_current_user, get_storage, require_admin
from factory_kpi.db.models import User
from factory_kpi.repositories.storage import Storage
from factory_kpi.schemas.auth import (
    AdminPasswordReset,
    AdminUserCreate,
    AdminUserUpdate,
    DepartmentCreate,
    DepartmentRead,
    DepartmentUpdate,
    UserImportPreview,
    UserImportRequest,
    UserImportResult,
    UserRead,
    UserStatusUpdate,
)
from factory_kpi.schemas.common import SuccessResponse
from factory_kpi.services.imports import preview_user_import
from factory_kpi.services.users import UserService

router = APIRouter(prefix="/users", tags=["Users"])
admin_router = APIRouter(prefix="/admin/users", tags=["Users"])
departments_router = APIRouter(prefix="/admin/departments", tags=["Departments"])


# PUBLIC_INTERFACE
@router.get("", response_model=List[UserRead], summary="List users")
async def list_users(
    user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
) -> List[UserRead]:
    return [UserRead.model_validate(u) for u in await UserService(storage).list_users()]


# PUBLIC_INTERFACE
@router.post(
    "/import",
    response_model=UserImportResult,
    summary="Bulk import users",
    description=(
        "Create users from mapped sheet rows. Rows without username or email, and existing "
        "users, are skipped and reported (first 10 errors)."
    ),
)
async def import_users(
    payload: UserImportRequest,
    user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
) -> UserImportResult:
    return await UserService(storage).import_users(payload, user)


# PUBLIC_INTERFACE
@router.post(
    "/import/preview",
    response_model=UserImportPreview,
    summary="Preview a user sheet",
    description="Parse an uploaded CSV/XLSX file and suggest a column mapping. Nothing is stored.",
)
async def preview_import(
    file: UploadFile = File(..., description="CSV or XLSX file"),
    generate_passwords: bool = Form(False, alias="generatePasswords"),
    user: User = Depends(get_current_user),
) -> UserImportPreview:
    data = await file.read()
    return preview_user_import(data, file.filename, generate_passwords=generate_passwords)


# Administration

# PUBLIC_INTERFACE
@admin_router.get("", response_model=List[UserRead], summary="List users (admin)")
async def admin_list_users(
    admin: User = Depends(require_admin),
    storage: Storage = Depends(get_storage),
) -> List[UserRead]:
    return [UserRead.model_validate(u) for u in await UserService(storage).list_users()]


# PUBLIC_INTERFACE
@admin_router.post(
    "",
    response_model=UserRead,
    summary="Create user",
    description="Username, email, name and password are required; usernames are unique.",
)
async def admin_create_user(
    payload: AdminUserCreate,
    admin: User = Depends(require_admin),
    storage: Storage = Depends(get_storage),
) -> UserRead:
    return UserRead.model_validate(await UserService(storage).create_user(payload, admin))


# PUBLIC_INTERFACE
@admin_router.put("/{user_id}", response_model=UserRead, summary="Update user")
async def admin_update_user(
    payload: AdminUserUpdate,
    user_id: str = Path(...),
    admin: User = Depends(require_admin),
    storage: Storage = Depends(get_storage),
) -> UserRead:
    return UserRead.model_validate(await UserService(storage).update_user(user_id, payload, admin))


# PUBLIC_INTERFACE
@admin_router.put("/{user_id}/password", response_model=SuccessResponse, summary="Reset user password")
async def admin_reset_password(
    payload: AdminPasswordReset,
    user_id: str = Path(...),
    admin: User = Depends(require_admin),
    storage: Storage = Depends(get_storage),
) -> SuccessResponse:
    await UserService(storage).reset_password(user_id, payload.password, admin)
    return SuccessResponse(message="Password updated")


# PUBLIC_INTERFACE
@admin_router.put("/{user_id}/status", response_model=UserRead, summary="Activate or deactivate user")
async def admin_set_status(
    payload: UserStatusUpdate,
    user_id: str = Path(...),
    admin: User = Depends(require_admin),
    storage: Storage = Depends(get_storage),
) -> UserRead:
    return UserRead.model_validate(await UserService(storage).set_status(user_id, payload.is_active, admin))


# PUBLIC_INTERFACE
@admin_router.delete("/{user_id}", response_model=SuccessResponse, summary="Delete user")
async def admin_delete_user(
    user_id: str = Path(...),
    admin: User = Depends(require_admin),
    storage: Storage = Depends(get_storage),
) -> SuccessResponse:
    await UserService(storage).delete_user(user_id, admin)
    return SuccessResponse(message="User deleted")


# Departments

# PUBLIC_INTERFACE
@departments_router.get("", response_model=List[DepartmentRead], summary="List departments")
async def list_departments(
    admin: User = Depends(require_admin),
    storage: Storage = Depends(get_storage),
) -> List[DepartmentRead]:
    return await UserService(storage).list_departments()


# PUBLIC_INTERFACE
@departments_router.post("", response_model=DepartmentRead, summary="Create department")
async def create_department(
    payload: DepartmentCreate,
    admin: User = Depends(require_admin),
    storage: Storage = Depends(get_storage),
) -> DepartmentRead:
    return await UserService(storage).create_department(payload, admin)


# PUBLIC_INTERFACE
@departments_router.put("/{department_id}", response_model=DepartmentRead, summary="Update department")
async def update_department(
    payload: DepartmentUpdate,
    department_id: str = Path(...),
    admin: User = Depends(require_admin),
    storage: Storage = Depends(get_storage),
) -> DepartmentRead:
    return await UserService(storage).update_department(department_id, payload, admin)


# PUBLIC_INTERFACE
@departments_router.delete("/{department_id}", response_model=SuccessResponse, summary="Delete department")
async def delete_department(
    department_id: str = Path(...),
    admin: User = Depends(require_admin),
    storage: Storage = Depends(get_storage),
) -> SuccessResponse:
    await UserService(storage).delete_department(department_id, admin)
    return SuccessResponse(message="Department deleted")
