from __future__ import annotations

from fastapi import APIRouter, Depends, Response

from factory_kpi.core.deps import get_current_user, get_storage
from factory_kpi.core.security import create_session_token
from factory_kpi.core.settings import get_app_settings
from factory_kpi.db.models import User
from factory_kpi.repositories.storage import Storage
from factory_kpi.schemas.auth import (
    LoginRequest,
    PasswordChange,
    ProfileImageUpdate,
    ProfileUpdate,
    UserEnvelope,
    UserRead,
)
from factory_kpi.schemas.common import SuccessResponse
from factory_kpi.services.users import UserService

router = APIRouter(prefix="/auth", tags=["Auth"])
profile_router = APIRouter(prefix="/profile", tags=["Profile"])


def _envelope(user: User) -> UserEnvelope:
    return UserEnvelope(user=UserRead.model_validate(user))


# PUBLIC_INTERFACE
@router.post(
    "/login",
    response_model=UserEnvelope,
    summary="Login",
    description="Check username and password and start a cookie session.",
)
async def login(
    payload: LoginRequest,
    response: Response,
    storage: Storage = Depends(get_storage),
) -> UserEnvelope:
    """Authenticate the user and set the signed session cookie."""
    user = await UserService(storage).authenticate(payload.username, payload.password)
    settings = get_app_settings()
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=create_session_token(subject=user.id, role=user.role),
        max_age=settings.SESSION_EXPIRE_MINUTES * 60,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite=settings.COOKIE_SAMESITE,
    )
    return _envelope(user)


# PUBLIC_INTERFACE
@router.post(
    "/logout",
    response_model=SuccessResponse,
    summary="Logout",
    description="End the session by clearing the session cookie.",
)
async def logout(response: Response, user: User = Depends(get_current_user)) -> SuccessResponse:
    response.delete_cookie(get_app_settings().SESSION_COOKIE_NAME)
    return SuccessResponse(message="Logged out")


# PUBLIC_INTERFACE
@router.get("/me", response_model=UserEnvelope, summary="Read current user")
async def read_current_user(user: User = Depends(get_current_user)) -> UserEnvelope:
    return _envelope(user)


# PUBLIC_INTERFACE
@profile_router.put("", response_model=UserEnvelope, summary="Update own name and email")
async def update_profile(
    payload: ProfileUpdate,
    user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
) -> UserEnvelope:
    return _envelope(await UserService(storage).update_profile(user, payload))


# PUBLIC_INTERFACE
@profile_router.put(
    "/password",
    response_model=SuccessResponse,
    summary="Change own password",
    description="The current password must match; 400 otherwise.",
)
async def change_password(
    payload: PasswordChange,
    user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
) -> SuccessResponse:
    await UserService(storage).change_password(user, payload)
    return SuccessResponse(message="Password changed")


# PUBLIC_INTERFACE
@profile_router.put("/image", response_model=UserEnvelope, summary="Set or clear the profile picture")
async def update_profile_image(
    payload: ProfileImageUpdate,
    user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
) -> UserEnvelope:
    return _envelope(await UserService(storage).update_profile_image(user, payload.image_data))
