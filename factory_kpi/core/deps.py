from __future__ import annotations

import logging
from typing import AsyncGenerator, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from factory_kpi.core.logging import user_id_var
from factory_kpi.core.security import get_token_subject
from factory_kpi.core.settings import get_app_settings
from factory_kpi.db.models import User
from factory_kpi.repositories.storage import Storage, storage_manager

logger = logging.getLogger(__name__)

# Bearer tokens are accepted next to the session cookie (used by docs and scripts)
bearer_scheme = HTTPBearer(auto_error=False)


# PUBLIC_INTERFACE
async def get_storage() -> AsyncGenerator[Storage, None]:
    """
    Yield the repository bundle for this request.

    SQL storage gets one AsyncSession for the whole request; memory storage shares the
    process-wide tables.
    """
    async with storage_manager.open() as storage:
        yield storage


def _session_token(request: Request, credentials: Optional[HTTPAuthorizationCredentials]) -> Optional[str]:
    cookie = request.cookies.get(get_app_settings().SESSION_COOKIE_NAME)
    if cookie:
        return cookie
    if credentials and credentials.scheme.lower() == "bearer":
        return credentials.credentials
    return None


# PUBLIC_INTERFACE
async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    storage: Storage = Depends(get_storage),
) -> User:
    """
    Resolve the signed-in user from the session cookie (or a bearer token).

    The user row is reloaded on every request so role and active-flag changes
    take effect immediately.

    Raises:
        HTTPException: 401 when there is no valid session or the account is gone/disabled.
    """
    token = _session_token(request, credentials)
    user_id = get_token_subject(token) if token else None
    if not user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")

    user = await storage.users.get_user(user_id)
    if not user or not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")

    user_id_var.set(user.id)
    request.state.user_id = user.id
    return user


# PUBLIC_INTERFACE
async def require_admin(user: User = Depends(get_current_user)) -> User:
    """Ensure the current user has the admin role."""
    if user.role != "admin":
        logger.info("Admin access denied for user %s", user.username)
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return user
