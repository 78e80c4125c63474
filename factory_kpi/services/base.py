from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from factory_kpi.db.models import ActivityLog
from factory_kpi.repositories.storage import Storage

logger = logging.getLogger(__name__)


class BaseService:
    """
    Base class for services. Holds the request's Storage for use across repositories.

    Services keep business logic and orchestration, delegating data access
    to repositories.
    """

    def __init__(self, storage: Storage) -> None:
        self.storage = storage

    async def _log_activity(self, user_id: Optional[str], action: str, description: str) -> ActivityLog:
        """Append an audit trail entry."""
        entry = ActivityLog(user_id=user_id, action=action, description=description)
        return await self.storage.activity.add_activity(entry)


def drop_nulls(values: Dict[str, Any], *keys: str) -> Dict[str, Any]:
    """Remove explicit nulls sent for NOT NULL columns so partial updates leave them alone."""
    return {k: v for k, v in values.items() if not (v is None and k in keys)}
