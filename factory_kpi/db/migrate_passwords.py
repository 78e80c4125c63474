"""
One-off migration of plaintext passwords to bcrypt hashes.

Accounts created by older deployments may hold plaintext passwords; they cannot
sign in until hashed because login only accepts bcrypt hashes. Stored values that
already start with "$2" are left alone, so running this twice is harmless.

Usage:
  python -m factory_kpi.db.migrate_passwords
"""

from __future__ import annotations

import asyncio
import logging

from factory_kpi.core.logging import configure_logging
from factory_kpi.core.security import get_password_hash, is_password_hash
from factory_kpi.repositories.storage import Storage, storage_manager

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
async def migrate_passwords(storage: Storage) -> int:
    """Hash every plaintext password. Returns the number of accounts updated."""
    migrated = 0
    for user in await storage.users.list_users():
        if is_password_hash(user.password):
            continue
        await storage.users.update_user(user.id, {"password": get_password_hash(user.password or "")})
        logger.info("Hashed password for user %s", user.username)
        migrated += 1
    return migrated


async def _main() -> None:
    await storage_manager.initialize()
    async with storage_manager.open() as storage:
        count = await migrate_passwords(storage)
    logger.info("Password migration finished: %d account(s) updated", count)


if __name__ == "__main__":
    configure_logging()
    asyncio.run(_main())
