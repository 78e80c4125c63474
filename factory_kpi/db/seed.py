"""
Seeding of demo accounts and departments.

Seeds (each only when its table is empty):
- Users: admin (admin123) plus one manager per dashboard department
  (safety1/safety123, quality1/quality123, production1/production123,
  logistics1/logistics123)
- Departments: Güvenlik, Kalite, Üretim, Lojistik

KPI values are never seeded; the dashboard shows "no data" until someone records one.

Usage:
  python -m factory_kpi.db.run_migrations upgrade head
  python -m factory_kpi.db.seed
"""

from __future__ import annotations

import asyncio
import logging
from typing import List, Tuple

from factory_kpi.core.logging import configure_logging
from factory_kpi.core.security import get_password_hash
from factory_kpi.db.models import Department, User
from factory_kpi.repositories.storage import Storage, storage_manager

logger = logging.getLogger(__name__)

# (username, password, name, role, department, permissions)
DEMO_USERS: List[Tuple[str, str, str, str, str, List[str]]] = [
    ("admin", "admin123", "Admin User", "admin", "Management", []),
    ("safety1", "safety123", "Safety Manager", "manager", "Safety", ["Safety"]),
    ("quality1", "quality123", "Quality Manager", "manager", "Quality", ["Quality"]),
    ("production1", "production123", "Production Manager", "manager", "Production", ["Production"]),
    ("logistics1", "logistics123", "Logistics Manager", "manager", "Logistics", ["Logistics"]),
]

DEMO_DEPARTMENTS: List[Tuple[str, str]] = [
    ("Güvenlik", "İşçi sağlığı ve güvenliği departmanı"),
    ("Kalite", "Ürün kalite kontrol departmanı"),
    ("Üretim", "Üretim operasyonları departmanı"),
    ("Lojistik", "Tedarik zinciri ve lojistik departmanı"),
]


# PUBLIC_INTERFACE
async def seed_all(storage: Storage) -> None:
    """Create the demo users and departments where none exist yet."""
    if await storage.users.count_users() == 0:
        for username, password, name, role, department, permissions in DEMO_USERS:
            await storage.users.create_user(
                User(
                    username=username,
                    password=get_password_hash(password),
                    name=name,
                    email=f"{username}@factory.com",
                    department=department,
                    role=role,
                    permissions=permissions,
                )
            )
        logger.info("Seeded %d demo users", len(DEMO_USERS))

    if not await storage.departments.list_departments():
        for name, description in DEMO_DEPARTMENTS:
            await storage.departments.create_department(Department(name=name, description=description))
        logger.info("Seeded %d departments", len(DEMO_DEPARTMENTS))


async def _main() -> None:
    await storage_manager.initialize()
    async with storage_manager.open() as storage:
        await seed_all(storage)


if __name__ == "__main__":
    configure_logging()
    asyncio.run(_main())
