from __future__ import annotations

from typing import Any, Dict, List, Optional

from sqlalchemy import func, select

from factory_kpi.db.models.users import ActivityLog, Department, User
from .base import BaseRepository
from .interfaces import ActivityRepository, DepartmentRepository, UserRepository


class SqlUserRepository(BaseRepository, UserRepository):
    """SQL adapter for users."""

    async def get_user(self, user_id: str) -> Optional[User]:
        return await self.get_by_id(User, user_id)

    async def get_user_by_username(self, username: str) -> Optional[User]:
        stmt = select(User).where(User.username == username)
        return await self.scalar_one_or_none(stmt)

    async def get_user_by_email(self, email: str) -> Optional[User]:
        stmt = select(User).where(User.email == email)
        result = await self.scalars(stmt)
        return result.first()

    async def list_users(self) -> List[User]:
        stmt = select(User).order_by(User.name)
        result = await self.scalars(stmt)
        return list(result)

    async def count_users(self) -> int:
        stmt = select(func.count(User.id))
        result = await self.execute(stmt)
        return int(result.scalar_one())

    async def create_user(self, user: User) -> User:
        return await self.insert(user)

    async def update_user(self, user_id: str, values: Dict[str, Any]) -> Optional[User]:
        return await self.update_by_id(User, user_id, values)

    async def delete_user(self, user_id: str) -> bool:
        return await self.delete_by_id(User, user_id)

    async def get_user_names(self) -> Dict[str, str]:
        result = await self.execute(select(User.id, User.name))
        return {user_id: name for user_id, name in result.all()}


class SqlDepartmentRepository(BaseRepository, DepartmentRepository):
    """SQL adapter for departments."""

    async def list_departments(self) -> List[Department]:
        stmt = select(Department).order_by(Department.name)
        result = await self.scalars(stmt)
        return list(result)

    async def get_department(self, department_id: str) -> Optional[Department]:
        return await self.get_by_id(Department, department_id)

    async def get_department_by_name(self, name: str) -> Optional[Department]:
        stmt = select(Department).where(Department.name == name)
        return await self.scalar_one_or_none(stmt)

    async def create_department(self, department: Department) -> Department:
        return await self.insert(department)

    async def update_department(self, department_id: str, values: Dict[str, Any]) -> Optional[Department]:
        return await self.update_by_id(Department, department_id, values)

    async def delete_department(self, department_id: str) -> bool:
        return await self.delete_by_id(Department, department_id)


class SqlActivityRepository(BaseRepository, ActivityRepository):
    """SQL adapter for the activity log."""

    async def add_activity(self, entry: ActivityLog) -> ActivityLog:
        return await self.insert(entry)

    async def list_activity(self, user_id: Optional[str] = None, limit: int = 50) -> List[ActivityLog]:
        stmt = select(ActivityLog).order_by(ActivityLog.timestamp.desc()).limit(limit)
        if user_id:
            stmt = stmt.where(ActivityLog.user_id == user_id)
        result = await self.scalars(stmt)
        return list(result)
