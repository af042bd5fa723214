"""사용자 Repository (SQLAlchemy)"""
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from application.ports.user_repository import UserRepository
from domain.entities.user import UserEntity
from domain.enums import UserRole
from infrastructure.persistence.models.user import User


def to_entity(row: User) -> UserEntity:
    return UserEntity(
        id=row.id, email=row.email, name=row.name, role=UserRole(row.role).value,
        balance=Decimal(str(row.balance or 0)), is_active=row.is_active,
        password_hash=row.password_hash, phone=row.phone,
    )


class SqlUserRepository(UserRepository):
    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_by_id(self, user_id: int) -> Optional[UserEntity]:
        row = await self._session.scalar(
            select(User).where(User.id == user_id).execution_options(populate_existing=True))
        return to_entity(row) if row else None

    async def get_by_email(self, email: str) -> Optional[UserEntity]:
        row = await self._session.scalar(select(User).where(User.email == email))
        return to_entity(row) if row else None

    async def create(self, email: str, password_hash: str, name: str,
                     phone: Optional[str] = None, role: str = "user") -> UserEntity:
        row = User(email=email, password_hash=password_hash, name=name, phone=phone,
                   role=UserRole(role), balance=Decimal("0"))
        self._session.add(row)
        await self._session.flush()
        return to_entity(row)

    async def update_last_login(self, user_id: int) -> None:
        await self._session.execute(
            update(User).where(User.id == user_id).values(last_login_at=datetime.utcnow())
            .execution_options(synchronize_session=False))

    async def set_active_if(self, user_id: int, expected: bool, new_value: bool) -> bool:
        result = await self._session.execute(
            update(User).where(User.id == user_id, User.is_active.is_(expected))
            .values(is_active=new_value)
            .execution_options(synchronize_session=False))
        return result.rowcount == 1
