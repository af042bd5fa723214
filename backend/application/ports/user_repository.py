"""사용자 Repository 인터페이스"""
from abc import ABC, abstractmethod
from typing import Optional
from domain.entities.user import UserEntity


class UserRepository(ABC):
    @abstractmethod
    async def get_by_id(self, user_id: int) -> Optional[UserEntity]: ...
    @abstractmethod
    async def get_by_email(self, email: str) -> Optional[UserEntity]: ...
    @abstractmethod
    async def create(self, email: str, password_hash: str, name: str,
                     phone: Optional[str] = None, role: str = "user") -> UserEntity: ...
    @abstractmethod
    async def update_last_login(self, user_id: int) -> None: ...
    @abstractmethod
    async def set_active_if(self, user_id: int, expected: bool, new_value: bool) -> bool:
        """is_active가 expected일 때만 new_value로 바꾼다"""
