"""사용자 도메인 엔티티"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional


@dataclass
class UserEntity:
    """User 도메인 엔티티 (ORM 모델과 분리)"""
    id: int
    email: str
    name: str
    role: str  # "user" | "admin"
    balance: Decimal
    is_active: bool
    password_hash: str = ""
    phone: Optional[str] = None

    def can_afford(self, amount: Decimal) -> bool:
        return amount <= 0 or self.balance >= amount

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"
