"""공통 테스트 픽스처

각 테스트는 tmp_path 아래 파일 SQLite DB를 쓴다. NullPool이므로 동시 세션은
서로 다른 커넥션을 사용해 실제 트랜잭션 경합이 일어난다.
"""
import uuid
from decimal import Decimal

import pytest
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import NullPool

import infrastructure.persistence.models  # noqa: F401
from application.ports.payment_gateway import PaymentGatewayFactory
from domain.enums import UserRole
from infrastructure.persistence.database import Base, make_session_scope
from infrastructure.persistence.ledger import get_balance
from infrastructure.persistence.models.user import User


class StaticGatewayFactory(PaymentGatewayFactory):
    """항상 같은 어댑터를 돌려주는 팩토리"""

    def __init__(self, gateway):
        self.gateway = gateway

    async def get(self, gateway_name):
        return self.gateway

    async def get_with_fallback(self, gateway_name):
        return self.gateway


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
                                 poolclass=NullPool, connect_args={"timeout": 30})
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
def session_scope(session_factory):
    return make_session_scope(session_factory)


@pytest.fixture
def make_user(session_scope):
    async def _make(balance="0", role=UserRole.USER, is_active=True, email=None):
        async with session_scope() as session:
            user = User(email=email or f"{uuid.uuid4().hex[:12]}@example.com", password_hash="x",
                        name="테스트 사용자", role=role, balance=Decimal(balance), is_active=is_active)
            session.add(user)
            await session.flush()
            return user.id
    return _make


@pytest.fixture
def balance_of(session_scope):
    async def _balance(user_id):
        async with session_scope() as session:
            return await get_balance(session, user_id)
    return _balance
