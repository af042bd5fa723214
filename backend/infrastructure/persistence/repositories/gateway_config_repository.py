"""결제 게이트웨이 설정 Repository"""
from typing import Optional, List

from sqlalchemy import select, update, delete, desc
from sqlalchemy.ext.asyncio import AsyncSession

from infrastructure.persistence.models.payment_gateway import PaymentGatewayConfig


class GatewayConfigRepository:
    def __init__(self, session: AsyncSession):
        self._session = session

    async def get(self, config_id: int) -> Optional[PaymentGatewayConfig]:
        return await self._session.get(PaymentGatewayConfig, config_id)

    async def get_active(self, name: str) -> Optional[PaymentGatewayConfig]:
        result = await self._session.execute(
            select(PaymentGatewayConfig)
            .where(PaymentGatewayConfig.name == name, PaymentGatewayConfig.is_active.is_(True))
            .order_by(desc(PaymentGatewayConfig.is_default), desc(PaymentGatewayConfig.id))
            .limit(1))
        return result.scalar_one_or_none()

    async def get_default(self) -> Optional[PaymentGatewayConfig]:
        result = await self._session.execute(
            select(PaymentGatewayConfig).where(PaymentGatewayConfig.is_default.is_(True)).limit(1))
        return result.scalar_one_or_none()

    async def list(self) -> List[PaymentGatewayConfig]:
        result = await self._session.execute(
            select(PaymentGatewayConfig).order_by(desc(PaymentGatewayConfig.created_at)))
        return list(result.scalars().all())

    async def add(self, config: PaymentGatewayConfig) -> PaymentGatewayConfig:
        self._session.add(config)
        await self._session.flush()
        return config

    async def unset_defaults(self, except_id: Optional[int] = None) -> None:
        stmt = update(PaymentGatewayConfig).where(PaymentGatewayConfig.is_default.is_(True))
        if except_id is not None:
            stmt = stmt.where(PaymentGatewayConfig.id != except_id)
        await self._session.execute(
            stmt.values(is_default=False).execution_options(synchronize_session="fetch"))

    async def set_active_if(self, config_id: int, expected: bool, new_value: bool) -> bool:
        result = await self._session.execute(
            update(PaymentGatewayConfig)
            .where(PaymentGatewayConfig.id == config_id, PaymentGatewayConfig.is_active.is_(expected))
            .values(is_active=new_value)
            .execution_options(synchronize_session="fetch"))
        return result.rowcount == 1

    async def delete(self, config_id: int) -> None:
        await self._session.execute(
            delete(PaymentGatewayConfig).where(PaymentGatewayConfig.id == config_id))
