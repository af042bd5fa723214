"""주문 Repository (SQLAlchemy)

상태 전이는 모두 "현재 상태가 기대값일 때만" 적용되는 조건부 UPDATE이며,
반환값 bool은 이번 호출이 전이를 실제로 수행했는지를 나타낸다.
"""
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional, List, Dict, Any

from sqlalchemy import select, update, desc, or_, exists
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from domain.entities.order import OrderEntity
from domain.enums import OrderStatus, OrderType
from domain.exceptions import DuplicateReferenceError
from infrastructure.persistence.models.order import Order


def to_entity(row: Order) -> OrderEntity:
    return OrderEntity(
        id=row.id, user_id=row.user_id, status=OrderStatus(row.status),
        price=Decimal(str(row.price)), order_type=OrderType(row.order_type).value,
        imei=row.imei, device_model=row.device_model or "",
        service_data=dict(row.service_data or {}),
        external_reference_id=row.external_reference_id,
        external_response=row.external_response,
        public_message=row.public_message, completed_at=row.completed_at,
        created_at=row.created_at, updated_at=row.updated_at,
    )


class OrderRepository:
    def __init__(self, session: AsyncSession):
        self._session = session

    async def add(self, user_id: int, price: Decimal, order_type: OrderType,
                  imei: Optional[str], device_model: str,
                  service_data: Dict[str, Any]) -> OrderEntity:
        row = Order(user_id=user_id, order_type=order_type, status=OrderStatus.PENDING,
                    imei=imei, device_model=device_model or "", price=price,
                    service_data=service_data)
        self._session.add(row)
        await self._session.flush()
        return to_entity(row)

    async def get(self, order_id: int) -> Optional[OrderEntity]:
        row = await self._session.scalar(
            select(Order).where(Order.id == order_id).execution_options(populate_existing=True))
        return to_entity(row) if row else None

    async def list_by_user(self, user_id: int) -> List[OrderEntity]:
        result = await self._session.execute(
            select(Order).where(Order.user_id == user_id).order_by(desc(Order.created_at), desc(Order.id)))
        return [to_entity(row) for row in result.scalars().all()]

    async def reference_exists(self, reference_id: str) -> bool:
        return bool(await self._session.scalar(
            select(exists().where(Order.external_reference_id == reference_id))))

    async def claim_placement(self, order_id: int, token: str, claim_ttl: int) -> bool:
        """PENDING 주문에 place 선점 토큰을 건다. 만료된 선점은 넘겨받는다."""
        now = datetime.utcnow()
        stale_before = now - timedelta(seconds=claim_ttl)
        result = await self._session.execute(
            update(Order)
            .where(Order.id == order_id, Order.status == OrderStatus.PENDING,
                   or_(Order.placement_token.is_(None), Order.placement_claimed_at < stale_before))
            .values(placement_token=token, placement_claimed_at=now)
            .execution_options(synchronize_session=False))
        return result.rowcount == 1

    async def release_placement(self, order_id: int, token: str) -> bool:
        result = await self._session.execute(
            update(Order)
            .where(Order.id == order_id, Order.placement_token == token)
            .values(placement_token=None, placement_claimed_at=None)
            .execution_options(synchronize_session=False))
        return result.rowcount == 1

    async def finish_placement(self, order_id: int, token: str, status: OrderStatus,
                               reference_id: Optional[str], response: Optional[Dict[str, Any]],
                               completed_at: Optional[datetime] = None,
                               public_message: Optional[str] = None) -> bool:
        """참조 ID 유니크 제약 위반은 DuplicateReferenceError (트랜잭션은 호출자가 롤백)"""
        try:
            result = await self._session.execute(
                update(Order)
                .where(Order.id == order_id, Order.status == OrderStatus.PENDING,
                       Order.placement_token == token)
                .values(status=status, external_reference_id=reference_id,
                        external_response=response, completed_at=completed_at,
                        public_message=public_message,
                        placement_token=None, placement_claimed_at=None)
                .execution_options(synchronize_session=False))
        except IntegrityError:
            if reference_id is None:
                raise
            raise DuplicateReferenceError(reference_id)
        return result.rowcount == 1

    async def apply_checked_status(self, order_id: int, status: OrderStatus,
                                   response: Dict[str, Any],
                                   completed_at: Optional[datetime]) -> bool:
        """PROCESSING 주문에만 조회 결과를 기록한다"""
        result = await self._session.execute(
            update(Order)
            .where(Order.id == order_id, Order.status == OrderStatus.PROCESSING)
            .values(status=status, external_response=response, completed_at=completed_at)
            .execution_options(synchronize_session=False))
        return result.rowcount == 1

    async def cancel_pending(self, order_id: int, claim_ttl: int) -> bool:
        """진행 중인 place 선점이 없는 PENDING 주문만 취소된다"""
        stale_before = datetime.utcnow() - timedelta(seconds=claim_ttl)
        result = await self._session.execute(
            update(Order)
            .where(Order.id == order_id, Order.status == OrderStatus.PENDING,
                   or_(Order.placement_token.is_(None), Order.placement_claimed_at < stale_before))
            .values(status=OrderStatus.CANCELLED, placement_token=None, placement_claimed_at=None)
            .execution_options(synchronize_session=False))
        return result.rowcount == 1
