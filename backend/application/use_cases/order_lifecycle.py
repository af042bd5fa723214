"""
주문 생명주기 유스케이스

PENDING --place--> PROCESSING | COMPLETED | FAILED
PROCESSING --check--> PROCESSING | COMPLETED | FAILED | CANCELLED
PENDING --cancel--> CANCELLED

잔액 차감/환불은 주문 행 변경과 같은 트랜잭션에서 일어난다. 외부 게이트웨이
호출 동안에는 어떤 트랜잭션도 열려 있지 않으며, 호출 전후의 상태 변경은
조건부 UPDATE로 선점/확정한다.
"""
import asyncio
import time
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Optional, Dict, Any, List, Callable

from loguru import logger

from config import settings
from application.ports.order_gateway import OrderGatewayPort, OrderSubmission, StatusResult
from domain.entities.order import OrderEntity
from domain.enums import OrderStatus, TERMINAL_ORDER_STATUSES
from domain.exceptions import (
    DomainError, DuplicateReferenceError, InvalidAmountError, InvalidOrderStateError, NotOwnerError,
    OrderConflictError, OrderNotFoundError, ProviderCreditExhaustedError,
)
from domain.status_mapping import map_dhru_status, map_service_type_to_order_type, is_instant_service
from infrastructure.persistence.database import get_db_session
from infrastructure.persistence.ledger import adjust_balance, get_balance, to_money
from infrastructure.persistence.repositories.order_repository import OrderRepository

PROVIDER_CREDIT_PUBLIC_MESSAGE = "Sorry Your Order Is Faild From Serverside PleaseContact Us"
ORDER_REJECTED_PUBLIC_MESSAGE = "Your order could not be placed. Please contact us"


def _duplicate_reference(order_id: int, reference_id: str) -> str:
    """제공자가 기존 참조 ID를 재사용함. 감사용으로 원래 ID를 남긴다."""
    suffixed = f"{reference_id}-dup-{int(time.time() * 1000)}"
    logger.warning(f"중복 제공자 참조 ID 감지 (의심): order={order_id} "
                   f"reference={reference_id} -> {suffixed}")
    return suffixed


@dataclass
class OrderDetails:
    """주문 생성 입력 (서비스 정보 + 단말 정보)"""
    service_id: Any
    service_type: Optional[str] = None
    service_name: Optional[str] = None
    imei: Optional[str] = None
    device_model: str = ""
    quantity: Optional[int] = None
    custom_fields: Dict[str, Any] = field(default_factory=dict)
    provider_params: Dict[str, Any] = field(default_factory=dict)

    def to_service_data(self) -> Dict[str, Any]:
        return {
            "service_id": self.service_id,
            "service_type": self.service_type,
            "service_name": self.service_name,
            "quantity": self.quantity,
            "custom_fields": self.custom_fields,
            "provider_params": self.provider_params,
        }


class OrderLifecycleManager:
    def __init__(self, gateway: OrderGatewayPort, session_scope: Callable = get_db_session,
                 claim_ttl: Optional[int] = None):
        self._gateway = gateway
        self._session_scope = session_scope
        self._claim_ttl = claim_ttl or settings.ORDER_PLACEMENT_CLAIM_TTL

    @staticmethod
    async def _load(repo: OrderRepository, order_id: int, user_id: Optional[int]) -> OrderEntity:
        """user_id가 None이면 소유자 검사를 하지 않는다 (관리자/시스템)"""
        order = await repo.get(order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        if user_id is not None and order.user_id != user_id:
            raise NotOwnerError()
        return order

    async def create_order(self, user_id: int, price, details: OrderDetails) -> OrderEntity:
        price = to_money(price)
        if price < 0:
            raise InvalidAmountError("Price must be zero or greater")

        async with self._session_scope() as session:
            if price > 0:
                balance = await adjust_balance(session, user_id, -price)
            else:
                balance = await get_balance(session, user_id)
            order = await OrderRepository(session).add(
                user_id=user_id, price=price,
                order_type=map_service_type_to_order_type(details.service_type),
                imei=details.imei, device_model=details.device_model,
                service_data=details.to_service_data(),
            )

        logger.info(f"주문 생성: order={order.id} user={user_id} price={price} balance={balance}")
        return order

    def _build_submission(self, order: OrderEntity, token: str) -> OrderSubmission:
        data = order.service_data or {}
        return OrderSubmission(
            service_id=data.get("service_id"),
            idempotency_token=token,
            imei=order.imei,
            device_model=order.device_model,
            quantity=data.get("quantity"),
            service_type=data.get("service_type"),
            custom_fields=data.get("custom_fields") or {},
            provider_params=data.get("provider_params") or {},
        )

    async def place(self, order_id: int, user_id: Optional[int] = None) -> OrderEntity:
        """주문을 제공자에 접수한다

        접수 전에 선점 토큰을 걸어 중복 place와 진행 중 cancel을 막는다.
        게이트웨이 장애 시 선점만 풀고 주문은 PENDING으로 남는다.
        """
        token = uuid.uuid4().hex

        async with self._session_scope() as session:
            repo = OrderRepository(session)
            order = await self._load(repo, order_id, user_id)
            if order.status != OrderStatus.PENDING:
                raise OrderConflictError(order_id)
            if not await repo.claim_placement(order_id, token, self._claim_ttl):
                raise OrderConflictError(order_id)

        try:
            result = await self._gateway.submit(self._build_submission(order, token))
        except ProviderCreditExhaustedError as e:
            logger.warning(f"제공자 크레딧 부족으로 주문 실패 처리: order={order_id}")
            return await self._finish_placement(
                order_id, token, OrderStatus.FAILED, None, e.raw_response,
                public_message=PROVIDER_CREDIT_PUBLIC_MESSAGE)
        except Exception:
            await self._release(order_id, token)
            raise

        if result.accepted:
            instant = is_instant_service((order.service_data or {}).get("service_type"))
            status = OrderStatus.COMPLETED if instant else OrderStatus.PROCESSING
            return await self._finish_placement(
                order_id, token, status, result.reference_id, result.raw_response,
                completed_at=datetime.utcnow() if instant else None)

        return await self._finish_placement(
            order_id, token, OrderStatus.FAILED, result.reference_id, result.raw_response,
            public_message=ORDER_REJECTED_PUBLIC_MESSAGE)

    async def _release(self, order_id: int, token: str) -> None:
        async with self._session_scope() as session:
            await OrderRepository(session).release_placement(order_id, token)
        logger.info(f"place 선점 해제: order={order_id}")

    async def _finish_placement(self, order_id: int, token: str, status: OrderStatus,
                                reference_id: Optional[str], response: Optional[Dict[str, Any]],
                                completed_at: Optional[datetime] = None,
                                public_message: Optional[str] = None) -> OrderEntity:
        try:
            return await self._write_placement(order_id, token, status, reference_id, response,
                                               completed_at, public_message)
        except DuplicateReferenceError:
            # 존재 확인 이후 다른 place가 같은 참조 ID를 먼저 기록함
            return await self._write_placement(order_id, token, status,
                                               _duplicate_reference(order_id, reference_id),
                                               response, completed_at, public_message)

    async def _write_placement(self, order_id: int, token: str, status: OrderStatus,
                               reference_id: Optional[str], response: Optional[Dict[str, Any]],
                               completed_at: Optional[datetime],
                               public_message: Optional[str]) -> OrderEntity:
        async with self._session_scope() as session:
            repo = OrderRepository(session)
            if reference_id and await repo.reference_exists(reference_id):
                reference_id = _duplicate_reference(order_id, reference_id)

            if not await repo.finish_placement(order_id, token, status, reference_id, response,
                                                completed_at=completed_at,
                                                public_message=public_message):
                logger.error(f"place 결과 반영 실패 (선점 만료 후 다른 전이 발생): order={order_id} "
                             f"status={status.value} reference={reference_id}")
                raise OrderConflictError(order_id)

            order = await repo.get(order_id)

        logger.info(f"주문 접수 결과: order={order_id} status={status.value} reference={reference_id}")
        return order

    async def check_status(self, order_id: int, user_id: Optional[int] = None) -> OrderEntity:
        """PROCESSING 주문의 제공자 상태를 조회해 반영한다"""
        async with self._session_scope() as session:
            order = await self._load(OrderRepository(session), order_id, user_id)

        if not order.needs_status_check:
            return order

        result = await self._gateway.query_status(order.external_reference_id)
        return await self._apply_status(order, result, persist_first_snapshot=True)

    async def _apply_status(self, order: OrderEntity, result: StatusResult,
                            persist_first_snapshot: bool) -> OrderEntity:
        new_status = map_dhru_status(result.provider_status_code)
        merged = order.merged_response(result.details or result.raw_response)
        terminal = new_status in TERMINAL_ORDER_STATUSES

        if not terminal and (order.has_status_snapshot or not persist_first_snapshot):
            return replace(order, status=new_status, external_response=merged)

        completed_at = datetime.utcnow() if new_status == OrderStatus.COMPLETED else None
        async with self._session_scope() as session:
            repo = OrderRepository(session)
            applied = await repo.apply_checked_status(order.id, new_status, merged, completed_at)
            current = await repo.get(order.id)

        if applied:
            logger.info(f"주문 상태 반영: order={order.id} {order.status.value} -> {new_status.value}")
        else:
            logger.info(f"주문 상태 반영 생략 (이미 전이됨): order={order.id} status={current.status.value}")
        return current

    async def cancel(self, order_id: int, user_id: Optional[int] = None) -> OrderEntity:
        """PENDING 주문만 취소되며 가격만큼 환불된다"""
        async with self._session_scope() as session:
            repo = OrderRepository(session)
            order = await self._load(repo, order_id, user_id)
            if not order.can_cancel:
                raise InvalidOrderStateError("Cannot cancel")
            if not await repo.cancel_pending(order_id, self._claim_ttl):
                raise OrderConflictError(order_id)
            balance = None
            if order.price > 0:
                balance = await adjust_balance(session, order.user_id, order.price)
            cancelled = await repo.get(order_id)

        logger.info(f"주문 취소: order={order_id} refund={order.price} balance={balance}")
        return cancelled

    async def _refresh(self, order: OrderEntity) -> OrderEntity:
        """목록 조회용. 종료 상태로의 전이만 저장하고 제공자 오류는 삼킨다."""
        if not order.needs_status_check:
            return order
        try:
            result = await self._gateway.query_status(order.external_reference_id)
            return await self._apply_status(order, result, persist_first_snapshot=False)
        except DomainError as e:
            logger.warning(f"주문 상태 갱신 실패: order={order.id} - {e.message}")
            return order

    async def list_orders(self, user_id: int, refresh: bool = True) -> List[OrderEntity]:
        async with self._session_scope() as session:
            orders = await OrderRepository(session).list_by_user(user_id)
        if not refresh:
            return orders
        return list(await asyncio.gather(*(self._refresh(order) for order in orders)))

    async def get_order(self, order_id: int, user_id: Optional[int] = None,
                        refresh: bool = True) -> OrderEntity:
        async with self._session_scope() as session:
            order = await self._load(OrderRepository(session), order_id, user_id)
        return await self._refresh(order) if refresh else order
