"""
입금 / 인보이스 정산 유스케이스

외부 결제 확인(IPN 또는 폴링)이 잔액을 정확히 한 번만 늘리도록 한다.
상태 갱신은 "종료 상태가 아닐 때만" 적용되는 조건부 UPDATE이고, 완료로의
첫 전이를 수행한 트랜잭션만 같은 트랜잭션 안에서 잔액을 올린다.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Dict, Any, List, Union, Callable

from loguru import logger

from config import settings
from application.ports.payment_gateway import PaymentGatewayFactory, PaymentRequest
from domain.entities.deposit import DepositEntity, InvoiceEntity
from domain.enums import DepositStatus, InvoiceStatus, InvoiceType, GatewayName
from domain.exceptions import (
    DepositNotFoundError, InvoiceNotFoundError, InvalidAmountError, InvalidOrderStateError,
    InvalidSignatureError, NotOwnerError, DomainError,
)
from domain.status_mapping import map_nowpayments_deposit_status, map_nowpayments_invoice_status
from infrastructure.persistence.database import get_db_session
from infrastructure.persistence.ledger import adjust_balance, get_balance, to_money
from infrastructure.persistence.repositories.deposit_repository import DepositRepository, InvoiceRepository

DEPOSIT_IPN_PATH = "/api/deposits/ipn-callback"
INVOICE_IPN_PATH = "/api/payments/nowpayments/ipn-callback"


@dataclass
class DepositCreation:
    deposit: DepositEntity
    redirect_url: Optional[str]


@dataclass
class InvoiceCreation:
    invoice: InvoiceEntity
    payment_url: Optional[str] = None
    balance: Optional[Decimal] = None


def _parse_id(value) -> Optional[int]:
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return None


def _positive_amount(amount) -> Decimal:
    try:
        value = to_money(amount)
    except ArithmeticError:
        raise InvalidAmountError()
    if value <= 0:
        raise InvalidAmountError("Amount must be greater than zero")
    return value


class SettlementManager:
    def __init__(self, gateways: PaymentGatewayFactory, session_scope: Callable = get_db_session,
                 backend_base_url: Optional[str] = None):
        self._gateways = gateways
        self._session_scope = session_scope
        self._base_url = (backend_base_url or settings.BACKEND_BASE_URL).rstrip("/")

    # ---------------------------------------------------------------- 입금

    async def create_deposit(self, user_id: int, amount, gateway_name: str = GatewayName.NOWPAYMENTS.value,
                             currency: str = "usd", description: Optional[str] = None,
                             pay_currency: Optional[str] = None) -> DepositCreation:
        """pending 입금을 만들고 게이트웨이 인보이스를 생성한다

        게이트웨이 호출이 실패해도 입금 행은 pending으로 남는다.
        """
        amount = _positive_amount(amount)
        gateway = await self._gateways.get(gateway_name)

        async with self._session_scope() as session:
            deposit = await DepositRepository(session).add(user_id, amount, currency, gateway_name, description)
        logger.info(f"입금 생성: deposit={deposit.id} user={user_id} amount={amount} {currency}")

        try:
            created = await gateway.create_invoice(PaymentRequest(
                order_id=str(deposit.id), amount=amount, currency=currency,
                description=description or f"Deposit #{deposit.id}",
                ipn_callback_url=f"{self._base_url}{DEPOSIT_IPN_PATH}",
                pay_currency=pay_currency,
            ))
        except DomainError as e:
            logger.warning(f"입금 인보이스 생성 실패, pending 유지: deposit={deposit.id} - {e.message}")
            raise

        async with self._session_scope() as session:
            repo = DepositRepository(session)
            await repo.mark_pending_payment(deposit.id, created.external_id)
            deposit = await repo.get(deposit.id)
        logger.info(f"입금 결제 대기: deposit={deposit.id} external={created.external_id}")
        return DepositCreation(deposit=deposit, redirect_url=created.redirect_url)

    async def _settle_deposit(self, deposit_id: int, raw_status: Optional[str]) -> DepositEntity:
        new_status = map_nowpayments_deposit_status(raw_status)

        async with self._session_scope() as session:
            repo = DepositRepository(session)
            deposit = await repo.get(deposit_id)
            if deposit is None:
                raise DepositNotFoundError(deposit_id)
            if deposit.is_terminal or deposit.status == new_status:
                logger.info(f"입금 알림 무시 (이미 처리됨): deposit={deposit_id} "
                            f"status={deposit.status.value} incoming={raw_status}")
                return deposit

            if not await repo.transition(deposit_id, new_status):
                current = await repo.get(deposit_id)
                logger.info(f"입금 상태 경합, 다른 요청이 먼저 반영: deposit={deposit_id} "
                            f"status={current.status.value}")
                return current

            if new_status == DepositStatus.COMPLETED:
                balance = await adjust_balance(session, deposit.user_id, deposit.amount)
                logger.info(f"입금 완료, 잔액 적립: deposit={deposit_id} user={deposit.user_id} "
                            f"amount={deposit.amount} balance={balance}")
            updated = await repo.get(deposit_id)

        logger.info(f"입금 상태 전이: deposit={deposit_id} {deposit.status.value} -> {new_status.value}")
        return updated

    async def _verify(self, body: Dict[str, Any], signature: Optional[str]) -> None:
        gateway = await self._gateways.get_with_fallback(GatewayName.NOWPAYMENTS.value)
        if not gateway.verify_callback(body, signature):
            logger.warning(f"IPN 서명 검증 실패: order_id={body.get('order_id') if isinstance(body, dict) else None}")
            raise InvalidSignatureError()

    async def apply_deposit_notification(self, body: Dict[str, Any], signature: Optional[str]) -> DepositEntity:
        """입금 IPN 처리. 이미 종료된 입금에 대한 알림은 성공 no-op."""
        await self._verify(body, signature)
        raw_id = body.get("order_id") or body.get("depositId")
        deposit_id = _parse_id(raw_id)
        if deposit_id is None:
            raise DepositNotFoundError(raw_id)
        raw_status = body.get("payment_status") or body.get("status")
        return await self._settle_deposit(deposit_id, raw_status)

    async def _load_deposit(self, deposit_id: int, user_id: Optional[int]) -> DepositEntity:
        async with self._session_scope() as session:
            deposit = await DepositRepository(session).get(deposit_id)
        if deposit is None:
            raise DepositNotFoundError(deposit_id)
        if user_id is not None and deposit.user_id != user_id:
            raise NotOwnerError()
        return deposit

    async def refresh_deposit(self, deposit_id: int, user_id: Optional[int] = None) -> DepositEntity:
        """게이트웨이 결제 상태를 조회해 IPN과 같은 경로로 반영한다"""
        deposit = await self._load_deposit(deposit_id, user_id)
        if deposit.is_terminal:
            return deposit

        gateway = await self._gateways.get_with_fallback(deposit.gateway_name)
        # 입금은 인보이스로 생성되므로 external_payment_id는 결제 ID가 아닌 인보이스 ID다
        if deposit.external_payment_id:
            raw_status = await gateway.find_status_by_invoice_id(deposit.external_payment_id)
        else:
            raw_status = await gateway.find_status_by_order_id(str(deposit.id))
        if raw_status is None:
            return deposit
        return await self._settle_deposit(deposit.id, raw_status)

    async def get_deposit(self, deposit_id: int, user_id: Optional[int] = None) -> DepositEntity:
        return await self._load_deposit(deposit_id, user_id)

    async def list_deposits(self, user_id: int) -> List[DepositEntity]:
        async with self._session_scope() as session:
            return await DepositRepository(session).list_by_user(user_id)

    # ------------------------------------------------------------ 인보이스

    async def create_invoice_with_payment(self, user_id: int, amount, description: Optional[str] = None,
                                          currency: str = "usd", pay_currency: Optional[str] = None,
                                          gateway_name: str = GatewayName.NOWPAYMENTS.value) -> InvoiceCreation:
        amount = _positive_amount(amount)
        gateway = await self._gateways.get(gateway_name)
        description = description or f"Add funds ${amount}"

        async with self._session_scope() as session:
            invoice = await InvoiceRepository(session).add(
                user_id, amount, InvoiceType.FUND_ADDITION, description, payment_gateway=gateway_name)

        created = await gateway.create_payment(PaymentRequest(
            order_id=str(invoice.id), amount=amount, currency=currency, description=description,
            ipn_callback_url=f"{self._base_url}{INVOICE_IPN_PATH}", pay_currency=pay_currency,
        ))

        async with self._session_scope() as session:
            repo = InvoiceRepository(session)
            await repo.set_external_payment_id(invoice.id, created.external_id)
            invoice = await repo.get(invoice.id)
        logger.info(f"인보이스 결제 생성: invoice={invoice.id} user={user_id} external={created.external_id}")
        return InvoiceCreation(invoice=invoice, payment_url=created.redirect_url)

    async def _settle_invoice(self, invoice_id: int, raw_status: Optional[str]) -> InvoiceEntity:
        new_status = map_nowpayments_invoice_status(raw_status)

        async with self._session_scope() as session:
            repo = InvoiceRepository(session)
            invoice = await repo.get(invoice_id)
            if invoice is None:
                raise InvoiceNotFoundError(invoice_id)
            if invoice.is_terminal or new_status == invoice.status:
                logger.info(f"인보이스 알림 무시: invoice={invoice_id} status={invoice.status.value} "
                            f"incoming={raw_status}")
                return invoice

            if not await repo.transition(invoice_id, new_status):
                return await repo.get(invoice_id)

            if new_status == InvoiceStatus.COMPLETED and invoice.credits_balance:
                balance = await adjust_balance(session, invoice.user_id, invoice.amount)
                logger.info(f"인보이스 완료, 잔액 적립: invoice={invoice_id} user={invoice.user_id} "
                            f"amount={invoice.amount} balance={balance}")
            updated = await repo.get(invoice_id)

        logger.info(f"인보이스 상태 전이: invoice={invoice_id} {invoice.status.value} -> {new_status.value}")
        return updated

    async def apply_invoice_notification(self, body: Dict[str, Any], signature: Optional[str]) -> InvoiceEntity:
        await self._verify(body, signature)
        raw_id = body.get("order_id")
        invoice_id = _parse_id(raw_id)
        if invoice_id is None:
            raise InvoiceNotFoundError(raw_id)
        return await self._settle_invoice(invoice_id, body.get("payment_status"))

    async def _load_invoice(self, invoice_id: int, user_id: Optional[int]) -> InvoiceEntity:
        async with self._session_scope() as session:
            invoice = await InvoiceRepository(session).get(invoice_id)
        if invoice is None:
            raise InvoiceNotFoundError(invoice_id)
        if user_id is not None and invoice.user_id != user_id:
            raise NotOwnerError()
        return invoice

    async def refresh_invoice(self, invoice_id: int, user_id: Optional[int] = None):
        """(인보이스, 게이트웨이 원시 상태)"""
        invoice = await self._load_invoice(invoice_id, user_id)
        if invoice.is_terminal or not invoice.external_payment_id:
            return invoice, None
        gateway = await self._gateways.get_with_fallback(invoice.payment_gateway or GatewayName.NOWPAYMENTS.value)
        raw_status = await gateway.get_status(invoice.external_payment_id)
        if raw_status is None:
            return invoice, None
        return await self._settle_invoice(invoice.id, raw_status), raw_status

    async def add_funds(self, user_id: int, amount, payment_method: str = GatewayName.MANUAL.value,
                        description: Optional[str] = None, pay_currency: Optional[str] = None) -> InvoiceCreation:
        """결제 게이트웨이를 쓰면 결제 생성, 아니면 즉시 적립 + 완료 인보이스"""
        if payment_method != GatewayName.MANUAL.value:
            return await self.create_invoice_with_payment(user_id, amount, description,
                                                          pay_currency=pay_currency,
                                                          gateway_name=payment_method)

        amount = _positive_amount(amount)
        async with self._session_scope() as session:
            balance = await adjust_balance(session, user_id, amount)
            invoice = await InvoiceRepository(session).add(
                user_id, amount, InvoiceType.FUND_ADDITION, description or "Manual fund addition",
                status=InvoiceStatus.COMPLETED, payment_gateway=GatewayName.MANUAL.value)
        logger.info(f"수동 적립: user={user_id} amount={amount} balance={balance} invoice={invoice.id}")
        return InvoiceCreation(invoice=invoice, balance=balance)

    async def pay_invoice(self, invoice_id: int, user_id: int) -> InvoiceCreation:
        """PENDING 서비스 결제 인보이스를 잔액으로 결제한다. 이미 결제된 인보이스는 no-op.

        충전(FUND_ADDITION) 인보이스는 외부 결제 완료로만 종료되므로 잔액 결제 대상이 아니다.
        """
        async with self._session_scope() as session:
            repo = InvoiceRepository(session)
            invoice = await repo.get(invoice_id)
            if invoice is None:
                raise InvoiceNotFoundError(invoice_id)
            if invoice.user_id != user_id:
                raise NotOwnerError()
            if invoice.credits_balance:
                raise InvalidOrderStateError("Invoice is not payable")
            if invoice.status == InvoiceStatus.COMPLETED:
                return InvoiceCreation(invoice=invoice, balance=await get_balance(session, user_id))
            if invoice.status != InvoiceStatus.PENDING:
                raise InvalidOrderStateError("Invoice is not payable")

            if not await repo.transition(invoice_id, InvoiceStatus.COMPLETED):
                current = await repo.get(invoice_id)
                return InvoiceCreation(invoice=current, balance=await get_balance(session, user_id))
            balance = await adjust_balance(session, user_id, -invoice.amount)
            paid = await repo.get(invoice_id)

        logger.info(f"인보이스 결제: invoice={invoice_id} user={user_id} amount={invoice.amount} balance={balance}")
        return InvoiceCreation(invoice=paid, balance=balance)

    async def list_invoices(self, user_id: int) -> List[InvoiceEntity]:
        async with self._session_scope() as session:
            return await InvoiceRepository(session).list_by_user(user_id)

    # ---------------------------------------------------------------- 집계

    async def total_deposits(self, user_id: int) -> Decimal:
        async with self._session_scope() as session:
            deposits = await DepositRepository(session).total_settled(user_id)
            invoices = await InvoiceRepository(session).total_fund_additions(user_id)
        return to_money(deposits + invoices)

    async def history(self, user_id: int) -> List[Union[InvoiceEntity, DepositEntity]]:
        """인보이스와 입금 내역을 생성 시각 역순으로 합친다"""
        async with self._session_scope() as session:
            invoices = await InvoiceRepository(session).list_by_user(user_id)
            deposits = await DepositRepository(session).list_by_user(user_id)
        records: List[Union[InvoiceEntity, DepositEntity]] = [*invoices, *deposits]
        return sorted(records, key=lambda r: r.created_at, reverse=True)

    async def balance(self, user_id: int) -> Decimal:
        async with self._session_scope() as session:
            return await get_balance(session, user_id)
