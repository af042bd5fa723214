"""입금 / 인보이스 Repository (SQLAlchemy)"""
from decimal import Decimal
from typing import Optional, List

from sqlalchemy import select, update, desc, func
from sqlalchemy.ext.asyncio import AsyncSession

from domain.entities.deposit import DepositEntity, InvoiceEntity
from domain.enums import (
    DepositStatus, InvoiceStatus, InvoiceType,
    TERMINAL_DEPOSIT_STATUSES, TERMINAL_INVOICE_STATUSES,
)
from infrastructure.persistence.models.deposit import Deposit
from infrastructure.persistence.models.invoice import Invoice


def deposit_to_entity(row: Deposit) -> DepositEntity:
    return DepositEntity(
        id=row.id, user_id=row.user_id, amount=Decimal(str(row.amount)),
        currency=row.currency, gateway_name=row.payment_gateway,
        status=DepositStatus(row.status), external_payment_id=row.external_payment_id,
        description=row.description, created_at=row.created_at, updated_at=row.updated_at,
    )


def invoice_to_entity(row: Invoice) -> InvoiceEntity:
    return InvoiceEntity(
        id=row.id, user_id=row.user_id, amount=Decimal(str(row.amount)),
        type=InvoiceType(row.type), status=InvoiceStatus(row.status),
        description=row.description, payment_gateway=row.payment_gateway,
        external_payment_id=row.external_payment_id,
        created_at=row.created_at, updated_at=row.updated_at,
    )


class DepositRepository:
    def __init__(self, session: AsyncSession):
        self._session = session

    async def add(self, user_id: int, amount: Decimal, currency: str, gateway_name: str,
                  description: Optional[str]) -> DepositEntity:
        row = Deposit(user_id=user_id, amount=amount, currency=currency,
                      payment_gateway=gateway_name, status=DepositStatus.PENDING,
                      description=description)
        self._session.add(row)
        await self._session.flush()
        return deposit_to_entity(row)

    async def get(self, deposit_id: int) -> Optional[DepositEntity]:
        row = await self._session.scalar(
            select(Deposit).where(Deposit.id == deposit_id).execution_options(populate_existing=True))
        return deposit_to_entity(row) if row else None

    async def list_by_user(self, user_id: int) -> List[DepositEntity]:
        result = await self._session.execute(
            select(Deposit).where(Deposit.user_id == user_id)
            .order_by(desc(Deposit.created_at), desc(Deposit.id)))
        return [deposit_to_entity(row) for row in result.scalars().all()]

    async def mark_pending_payment(self, deposit_id: int, external_payment_id: str) -> bool:
        result = await self._session.execute(
            update(Deposit)
            .where(Deposit.id == deposit_id, Deposit.status == DepositStatus.PENDING)
            .values(status=DepositStatus.PENDING_PAYMENT, external_payment_id=external_payment_id)
            .execution_options(synchronize_session=False))
        return result.rowcount == 1

    async def transition(self, deposit_id: int, new_status: DepositStatus) -> bool:
        """종료 상태(completed/failed)가 아닐 때만 상태를 바꾼다"""
        result = await self._session.execute(
            update(Deposit)
            .where(Deposit.id == deposit_id, Deposit.status.notin_(list(TERMINAL_DEPOSIT_STATUSES)))
            .values(status=new_status)
            .execution_options(synchronize_session=False))
        return result.rowcount == 1

    async def total_settled(self, user_id: int) -> Decimal:
        total = await self._session.scalar(
            select(func.coalesce(func.sum(Deposit.amount), 0))
            .where(Deposit.user_id == user_id,
                   Deposit.status.in_([DepositStatus.COMPLETED, DepositStatus.CONFIRMED])))
        return Decimal(str(total or 0))


class InvoiceRepository:
    def __init__(self, session: AsyncSession):
        self._session = session

    async def add(self, user_id: int, amount: Decimal, type: InvoiceType,
                  description: Optional[str], status: InvoiceStatus = InvoiceStatus.PENDING,
                  payment_gateway: Optional[str] = None) -> InvoiceEntity:
        row = Invoice(user_id=user_id, amount=amount, type=type, status=status,
                      description=description, payment_gateway=payment_gateway)
        self._session.add(row)
        await self._session.flush()
        return invoice_to_entity(row)

    async def get(self, invoice_id: int) -> Optional[InvoiceEntity]:
        row = await self._session.scalar(
            select(Invoice).where(Invoice.id == invoice_id).execution_options(populate_existing=True))
        return invoice_to_entity(row) if row else None

    async def list_by_user(self, user_id: int) -> List[InvoiceEntity]:
        result = await self._session.execute(
            select(Invoice).where(Invoice.user_id == user_id)
            .order_by(desc(Invoice.created_at), desc(Invoice.id)))
        return [invoice_to_entity(row) for row in result.scalars().all()]

    async def set_external_payment_id(self, invoice_id: int, external_payment_id: str) -> None:
        await self._session.execute(
            update(Invoice).where(Invoice.id == invoice_id)
            .values(external_payment_id=external_payment_id)
            .execution_options(synchronize_session=False))

    async def transition(self, invoice_id: int, new_status: InvoiceStatus) -> bool:
        result = await self._session.execute(
            update(Invoice)
            .where(Invoice.id == invoice_id, Invoice.status.notin_(list(TERMINAL_INVOICE_STATUSES)))
            .values(status=new_status)
            .execution_options(synchronize_session=False))
        return result.rowcount == 1

    async def total_fund_additions(self, user_id: int) -> Decimal:
        total = await self._session.scalar(
            select(func.coalesce(func.sum(Invoice.amount), 0))
            .where(Invoice.user_id == user_id, Invoice.type == InvoiceType.FUND_ADDITION,
                   Invoice.status == InvoiceStatus.COMPLETED))
        return Decimal(str(total or 0))
