"""잔액 / 인보이스 / 입금 스키마"""
from datetime import datetime
from decimal import Decimal
from typing import Optional, List, Union
from pydantic import BaseModel, Field

from api.schemas.common import ResponseBase
from domain.entities.deposit import DepositEntity, InvoiceEntity


class InvoiceResponse(BaseModel):
    id: int
    amount: float
    type: str
    status: str
    description: Optional[str] = None
    payment_gateway: Optional[str] = None
    external_payment_id: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, invoice: InvoiceEntity) -> "InvoiceResponse":
        return cls(id=invoice.id, amount=float(invoice.amount), type=invoice.type.value,
                   status=invoice.status.value, description=invoice.description,
                   payment_gateway=invoice.payment_gateway,
                   external_payment_id=invoice.external_payment_id, created_at=invoice.created_at)


class DepositResponse(BaseModel):
    id: int
    amount: float
    currency: str
    payment_gateway: str
    status: str
    external_payment_id: Optional[str] = None
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, deposit: DepositEntity) -> "DepositResponse":
        return cls(id=deposit.id, amount=float(deposit.amount), currency=deposit.currency,
                   payment_gateway=deposit.gateway_name, status=deposit.status.value,
                   external_payment_id=deposit.external_payment_id, description=deposit.description,
                   created_at=deposit.created_at, updated_at=deposit.updated_at)


class HistoryItem(BaseModel):
    kind: str  # "invoice" | "deposit"
    id: int
    amount: float
    status: str
    type: Optional[str] = None
    currency: Optional[str] = None
    payment_gateway: Optional[str] = None
    description: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_record(cls, record: Union[InvoiceEntity, DepositEntity]) -> "HistoryItem":
        if isinstance(record, DepositEntity):
            return cls(kind="deposit", id=record.id, amount=float(record.amount),
                       status=record.status.value, currency=record.currency,
                       payment_gateway=record.gateway_name, description=record.description,
                       created_at=record.created_at)
        return cls(kind="invoice", id=record.id, amount=float(record.amount),
                   status=record.status.value, type=record.type.value,
                   payment_gateway=record.payment_gateway, description=record.description,
                   created_at=record.created_at)


class BalanceResponse(ResponseBase):
    balance: float


class TotalDepositsResponse(ResponseBase):
    total: float


class AddFundsRequest(BaseModel):
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    payment_method: str = "manual"
    description: Optional[str] = Field(None, max_length=500)
    pay_currency: Optional[str] = None


class InvoiceResultResponse(ResponseBase):
    invoice: InvoiceResponse
    balance: Optional[float] = None
    payment_url: Optional[str] = None


class HistoryResponse(ResponseBase):
    items: List[HistoryItem]


class CreateDepositRequest(BaseModel):
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    currency: str = "usd"
    payment_gateway: str = "NOWPayments"
    description: Optional[str] = Field(None, max_length=500)
    pay_currency: Optional[str] = None


class CreateDepositResponse(ResponseBase):
    deposit: DepositResponse
    payment_url: Optional[str] = None


class DepositDetailResponse(ResponseBase):
    deposit: DepositResponse


class DepositListResponse(ResponseBase):
    deposits: List[DepositResponse]


class CreateInvoiceRequest(BaseModel):
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    description: Optional[str] = Field(None, max_length=500)
    currency: str = "usd"
    pay_currency: Optional[str] = None


class InvoiceStatusResponse(ResponseBase):
    invoice: InvoiceResponse
    payment_status: Optional[str] = None


class IpnAckResponse(ResponseBase):
    status: Optional[str] = None
