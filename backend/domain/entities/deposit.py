"""입금/인보이스 도메인 엔티티"""
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from domain.enums import (
    DepositStatus, InvoiceStatus, InvoiceType,
    TERMINAL_DEPOSIT_STATUSES, TERMINAL_INVOICE_STATUSES,
)


@dataclass
class DepositEntity:
    id: int
    user_id: int
    amount: Decimal
    currency: str
    gateway_name: str
    status: DepositStatus
    external_payment_id: Optional[str] = None
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_DEPOSIT_STATUSES


@dataclass
class InvoiceEntity:
    id: int
    user_id: int
    amount: Decimal
    type: InvoiceType
    status: InvoiceStatus
    description: Optional[str] = None
    payment_gateway: Optional[str] = None
    external_payment_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_INVOICE_STATUSES

    @property
    def credits_balance(self) -> bool:
        return self.type == InvoiceType.FUND_ADDITION
