"""도메인 열거형"""
import enum


class UserRole(str, enum.Enum):
    USER = "user"
    ADMIN = "admin"


class OrderStatus(str, enum.Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"


TERMINAL_ORDER_STATUSES = frozenset({
    OrderStatus.COMPLETED, OrderStatus.FAILED, OrderStatus.CANCELLED,
})


class OrderType(str, enum.Enum):
    FRP_UNLOCK = "FRP_UNLOCK"
    ICLOUD_CHECK = "ICLOUD_CHECK"
    SAMSUNG_KG_CHECK = "SAMSUNG_KG_CHECK"
    SAMSUNG_INFO_CHECK = "SAMSUNG_INFO_CHECK"
    MICLOUD_CHECK = "MICLOUD_CHECK"


class DepositStatus(str, enum.Enum):
    PENDING = "pending"
    PENDING_PAYMENT = "pending_payment"
    CONFIRMING = "confirming"
    CONFIRMED = "confirmed"
    SENDING = "sending"
    PARTIALLY_PAID = "partially_paid"
    COMPLETED = "completed"
    FAILED = "failed"


TERMINAL_DEPOSIT_STATUSES = frozenset({DepositStatus.COMPLETED, DepositStatus.FAILED})


class InvoiceType(str, enum.Enum):
    FUND_ADDITION = "FUND_ADDITION"
    SERVICE_PAYMENT = "SERVICE_PAYMENT"
    REFUND = "REFUND"


class InvoiceStatus(str, enum.Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


TERMINAL_INVOICE_STATUSES = frozenset({InvoiceStatus.COMPLETED, InvoiceStatus.FAILED})


class GatewayName(str, enum.Enum):
    NOWPAYMENTS = "NOWPayments"
    MANUAL = "manual"
