"""외부 제공자 상태 코드 → 내부 상태 매핑

제공자 의미를 해석하지 않고 그대로 보존해야 하는 계약 테이블.
"""
from typing import Optional

from domain.enums import OrderStatus, OrderType, DepositStatus, InvoiceStatus

# DHRU STATUS: 0 대기, 1 진행중, 2 결제대기, 3 취소, 4 완료, 5 부분완료, 6 환불, 7 실패
DHRU_STATUS_MAP = {
    "0": OrderStatus.PROCESSING,
    "1": OrderStatus.PROCESSING,
    "2": OrderStatus.PROCESSING,
    "3": OrderStatus.CANCELLED,
    "4": OrderStatus.COMPLETED,
    "5": OrderStatus.FAILED,
    "6": OrderStatus.CANCELLED,
    "7": OrderStatus.FAILED,
}

NOWPAYMENTS_DEPOSIT_STATUS_MAP = {
    "finished": DepositStatus.COMPLETED,
    "pending": DepositStatus.PENDING_PAYMENT,
    "confirming": DepositStatus.CONFIRMING,
    "confirmed": DepositStatus.CONFIRMED,
    "sending": DepositStatus.SENDING,
    "partially_paid": DepositStatus.PARTIALLY_PAID,
    "failed": DepositStatus.FAILED,
}

NOWPAYMENTS_INVOICE_STATUS_MAP = {
    "finished": InvoiceStatus.COMPLETED,
    "failed": InvoiceStatus.FAILED,
}


def map_dhru_status(code) -> OrderStatus:
    """알 수 없는 코드는 PROCESSING (계속 폴링)"""
    if code is None:
        return OrderStatus.PROCESSING
    return DHRU_STATUS_MAP.get(str(code).strip(), OrderStatus.PROCESSING)


def map_nowpayments_deposit_status(raw_status: Optional[str]) -> DepositStatus:
    return NOWPAYMENTS_DEPOSIT_STATUS_MAP.get(raw_status or "", DepositStatus.PENDING_PAYMENT)


def map_nowpayments_invoice_status(raw_status: Optional[str]) -> InvoiceStatus:
    return NOWPAYMENTS_INVOICE_STATUS_MAP.get(raw_status or "", InvoiceStatus.PENDING)


def map_service_type_to_order_type(service_type: Optional[str]) -> OrderType:
    """DHRU 서비스 타입 → 주문 타입"""
    key = (service_type or "").upper()
    mapping = {
        "ICLOUD_CHECK": OrderType.ICLOUD_CHECK,
        "SAMSUNG_KG_CHECK": OrderType.SAMSUNG_KG_CHECK,
        "SAMSUNG_INFO_CHECK": OrderType.SAMSUNG_INFO_CHECK,
        "MICLOUD_CHECK": OrderType.MICLOUD_CHECK,
    }
    return mapping.get(key, OrderType.FRP_UNLOCK)


def is_instant_service(service_type: Optional[str]) -> bool:
    """CHECK/INFO 류 서비스는 접수 즉시 완료로 본다"""
    key = (service_type or "").upper()
    return "CHECK" in key or "INFO" in key
