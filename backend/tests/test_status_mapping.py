"""외부 상태 코드 매핑 테이블 테스트"""
import pytest

from domain.enums import OrderStatus, OrderType, DepositStatus, InvoiceStatus
from domain.status_mapping import (
    map_dhru_status, map_nowpayments_deposit_status, map_nowpayments_invoice_status,
    map_service_type_to_order_type, is_instant_service,
)


@pytest.mark.parametrize("code,expected", [
    ("0", OrderStatus.PROCESSING),
    ("1", OrderStatus.PROCESSING),
    ("2", OrderStatus.PROCESSING),
    ("3", OrderStatus.CANCELLED),
    ("4", OrderStatus.COMPLETED),
    ("5", OrderStatus.FAILED),
    ("6", OrderStatus.CANCELLED),
    ("7", OrderStatus.FAILED),
    (4, OrderStatus.COMPLETED),
    (" 4 ", OrderStatus.COMPLETED),
    ("99", OrderStatus.PROCESSING),
    (None, OrderStatus.PROCESSING),
])
def test_map_dhru_status(code, expected):
    assert map_dhru_status(code) == expected


@pytest.mark.parametrize("raw,expected", [
    ("finished", DepositStatus.COMPLETED),
    ("pending", DepositStatus.PENDING_PAYMENT),
    ("confirming", DepositStatus.CONFIRMING),
    ("confirmed", DepositStatus.CONFIRMED),
    ("sending", DepositStatus.SENDING),
    ("partially_paid", DepositStatus.PARTIALLY_PAID),
    ("failed", DepositStatus.FAILED),
    ("waiting", DepositStatus.PENDING_PAYMENT),
    (None, DepositStatus.PENDING_PAYMENT),
])
def test_map_nowpayments_deposit_status(raw, expected):
    assert map_nowpayments_deposit_status(raw) == expected


def test_map_nowpayments_invoice_status():
    assert map_nowpayments_invoice_status("finished") == InvoiceStatus.COMPLETED
    assert map_nowpayments_invoice_status("failed") == InvoiceStatus.FAILED
    assert map_nowpayments_invoice_status("confirming") == InvoiceStatus.PENDING
    assert map_nowpayments_invoice_status(None) == InvoiceStatus.PENDING


@pytest.mark.parametrize("service_type,expected,instant", [
    ("ICLOUD_CHECK", OrderType.ICLOUD_CHECK, True),
    ("samsung_kg_check", OrderType.SAMSUNG_KG_CHECK, True),
    ("SAMSUNG_INFO_CHECK", OrderType.SAMSUNG_INFO_CHECK, True),
    ("MICLOUD_CHECK", OrderType.MICLOUD_CHECK, True),
    ("IMEI", OrderType.FRP_UNLOCK, False),
    ("SERVER", OrderType.FRP_UNLOCK, False),
    (None, OrderType.FRP_UNLOCK, False),
])
def test_service_type_classification(service_type, expected, instant):
    assert map_service_type_to_order_type(service_type) == expected
    assert is_instant_service(service_type) is instant


def test_device_info_service_is_instant():
    assert is_instant_service("DEVICE_INFO") is True
