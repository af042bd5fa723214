"""결제 게이트웨이(NOWPayments) 포트 인터페이스"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Dict, Any


@dataclass
class PaymentRequest:
    order_id: str
    amount: Decimal
    currency: str
    description: str
    ipn_callback_url: str
    pay_currency: Optional[str] = None
    success_url: Optional[str] = None
    cancel_url: Optional[str] = None


@dataclass
class CreatedPayment:
    external_id: str
    redirect_url: Optional[str]
    raw_response: Dict[str, Any]


class PaymentGatewayPort(ABC):
    name: str = ""

    @abstractmethod
    async def create_invoice(self, request: PaymentRequest) -> CreatedPayment: ...
    @abstractmethod
    async def create_payment(self, request: PaymentRequest) -> CreatedPayment: ...
    @abstractmethod
    async def get_status(self, external_id: str) -> Optional[str]: ...
    @abstractmethod
    async def find_status_by_order_id(self, order_id: str) -> Optional[str]: ...
    @abstractmethod
    async def find_status_by_invoice_id(self, invoice_id: str) -> Optional[str]:
        """인보이스로 생성된 결제 중 대표 상태. 결제가 아직 없으면 None"""
    @abstractmethod
    def verify_callback(self, body: Dict[str, Any], signature: Optional[str]) -> bool: ...

    # 조회용 유틸
    @abstractmethod
    async def get_api_status(self) -> Dict[str, Any]: ...
    @abstractmethod
    async def get_available_currencies(self) -> Dict[str, Any]: ...
    @abstractmethod
    async def get_minimum_payment_amount(self, currency_from: str, currency_to: str) -> Dict[str, Any]: ...
    @abstractmethod
    async def get_estimated_price(self, amount, currency_from: str, currency_to: str) -> Dict[str, Any]: ...


class PaymentGatewayFactory(ABC):
    """활성 게이트웨이 설정(복호화된 키)으로 어댑터를 만든다"""

    @abstractmethod
    async def get(self, gateway_name: str) -> PaymentGatewayPort:
        """설정이 없거나 비활성이면 GatewayNotConfiguredError"""

    @abstractmethod
    async def get_with_fallback(self, gateway_name: str) -> PaymentGatewayPort:
        """IPN 검증/조회용. DB 설정이 없으면 환경 설정 키로 폴백하며, 비밀키가 없으면 검증은 항상 실패한다"""
