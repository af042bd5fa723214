"""주문 게이트웨이(DHRU) 포트 인터페이스"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional, Dict, Any


@dataclass
class OrderSubmission:
    """제공자에 보낼 주문 파라미터"""
    service_id: Any
    idempotency_token: str
    imei: Optional[str] = None
    device_model: Optional[str] = None
    quantity: Optional[int] = None
    service_type: Optional[str] = None
    custom_fields: Dict[str, Any] = field(default_factory=dict)
    provider_params: Dict[str, Any] = field(default_factory=dict)


@dataclass
class SubmitResult:
    accepted: bool
    reference_id: Optional[str]
    raw_response: Dict[str, Any]
    error_message: Optional[str] = None


@dataclass
class StatusResult:
    provider_status_code: Optional[str]
    raw_response: Dict[str, Any]
    # 주문 응답에 병합할 상세 (제공자 응답의 주문 항목)
    details: Optional[Dict[str, Any]] = None


class OrderGatewayPort(ABC):
    @abstractmethod
    async def submit(self, submission: OrderSubmission) -> SubmitResult:
        """ProviderCreditExhaustedError / GatewayUnavailableError를 던질 수 있다"""
    @abstractmethod
    async def query_status(self, reference_id: str) -> StatusResult: ...
