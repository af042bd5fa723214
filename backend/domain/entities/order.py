"""주문 도메인 엔티티"""
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional, Dict, Any

from domain.enums import OrderStatus, TERMINAL_ORDER_STATUSES


@dataclass
class OrderEntity:
    """단일 언락/체크 요청의 스냅샷"""
    id: int
    user_id: int
    status: OrderStatus
    price: Decimal
    order_type: str
    imei: Optional[str] = None
    device_model: str = ""
    service_data: Dict[str, Any] = field(default_factory=dict)
    external_reference_id: Optional[str] = None
    external_response: Optional[Dict[str, Any]] = None
    public_message: Optional[str] = None
    completed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_ORDER_STATUSES

    @property
    def can_cancel(self) -> bool:
        return self.status == OrderStatus.PENDING

    @property
    def needs_status_check(self) -> bool:
        return self.status == OrderStatus.PROCESSING and bool(self.external_reference_id)

    @property
    def has_status_snapshot(self) -> bool:
        return bool((self.external_response or {}).get("orderDetails"))

    def merged_response(self, order_details: Dict[str, Any]) -> Dict[str, Any]:
        """이전 응답을 보존하고 orderDetails만 덮어쓴 새 payload"""
        return {**(self.external_response or {}), "orderDetails": order_details}
