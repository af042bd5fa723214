"""주문 스키마"""
from datetime import datetime
from decimal import Decimal
from typing import Optional, Dict, Any, List, Union
from pydantic import BaseModel, Field

from api.schemas.common import ResponseBase
from domain.entities.order import OrderEntity


class CreateOrderRequest(BaseModel):
    service_id: Union[int, str]
    service_type: Optional[str] = None
    service_name: Optional[str] = None
    imei: Optional[str] = Field(None, max_length=50)
    device_model: str = Field("", max_length=100)
    price: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)
    quantity: Optional[int] = Field(None, ge=1)
    custom_fields: Dict[str, Any] = Field(default_factory=dict)
    dhru_params: Dict[str, Any] = Field(default_factory=dict)


class OrderResponse(BaseModel):
    id: int
    user_id: int
    status: str
    order_type: str
    price: float
    imei: Optional[str] = None
    device_model: str = ""
    service_id: Optional[Union[int, str]] = None
    service_name: Optional[str] = None
    external_reference_id: Optional[str] = None
    external_response: Optional[Dict[str, Any]] = None
    public_message: Optional[str] = None
    completed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, order: OrderEntity) -> "OrderResponse":
        data = order.service_data or {}
        return cls(
            id=order.id, user_id=order.user_id, status=order.status.value,
            order_type=order.order_type, price=float(order.price), imei=order.imei,
            device_model=order.device_model, service_id=data.get("service_id"),
            service_name=data.get("service_name"),
            external_reference_id=order.external_reference_id,
            external_response=order.external_response, public_message=order.public_message,
            completed_at=order.completed_at, created_at=order.created_at, updated_at=order.updated_at,
        )


class OrderDetailResponse(ResponseBase):
    order: OrderResponse


class OrderListResponse(ResponseBase):
    orders: List[OrderResponse]
    total: int
