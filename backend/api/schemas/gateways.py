"""결제 게이트웨이 설정 / NOWPayments 유틸 스키마"""
from decimal import Decimal
from typing import Optional, List
from pydantic import BaseModel, Field

from api.schemas.common import ResponseBase


class GatewayConfigCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    api_key: Optional[str] = None
    secret_key: Optional[str] = None
    is_active: bool = True
    is_default: bool = False


class GatewayConfigUpdateRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=50)
    api_key: Optional[str] = None
    secret_key: Optional[str] = None
    is_active: Optional[bool] = None
    is_default: Optional[bool] = None


class GatewayConfigResponse(BaseModel):
    id: int
    name: str
    is_active: bool
    is_default: bool
    has_api_key: bool
    has_secret_key: bool


class GatewayConfigListResponse(ResponseBase):
    gateways: List[GatewayConfigResponse]


class GatewayConfigDetailResponse(ResponseBase):
    gateway: Optional[GatewayConfigResponse] = None


class NowPaymentsPaymentRequest(BaseModel):
    price_amount: Decimal = Field(..., gt=0)
    price_currency: str = "usd"
    pay_currency: Optional[str] = None
    order_id: str
    order_description: Optional[str] = None
    ipn_callback_url: Optional[str] = None


class AdjustBalanceRequest(BaseModel):
    amount: Decimal = Field(..., max_digits=12, decimal_places=2)


class UserStatusResponse(ResponseBase):
    user_id: int
    is_active: bool
