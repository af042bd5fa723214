"""API 스키마 re-export"""
from api.schemas.common import ResponseBase
from api.schemas.auth import (
    UserSignupRequest, UserLoginRequest, TokenResponse, UserResponse,
)
from api.schemas.orders import (
    CreateOrderRequest, OrderResponse, OrderDetailResponse, OrderListResponse,
)
from api.schemas.funds import (
    InvoiceResponse, DepositResponse, HistoryItem, BalanceResponse, TotalDepositsResponse,
    AddFundsRequest, InvoiceResultResponse, HistoryResponse, CreateDepositRequest,
    CreateDepositResponse, DepositDetailResponse, DepositListResponse, CreateInvoiceRequest,
    InvoiceStatusResponse, IpnAckResponse,
)
from api.schemas.gateways import (
    GatewayConfigCreateRequest, GatewayConfigUpdateRequest, GatewayConfigResponse,
    GatewayConfigListResponse, GatewayConfigDetailResponse, NowPaymentsPaymentRequest,
    AdjustBalanceRequest, UserStatusResponse,
)
