"""입금 라우터"""
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Header, status

from api.dependencies import get_current_active_user, get_settlement_manager, get_ipn_body
from api.schemas.funds import (
    CreateDepositRequest, CreateDepositResponse, DepositDetailResponse, DepositListResponse,
    DepositResponse, IpnAckResponse,
)
from application.use_cases.settlement import SettlementManager
from infrastructure.persistence.models.user import User

router = APIRouter(prefix="/api/deposits", tags=["입금"])


@router.post("", response_model=CreateDepositResponse, status_code=status.HTTP_201_CREATED)
async def create_deposit(request: CreateDepositRequest,
                         current_user: User = Depends(get_current_active_user),
                         manager: SettlementManager = Depends(get_settlement_manager)):
    result = await manager.create_deposit(current_user.id, request.amount, request.payment_gateway,
                                          request.currency, request.description, request.pay_currency)
    return CreateDepositResponse(deposit=DepositResponse.from_entity(result.deposit),
                                 payment_url=result.redirect_url)


@router.get("", response_model=DepositListResponse)
async def list_deposits(current_user: User = Depends(get_current_active_user),
                        manager: SettlementManager = Depends(get_settlement_manager)):
    deposits = await manager.list_deposits(current_user.id)
    return DepositListResponse(deposits=[DepositResponse.from_entity(d) for d in deposits])


@router.post("/ipn-callback", response_model=IpnAckResponse)
async def deposit_ipn_callback(body: Dict[str, Any] = Depends(get_ipn_body),
                               x_nowpayments_sig: Optional[str] = Header(None),
                               manager: SettlementManager = Depends(get_settlement_manager)):
    """NOWPayments 입금 IPN (인증 없음, 서명으로 검증)"""
    deposit = await manager.apply_deposit_notification(body, x_nowpayments_sig)
    return IpnAckResponse(message="IPN processed", status=deposit.status.value)


@router.get("/{deposit_id}", response_model=DepositDetailResponse)
async def get_deposit(deposit_id: int,
                      current_user: User = Depends(get_current_active_user),
                      manager: SettlementManager = Depends(get_settlement_manager)):
    deposit = await manager.get_deposit(deposit_id, current_user.id)
    return DepositDetailResponse(deposit=DepositResponse.from_entity(deposit))


@router.post("/{deposit_id}/refresh", response_model=DepositDetailResponse)
async def refresh_deposit(deposit_id: int,
                          current_user: User = Depends(get_current_active_user),
                          manager: SettlementManager = Depends(get_settlement_manager)):
    deposit = await manager.refresh_deposit(deposit_id, current_user.id)
    return DepositDetailResponse(deposit=DepositResponse.from_entity(deposit))
