"""NOWPayments 유틸 라우터"""
from decimal import Decimal
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Header, Query
from loguru import logger

from config import settings
from api.dependencies import get_current_active_user, get_payment_gateway_factory, get_ipn_body
from api.schemas.funds import IpnAckResponse
from api.schemas.gateways import NowPaymentsPaymentRequest
from application.ports.payment_gateway import PaymentGatewayFactory, PaymentGatewayPort, PaymentRequest
from domain.enums import GatewayName
from domain.exceptions import InvalidSignatureError
from infrastructure.persistence.models.user import User

router = APIRouter(prefix="/api/nowpayments", tags=["NOWPayments"])


async def _gateway(gateways: PaymentGatewayFactory = Depends(get_payment_gateway_factory)) -> PaymentGatewayPort:
    return await gateways.get_with_fallback(GatewayName.NOWPAYMENTS.value)


@router.get("/status")
async def api_status(gateway: PaymentGatewayPort = Depends(_gateway)):
    return {"success": True, "data": await gateway.get_api_status()}


@router.get("/currencies")
async def currencies(gateway: PaymentGatewayPort = Depends(_gateway)):
    return {"success": True, "data": await gateway.get_available_currencies()}


@router.get("/min-amount")
async def min_amount(currency_from: str = Query(...), currency_to: str = Query(...),
                     gateway: PaymentGatewayPort = Depends(_gateway)):
    return {"success": True, "data": await gateway.get_minimum_payment_amount(currency_from, currency_to)}


@router.get("/estimate")
async def estimate(amount: Decimal = Query(..., gt=0), currency_from: str = Query(...),
                   currency_to: str = Query(...), gateway: PaymentGatewayPort = Depends(_gateway)):
    return {"success": True,
            "data": await gateway.get_estimated_price(str(amount), currency_from, currency_to)}


@router.post("/payment")
async def create_payment(request: NowPaymentsPaymentRequest,
                         current_user: User = Depends(get_current_active_user),
                         gateways: PaymentGatewayFactory = Depends(get_payment_gateway_factory)):
    """잔액과 무관한 원시 결제 생성 (활성 설정 필수)"""
    gateway = await gateways.get(GatewayName.NOWPAYMENTS.value)
    created = await gateway.create_payment(PaymentRequest(
        order_id=request.order_id, amount=request.price_amount, currency=request.price_currency,
        description=request.order_description or f"Payment {request.order_id}",
        ipn_callback_url=request.ipn_callback_url
        or f"{settings.BACKEND_BASE_URL.rstrip('/')}/api/nowpayments/ipn-callback",
        pay_currency=request.pay_currency,
    ))
    logger.info(f"NOWPayments 결제 생성: user={current_user.id} payment={created.external_id}")
    return {"success": True, "payment_id": created.external_id, "payment_url": created.redirect_url,
            "data": created.raw_response}


@router.get("/payment/{payment_id}")
async def payment_status(payment_id: str,
                         current_user: User = Depends(get_current_active_user),
                         gateway: PaymentGatewayPort = Depends(_gateway)):
    return {"success": True, "payment_id": payment_id, "payment_status": await gateway.get_status(payment_id)}


@router.post("/ipn-callback", response_model=IpnAckResponse)
async def ipn_callback(body: Dict[str, Any] = Depends(get_ipn_body),
                       x_nowpayments_sig: Optional[str] = Header(None),
                       gateway: PaymentGatewayPort = Depends(_gateway)):
    """서명만 검증하고 수신 확인한다 (잔액 변경 없음)"""
    if not gateway.verify_callback(body, x_nowpayments_sig):
        logger.warning(f"NOWPayments IPN 서명 검증 실패: payment={body.get('payment_id')}")
        raise InvalidSignatureError()
    logger.info(f"NOWPayments IPN 수신: payment={body.get('payment_id')} status={body.get('payment_status')}")
    return IpnAckResponse(message="IPN received", status=body.get("payment_status"))
