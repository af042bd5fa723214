"""인보이스 결제 라우터 (NOWPayments)"""
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Header, status

from api.dependencies import get_current_active_user, get_settlement_manager, get_ipn_body
from api.schemas.funds import (
    CreateInvoiceRequest, InvoiceResponse, InvoiceResultResponse, InvoiceStatusResponse, IpnAckResponse,
)
from application.use_cases.settlement import SettlementManager
from infrastructure.persistence.models.user import User

router = APIRouter(prefix="/api/payments", tags=["결제"])


@router.post("/invoice", response_model=InvoiceResultResponse, status_code=status.HTTP_201_CREATED)
async def create_invoice(request: CreateInvoiceRequest,
                         current_user: User = Depends(get_current_active_user),
                         manager: SettlementManager = Depends(get_settlement_manager)):
    result = await manager.create_invoice_with_payment(current_user.id, request.amount, request.description,
                                                       request.currency, request.pay_currency)
    return InvoiceResultResponse(invoice=InvoiceResponse.from_entity(result.invoice),
                                 payment_url=result.payment_url)


@router.get("/status/{invoice_id}", response_model=InvoiceStatusResponse)
async def invoice_status(invoice_id: int,
                         current_user: User = Depends(get_current_active_user),
                         manager: SettlementManager = Depends(get_settlement_manager)):
    invoice, payment_status = await manager.refresh_invoice(invoice_id, current_user.id)
    return InvoiceStatusResponse(invoice=InvoiceResponse.from_entity(invoice), payment_status=payment_status)


@router.post("/nowpayments/ipn-callback", response_model=IpnAckResponse)
async def invoice_ipn_callback(body: Dict[str, Any] = Depends(get_ipn_body),
                               x_nowpayments_sig: Optional[str] = Header(None),
                               manager: SettlementManager = Depends(get_settlement_manager)):
    """NOWPayments 인보이스 IPN (인증 없음, 서명으로 검증)"""
    invoice = await manager.apply_invoice_notification(body, x_nowpayments_sig)
    return IpnAckResponse(message="IPN processed", status=invoice.status.value)
