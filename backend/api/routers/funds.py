"""잔액 / 인보이스 라우터"""
from typing import Optional

from fastapi import APIRouter, Depends

from api.dependencies import get_current_active_user, get_settlement_manager, get_payment_gateway_factory
from api.schemas.funds import (
    AddFundsRequest, BalanceResponse, HistoryItem, HistoryResponse, InvoiceResponse,
    InvoiceResultResponse, TotalDepositsResponse,
)
from application.ports.payment_gateway import PaymentGatewayFactory
from application.use_cases.settlement import SettlementManager, InvoiceCreation
from domain.enums import GatewayName, UserRole
from domain.exceptions import NotOwnerError
from infrastructure.persistence.models.user import User

router = APIRouter(prefix="/api/funds", tags=["잔액"])


def _invoice_result(result: InvoiceCreation, message: Optional[str] = None) -> InvoiceResultResponse:
    return InvoiceResultResponse(
        message=message, invoice=InvoiceResponse.from_entity(result.invoice),
        balance=float(result.balance) if result.balance is not None else None,
        payment_url=result.payment_url,
    )


@router.get("/balance", response_model=BalanceResponse)
async def get_balance(current_user: User = Depends(get_current_active_user),
                      manager: SettlementManager = Depends(get_settlement_manager)):
    return BalanceResponse(balance=float(await manager.balance(current_user.id)))


@router.post("/add", response_model=InvoiceResultResponse)
async def add_funds(request: AddFundsRequest,
                    current_user: User = Depends(get_current_active_user),
                    manager: SettlementManager = Depends(get_settlement_manager)):
    # 결제 없는 수동 적립은 관리자만
    if request.payment_method == GatewayName.MANUAL.value and current_user.role != UserRole.ADMIN:
        raise NotOwnerError()
    result = await manager.add_funds(current_user.id, request.amount, request.payment_method,
                                     request.description, request.pay_currency)
    message = "결제를 진행해주세요." if result.payment_url else "잔액이 충전되었습니다."
    return _invoice_result(result, message)


@router.get("/invoices", response_model=HistoryResponse)
async def list_invoices(current_user: User = Depends(get_current_active_user),
                        manager: SettlementManager = Depends(get_settlement_manager)):
    records = await manager.history(current_user.id)
    return HistoryResponse(items=[HistoryItem.from_record(r) for r in records])


@router.post("/invoices/{invoice_id}/pay", response_model=InvoiceResultResponse)
async def pay_invoice(invoice_id: int,
                      current_user: User = Depends(get_current_active_user),
                      manager: SettlementManager = Depends(get_settlement_manager)):
    return _invoice_result(await manager.pay_invoice(invoice_id, current_user.id), "결제가 완료되었습니다.")


@router.get("/total-deposits", response_model=TotalDepositsResponse)
async def total_deposits(current_user: User = Depends(get_current_active_user),
                         manager: SettlementManager = Depends(get_settlement_manager)):
    return TotalDepositsResponse(total=float(await manager.total_deposits(current_user.id)))


@router.get("/nowpayments-currencies")
async def nowpayments_currencies(current_user: User = Depends(get_current_active_user),
                                 gateways: PaymentGatewayFactory = Depends(get_payment_gateway_factory)):
    gateway = await gateways.get_with_fallback(GatewayName.NOWPAYMENTS.value)
    return {"success": True, "currencies": (await gateway.get_available_currencies()).get("currencies", [])}
