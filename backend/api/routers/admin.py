"""관리자 사용자 관리 / DHRU 계정 조회 라우터"""
from fastapi import APIRouter, Depends

from api.dependencies import get_admin_user, get_user_admin, get_dhru_client
from api.schemas.funds import BalanceResponse
from api.schemas.gateways import AdjustBalanceRequest, UserStatusResponse
from application.use_cases.admin import UserAdminService
from infrastructure.dhru.dhru_gateway import DhruClient

router = APIRouter(prefix="/api/admin", tags=["관리자"], dependencies=[Depends(get_admin_user)])


@router.post("/users/{user_id}/balance", response_model=BalanceResponse)
async def adjust_user_balance(user_id: int, request: AdjustBalanceRequest,
                              service: UserAdminService = Depends(get_user_admin)):
    balance = await service.adjust_balance(user_id, request.amount)
    return BalanceResponse(balance=float(balance))


@router.post("/users/{user_id}/toggle-active", response_model=UserStatusResponse)
async def toggle_user_active(user_id: int, service: UserAdminService = Depends(get_user_admin)):
    user = await service.toggle_active(user_id)
    return UserStatusResponse(user_id=user.id, is_active=user.is_active)


# ==================== DHRU ====================

@router.get("/dhru/account-info")
async def dhru_account_info(client: DhruClient = Depends(get_dhru_client)):
    """제공자 계정 잔여 크레딧 확인"""
    return {"success": True, "data": await client.account_info()}


@router.get("/dhru/services")
async def dhru_services(client: DhruClient = Depends(get_dhru_client)):
    return {"success": True, "data": await client.services_list()}


@router.get("/dhru/file-services")
async def dhru_file_services(client: DhruClient = Depends(get_dhru_client)):
    return {"success": True, "data": await client.file_services()}
