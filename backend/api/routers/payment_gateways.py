"""결제 게이트웨이 설정 라우터 (관리자)"""
from fastapi import APIRouter, Depends, status

from api.dependencies import get_admin_user, get_gateway_admin
from api.schemas.common import ResponseBase
from api.schemas.gateways import (
    GatewayConfigCreateRequest, GatewayConfigUpdateRequest, GatewayConfigResponse,
    GatewayConfigListResponse, GatewayConfigDetailResponse,
)
from application.use_cases.admin import GatewayAdminService, GatewayConfigView

router = APIRouter(prefix="/api/payment-gateways", tags=["결제 게이트웨이"],
                   dependencies=[Depends(get_admin_user)])


def _response(view: GatewayConfigView) -> GatewayConfigResponse:
    return GatewayConfigResponse(id=view.id, name=view.name, is_active=view.is_active,
                                 is_default=view.is_default, has_api_key=view.has_api_key,
                                 has_secret_key=view.has_secret_key)


@router.get("", response_model=GatewayConfigListResponse)
async def list_gateways(service: GatewayAdminService = Depends(get_gateway_admin)):
    return GatewayConfigListResponse(gateways=[_response(v) for v in await service.list_configs()])


@router.get("/default", response_model=GatewayConfigDetailResponse)
async def get_default_gateway(service: GatewayAdminService = Depends(get_gateway_admin)):
    view = await service.get_default()
    return GatewayConfigDetailResponse(gateway=_response(view) if view else None)


@router.post("", response_model=GatewayConfigDetailResponse, status_code=status.HTTP_201_CREATED)
async def create_gateway(request: GatewayConfigCreateRequest,
                         service: GatewayAdminService = Depends(get_gateway_admin)):
    view = await service.create_config(request.name, request.api_key, request.secret_key,
                                       is_active=request.is_active, is_default=request.is_default)
    return GatewayConfigDetailResponse(message="결제 게이트웨이가 등록되었습니다.", gateway=_response(view))


@router.get("/{config_id}", response_model=GatewayConfigDetailResponse)
async def get_gateway(config_id: int, service: GatewayAdminService = Depends(get_gateway_admin)):
    return GatewayConfigDetailResponse(gateway=_response(await service.get_config(config_id)))


@router.put("/{config_id}", response_model=GatewayConfigDetailResponse)
async def update_gateway(config_id: int, request: GatewayConfigUpdateRequest,
                         service: GatewayAdminService = Depends(get_gateway_admin)):
    view = await service.update_config(config_id, name=request.name, api_key=request.api_key,
                                       secret_key=request.secret_key, is_active=request.is_active,
                                       is_default=request.is_default)
    return GatewayConfigDetailResponse(gateway=_response(view))


@router.post("/{config_id}/default", response_model=GatewayConfigDetailResponse)
async def set_default_gateway(config_id: int, service: GatewayAdminService = Depends(get_gateway_admin)):
    return GatewayConfigDetailResponse(gateway=_response(await service.set_default(config_id)))


@router.post("/{config_id}/toggle", response_model=GatewayConfigDetailResponse)
async def toggle_gateway(config_id: int, service: GatewayAdminService = Depends(get_gateway_admin)):
    return GatewayConfigDetailResponse(gateway=_response(await service.toggle_active(config_id)))


@router.delete("/{config_id}", response_model=ResponseBase)
async def delete_gateway(config_id: int, service: GatewayAdminService = Depends(get_gateway_admin)):
    await service.delete_config(config_id)
    return ResponseBase(message="결제 게이트웨이가 삭제되었습니다.")
