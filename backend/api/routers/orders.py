"""주문 라우터"""
from fastapi import APIRouter, Depends, Query, status

from api.dependencies import get_current_active_user, get_order_manager
from api.schemas.orders import CreateOrderRequest, OrderResponse, OrderDetailResponse, OrderListResponse
from application.use_cases.order_lifecycle import OrderLifecycleManager, OrderDetails
from domain.enums import OrderStatus
from infrastructure.persistence.models.user import User

router = APIRouter(prefix="/api/orders", tags=["주문"])


@router.get("", response_model=OrderListResponse)
async def list_orders(refresh: bool = Query(True, description="처리 중 주문의 제공자 상태 갱신"),
                      current_user: User = Depends(get_current_active_user),
                      manager: OrderLifecycleManager = Depends(get_order_manager)):
    orders = await manager.list_orders(current_user.id, refresh=refresh)
    return OrderListResponse(orders=[OrderResponse.from_entity(o) for o in orders], total=len(orders))


@router.post("", response_model=OrderDetailResponse, status_code=status.HTTP_201_CREATED)
async def create_order(request: CreateOrderRequest,
                       current_user: User = Depends(get_current_active_user),
                       manager: OrderLifecycleManager = Depends(get_order_manager)):
    order = await manager.create_order(current_user.id, request.price, OrderDetails(
        service_id=request.service_id, service_type=request.service_type,
        service_name=request.service_name, imei=request.imei, device_model=request.device_model,
        quantity=request.quantity, custom_fields=request.custom_fields,
        provider_params=request.dhru_params,
    ))
    return OrderDetailResponse(message="주문이 생성되었습니다.", order=OrderResponse.from_entity(order))


@router.get("/{order_id}", response_model=OrderDetailResponse)
async def get_order(order_id: int, refresh: bool = Query(True),
                    current_user: User = Depends(get_current_active_user),
                    manager: OrderLifecycleManager = Depends(get_order_manager)):
    order = await manager.get_order(order_id, current_user.id, refresh=refresh)
    return OrderDetailResponse(order=OrderResponse.from_entity(order))


@router.post("/{order_id}/place", response_model=OrderDetailResponse)
async def place_order(order_id: int,
                      current_user: User = Depends(get_current_active_user),
                      manager: OrderLifecycleManager = Depends(get_order_manager)):
    order = await manager.place(order_id, current_user.id)
    return OrderDetailResponse(success=order.status != OrderStatus.FAILED, message=order.public_message,
                               order=OrderResponse.from_entity(order))


@router.post("/{order_id}/check-status", response_model=OrderDetailResponse)
async def check_order_status(order_id: int,
                             current_user: User = Depends(get_current_active_user),
                             manager: OrderLifecycleManager = Depends(get_order_manager)):
    order = await manager.check_status(order_id, current_user.id)
    return OrderDetailResponse(order=OrderResponse.from_entity(order))


@router.delete("/{order_id}", response_model=OrderDetailResponse)
async def cancel_order(order_id: int,
                       current_user: User = Depends(get_current_active_user),
                       manager: OrderLifecycleManager = Depends(get_order_manager)):
    order = await manager.cancel(order_id, current_user.id)
    return OrderDetailResponse(message="주문이 취소되고 환불되었습니다.", order=OrderResponse.from_entity(order))
