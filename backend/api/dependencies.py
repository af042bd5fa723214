"""
FastAPI 의존성 주입 (Depends)

모든 라우터에서 사용하는 공통 의존성을 정의한다. 유스케이스는 요청마다
만들어지며, 테스트는 get_session / get_session_scope / 게이트웨이 의존성을
override 해서 DB와 외부 API를 교체한다.
"""
import json
from typing import Any, Callable, Dict

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from application.ports.order_gateway import OrderGatewayPort
from application.ports.payment_gateway import PaymentGatewayFactory
from application.use_cases.admin import GatewayAdminService, UserAdminService
from application.use_cases.order_lifecycle import OrderLifecycleManager
from application.use_cases.settlement import SettlementManager
from domain.enums import UserRole
from infrastructure.auth.jwt_service import decode_token
from infrastructure.dhru.dhru_gateway import DhruClient, DhruOrderGateway
from infrastructure.payment.gateway_factory import DbPaymentGatewayFactory
from infrastructure.persistence.database import get_session, get_db_session
from infrastructure.persistence.models.user import User

security = HTTPBearer()


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    session: AsyncSession = Depends(get_session)
) -> User:
    """현재 인증된 사용자 반환"""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="유효하지 않은 인증 정보입니다.",
        headers={"WWW-Authenticate": "Bearer"},
    )

    token = credentials.credentials
    payload = decode_token(token)

    if payload is None or payload.get("type") != "access":
        raise credentials_exception

    user_id_raw = payload.get("sub")
    if user_id_raw is None:
        raise credentials_exception
    try:
        user_id = int(user_id_raw)
    except (ValueError, TypeError):
        raise credentials_exception

    result = await session.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if user is None:
        raise credentials_exception

    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN,
                            detail="비활성화된 계정입니다.")
    return user


async def get_current_active_user(
    current_user: User = Depends(get_current_user)
) -> User:
    """활성 사용자 확인"""
    if not current_user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN,
                            detail="비활성화된 계정입니다.")
    return current_user


async def get_admin_user(
    current_user: User = Depends(get_current_user)
) -> User:
    """관리자 사용자 확인"""
    if current_user.role != UserRole.ADMIN:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN,
                            detail="관리자 권한이 필요합니다.")
    return current_user


# ==================== 유스케이스 ====================

def get_session_scope() -> Callable:
    return get_db_session


def get_dhru_client() -> DhruClient:
    return DhruClient()


def get_order_gateway(client: DhruClient = Depends(get_dhru_client)) -> OrderGatewayPort:
    return DhruOrderGateway(client)


def get_payment_gateway_factory(session_scope: Callable = Depends(get_session_scope)) -> PaymentGatewayFactory:
    return DbPaymentGatewayFactory(session_scope=session_scope)


def get_order_manager(
    gateway: OrderGatewayPort = Depends(get_order_gateway),
    session_scope: Callable = Depends(get_session_scope),
) -> OrderLifecycleManager:
    return OrderLifecycleManager(gateway, session_scope=session_scope)


def get_settlement_manager(
    gateways: PaymentGatewayFactory = Depends(get_payment_gateway_factory),
    session_scope: Callable = Depends(get_session_scope),
) -> SettlementManager:
    return SettlementManager(gateways, session_scope=session_scope)


def get_gateway_admin(session_scope: Callable = Depends(get_session_scope)) -> GatewayAdminService:
    return GatewayAdminService(session_scope=session_scope)


def get_user_admin(session_scope: Callable = Depends(get_session_scope)) -> UserAdminService:
    return UserAdminService(session_scope=session_scope)


# ==================== IPN ====================

async def get_ipn_body(request: Request) -> Dict[str, Any]:
    """서명 검증 전에 원본 JSON 본문을 그대로 읽는다"""
    raw = await request.body()
    try:
        body = json.loads(raw or b"{}")
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="잘못된 IPN 본문입니다.")
    if not isinstance(body, dict):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="잘못된 IPN 본문입니다.")
    return body
