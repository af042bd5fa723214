"""관리자 유스케이스: 결제 게이트웨이 설정, 사용자 잔액/활성 상태"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, List, Callable

from loguru import logger

from domain.entities.user import UserEntity
from domain.exceptions import (
    GatewayConfigNotFoundError, GatewayConfigInUseError, ConcurrentUpdateError,
    UserNotFoundError, InvalidAmountError,
)
from infrastructure.crypto.encryption_service import EncryptionService, encryption_service as default_encryption
from infrastructure.persistence.database import get_db_session
from infrastructure.persistence.ledger import adjust_balance, to_money
from infrastructure.persistence.models.payment_gateway import PaymentGatewayConfig
from infrastructure.persistence.repositories.gateway_config_repository import GatewayConfigRepository
from infrastructure.persistence.repositories.user_repository import SqlUserRepository


@dataclass
class GatewayConfigView:
    """키는 노출하지 않고 설정 여부만 알린다"""
    id: int
    name: str
    is_active: bool
    is_default: bool
    has_api_key: bool
    has_secret_key: bool

    @classmethod
    def from_model(cls, config: PaymentGatewayConfig) -> "GatewayConfigView":
        return cls(id=config.id, name=config.name, is_active=config.is_active,
                   is_default=config.is_default, has_api_key=bool(config.api_key_encrypted),
                   has_secret_key=bool(config.secret_key_encrypted))


class GatewayAdminService:
    def __init__(self, session_scope: Callable = get_db_session,
                 encryption: EncryptionService = default_encryption):
        self._session_scope = session_scope
        self._encryption = encryption

    async def list_configs(self) -> List[GatewayConfigView]:
        async with self._session_scope() as session:
            configs = await GatewayConfigRepository(session).list()
            return [GatewayConfigView.from_model(c) for c in configs]

    async def _get(self, repo: GatewayConfigRepository, config_id: int) -> PaymentGatewayConfig:
        config = await repo.get(config_id)
        if config is None:
            raise GatewayConfigNotFoundError(config_id)
        return config

    async def get_config(self, config_id: int) -> GatewayConfigView:
        async with self._session_scope() as session:
            return GatewayConfigView.from_model(await self._get(GatewayConfigRepository(session), config_id))

    async def get_default(self) -> Optional[GatewayConfigView]:
        async with self._session_scope() as session:
            config = await GatewayConfigRepository(session).get_default()
            return GatewayConfigView.from_model(config) if config else None

    async def create_config(self, name: str, api_key: Optional[str], secret_key: Optional[str],
                            is_active: bool = True, is_default: bool = False) -> GatewayConfigView:
        async with self._session_scope() as session:
            repo = GatewayConfigRepository(session)
            if is_default:
                await repo.unset_defaults()
            config = await repo.add(PaymentGatewayConfig(
                name=name, api_key_encrypted=self._encryption.encrypt(api_key),
                secret_key_encrypted=self._encryption.encrypt(secret_key),
                is_active=is_active, is_default=is_default,
            ))
            view = GatewayConfigView.from_model(config)
        logger.info(f"결제 게이트웨이 설정 생성: id={view.id} name={name} default={is_default}")
        return view

    async def update_config(self, config_id: int, name: Optional[str] = None,
                            api_key: Optional[str] = None, secret_key: Optional[str] = None,
                            is_active: Optional[bool] = None,
                            is_default: Optional[bool] = None) -> GatewayConfigView:
        """None인 필드는 그대로 둔다. 키는 값이 주어질 때만 다시 암호화된다."""
        async with self._session_scope() as session:
            repo = GatewayConfigRepository(session)
            config = await self._get(repo, config_id)
            if is_default:
                await repo.unset_defaults(except_id=config_id)
            if name is not None:
                config.name = name
            if api_key:
                config.api_key_encrypted = self._encryption.encrypt(api_key)
            if secret_key:
                config.secret_key_encrypted = self._encryption.encrypt(secret_key)
            if is_active is not None:
                config.is_active = is_active
            if is_default is not None:
                config.is_default = is_default
            await session.flush()
            view = GatewayConfigView.from_model(config)
        logger.info(f"결제 게이트웨이 설정 수정: id={config_id}")
        return view

    async def set_default(self, config_id: int) -> GatewayConfigView:
        async with self._session_scope() as session:
            repo = GatewayConfigRepository(session)
            config = await self._get(repo, config_id)
            await repo.unset_defaults(except_id=config_id)
            config.is_default = True
            await session.flush()
            view = GatewayConfigView.from_model(config)
        logger.info(f"기본 결제 게이트웨이 변경: id={config_id}")
        return view

    async def toggle_active(self, config_id: int) -> GatewayConfigView:
        async with self._session_scope() as session:
            repo = GatewayConfigRepository(session)
            config = await self._get(repo, config_id)
            current = config.is_active
            if not await repo.set_active_if(config_id, current, not current):
                raise ConcurrentUpdateError()
            await session.refresh(config)
            view = GatewayConfigView.from_model(config)
        logger.info(f"결제 게이트웨이 활성 상태 변경: id={config_id} active={view.is_active}")
        return view

    async def delete_config(self, config_id: int) -> None:
        async with self._session_scope() as session:
            repo = GatewayConfigRepository(session)
            config = await self._get(repo, config_id)
            if config.is_default:
                raise GatewayConfigInUseError()
            await repo.delete(config_id)
        logger.info(f"결제 게이트웨이 설정 삭제: id={config_id}")


class UserAdminService:
    def __init__(self, session_scope: Callable = get_db_session):
        self._session_scope = session_scope

    async def adjust_balance(self, user_id: int, amount) -> Decimal:
        """양수는 적립, 음수는 차감. 잔액은 음수가 될 수 없다."""
        try:
            delta = to_money(amount)
        except ArithmeticError:
            raise InvalidAmountError()
        async with self._session_scope() as session:
            balance = await adjust_balance(session, user_id, delta)
        logger.info(f"관리자 잔액 조정: user={user_id} delta={delta} balance={balance}")
        return balance

    async def toggle_active(self, user_id: int) -> UserEntity:
        async with self._session_scope() as session:
            repo = SqlUserRepository(session)
            user = await repo.get_by_id(user_id)
            if user is None:
                raise UserNotFoundError()
            if not await repo.set_active_if(user_id, user.is_active, not user.is_active):
                raise ConcurrentUpdateError()
            updated = await repo.get_by_id(user_id)
        logger.info(f"사용자 활성 상태 변경: user={user_id} active={updated.is_active}")
        return updated
