"""활성 결제 게이트웨이 설정으로 어댑터 생성"""
from typing import Callable, Optional

import httpx
from loguru import logger

from config import settings
from application.ports.payment_gateway import PaymentGatewayFactory, PaymentGatewayPort
from domain.enums import GatewayName
from domain.exceptions import GatewayNotConfiguredError
from infrastructure.crypto.encryption_service import (
    EncryptionService, CredentialDecryptionError, encryption_service as default_encryption,
)
from infrastructure.payment.nowpayments_gateway import NowPaymentsGateway
from infrastructure.persistence.database import get_db_session
from infrastructure.persistence.repositories.gateway_config_repository import GatewayConfigRepository


class DbPaymentGatewayFactory(PaymentGatewayFactory):
    def __init__(self, session_scope: Callable = get_db_session,
                 encryption: EncryptionService = default_encryption,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self._session_scope = session_scope
        self._encryption = encryption
        self._transport = transport

    async def _load_credentials(self, gateway_name: str):
        async with self._session_scope() as session:
            config = await GatewayConfigRepository(session).get_active(gateway_name)
            if config is None:
                return None
            try:
                return (self._encryption.decrypt(config.api_key_encrypted),
                        self._encryption.decrypt(config.secret_key_encrypted))
            except CredentialDecryptionError:
                raise GatewayNotConfiguredError(gateway_name)

    def _build(self, gateway_name: str, api_key: Optional[str], secret: Optional[str]) -> PaymentGatewayPort:
        if gateway_name != GatewayName.NOWPAYMENTS.value:
            raise GatewayNotConfiguredError(gateway_name)
        return NowPaymentsGateway(api_key=api_key, ipn_secret=secret, transport=self._transport)

    async def get(self, gateway_name: str) -> PaymentGatewayPort:
        credentials = await self._load_credentials(gateway_name)
        if credentials is None:
            logger.warning(f"활성 결제 게이트웨이 설정 없음: {gateway_name}")
            raise GatewayNotConfiguredError(gateway_name)
        api_key, secret = credentials
        return self._build(gateway_name, api_key, secret)

    async def get_with_fallback(self, gateway_name: str) -> PaymentGatewayPort:
        credentials = await self._load_credentials(gateway_name)
        if credentials is None:
            return self._build(gateway_name, settings.NOWPAYMENTS_API_KEY, settings.NOWPAYMENTS_IPN_SECRET)
        api_key, secret = credentials
        return self._build(gateway_name, api_key, secret or settings.NOWPAYMENTS_IPN_SECRET)
