"""관리자 기능 / 게이트웨이 팩토리 테스트"""
from decimal import Decimal

import pytest
from sqlalchemy import select

from config import settings
from application.use_cases.admin import GatewayAdminService, UserAdminService
from domain.exceptions import (
    GatewayConfigInUseError, GatewayConfigNotFoundError, GatewayNotConfiguredError,
    InsufficientFundsError, UserNotFoundError,
)
from infrastructure.crypto.encryption_service import EncryptionService, CredentialDecryptionError
from infrastructure.payment.gateway_factory import DbPaymentGatewayFactory
from infrastructure.payment.nowpayments_gateway import NowPaymentsGateway
from infrastructure.persistence.models.payment_gateway import PaymentGatewayConfig


@pytest.fixture
def encryption():
    return EncryptionService("admin-test-key-material")


@pytest.fixture
def gateway_admin(session_scope, encryption):
    return GatewayAdminService(session_scope=session_scope, encryption=encryption)


@pytest.fixture
def user_admin(session_scope):
    return UserAdminService(session_scope=session_scope)


async def stored_rows(session_scope):
    async with session_scope() as session:
        return list((await session.execute(select(PaymentGatewayConfig))).scalars().all())


# ==================== 암호화 ====================

def test_encryption_round_trip_and_empty_values(encryption):
    token = encryption.encrypt("np-secret")
    assert token != "np-secret"
    assert encryption.decrypt(token) == "np-secret"
    assert encryption.encrypt("") is None
    assert encryption.decrypt(None) is None


def test_decrypt_with_other_key_fails(encryption):
    token = encryption.encrypt("np-secret")
    with pytest.raises(CredentialDecryptionError):
        EncryptionService("rotated-key").decrypt(token)


# ==================== 게이트웨이 설정 ====================

@pytest.mark.asyncio
async def test_keys_are_never_stored_in_plaintext(gateway_admin, session_scope, encryption):
    view = await gateway_admin.create_config("NOWPayments", "api-plain", "ipn-plain", is_default=True)

    assert view.has_api_key and view.has_secret_key
    row = (await stored_rows(session_scope))[0]
    assert "api-plain" not in row.api_key_encrypted
    assert "ipn-plain" not in row.secret_key_encrypted
    assert encryption.decrypt(row.api_key_encrypted) == "api-plain"


@pytest.mark.asyncio
async def test_single_default_config(gateway_admin):
    first = await gateway_admin.create_config("NOWPayments", "k1", "s1", is_default=True)
    second = await gateway_admin.create_config("NOWPayments", "k2", "s2", is_default=True)

    configs = {c.id: c for c in await gateway_admin.list_configs()}
    assert configs[first.id].is_default is False
    assert configs[second.id].is_default is True

    await gateway_admin.set_default(first.id)
    configs = {c.id: c for c in await gateway_admin.list_configs()}
    assert [c.id for c in configs.values() if c.is_default] == [first.id]
    assert (await gateway_admin.get_default()).id == first.id


@pytest.mark.asyncio
async def test_update_keeps_keys_unless_given(gateway_admin, session_scope, encryption):
    view = await gateway_admin.create_config("NOWPayments", "k1", "s1")

    await gateway_admin.update_config(view.id, name="NOWPayments", secret_key="s2", is_default=True)

    row = (await stored_rows(session_scope))[0]
    assert encryption.decrypt(row.api_key_encrypted) == "k1"
    assert encryption.decrypt(row.secret_key_encrypted) == "s2"
    assert row.is_default is True


@pytest.mark.asyncio
async def test_default_config_cannot_be_deleted(gateway_admin):
    default = await gateway_admin.create_config("NOWPayments", "k1", "s1", is_default=True)
    spare = await gateway_admin.create_config("NOWPayments", "k2", "s2")

    with pytest.raises(GatewayConfigInUseError):
        await gateway_admin.delete_config(default.id)
    await gateway_admin.delete_config(spare.id)

    with pytest.raises(GatewayConfigNotFoundError):
        await gateway_admin.get_config(spare.id)
    assert (await gateway_admin.get_config(default.id)).is_default is True


@pytest.mark.asyncio
async def test_toggle_active(gateway_admin):
    view = await gateway_admin.create_config("NOWPayments", "k1", "s1")

    assert (await gateway_admin.toggle_active(view.id)).is_active is False
    assert (await gateway_admin.toggle_active(view.id)).is_active is True
    with pytest.raises(GatewayConfigNotFoundError):
        await gateway_admin.toggle_active(999)


# ==================== 팩토리 ====================

@pytest.mark.asyncio
async def test_factory_builds_adapter_from_active_config(gateway_admin, session_scope, encryption):
    await gateway_admin.create_config("NOWPayments", "db-api-key", "db-ipn-secret", is_default=True)
    factory = DbPaymentGatewayFactory(session_scope=session_scope, encryption=encryption)

    gateway = await factory.get("NOWPayments")

    assert isinstance(gateway, NowPaymentsGateway)
    assert gateway.api_key == "db-api-key"
    assert gateway.ipn_secret == "db-ipn-secret"


@pytest.mark.asyncio
async def test_factory_refuses_inactive_or_unknown_gateway(gateway_admin, session_scope, encryption):
    view = await gateway_admin.create_config("NOWPayments", "k", "s")
    await gateway_admin.toggle_active(view.id)
    factory = DbPaymentGatewayFactory(session_scope=session_scope, encryption=encryption)

    with pytest.raises(GatewayNotConfiguredError):
        await factory.get("NOWPayments")
    with pytest.raises(GatewayNotConfiguredError):
        await factory.get("Stripe")


@pytest.mark.asyncio
async def test_factory_fallback_uses_environment_secret(session_scope, encryption, monkeypatch):
    monkeypatch.setattr(settings, "NOWPAYMENTS_API_KEY", "env-api-key")
    monkeypatch.setattr(settings, "NOWPAYMENTS_IPN_SECRET", "env-ipn-secret")
    factory = DbPaymentGatewayFactory(session_scope=session_scope, encryption=encryption)

    gateway = await factory.get_with_fallback("NOWPayments")

    assert gateway.ipn_secret == "env-ipn-secret"
    with pytest.raises(GatewayNotConfiguredError):
        await factory.get("NOWPayments")


@pytest.mark.asyncio
async def test_factory_fallback_without_any_secret_fails_closed(session_scope, encryption, monkeypatch):
    monkeypatch.setattr(settings, "NOWPAYMENTS_IPN_SECRET", None)
    factory = DbPaymentGatewayFactory(session_scope=session_scope, encryption=encryption)

    gateway = await factory.get_with_fallback("NOWPayments")

    assert gateway.verify_callback({"order_id": "1"}, "00") is False


@pytest.mark.asyncio
async def test_factory_with_rotated_key_reports_not_configured(gateway_admin, session_scope):
    await gateway_admin.create_config("NOWPayments", "k", "s")
    factory = DbPaymentGatewayFactory(session_scope=session_scope, encryption=EncryptionService("rotated"))

    with pytest.raises(GatewayNotConfiguredError):
        await factory.get("NOWPayments")


# ==================== 사용자 관리 ====================

@pytest.mark.asyncio
async def test_admin_balance_adjustment(user_admin, make_user, balance_of):
    user_id = await make_user("10")

    assert await user_admin.adjust_balance(user_id, "15.50") == Decimal("25.50")
    assert await user_admin.adjust_balance(user_id, -20) == Decimal("5.50")
    with pytest.raises(InsufficientFundsError):
        await user_admin.adjust_balance(user_id, -6)
    assert await balance_of(user_id) == Decimal("5.50")


@pytest.mark.asyncio
async def test_admin_toggle_user_active(user_admin, make_user):
    user_id = await make_user()

    assert (await user_admin.toggle_active(user_id)).is_active is False
    assert (await user_admin.toggle_active(user_id)).is_active is True
    with pytest.raises(UserNotFoundError):
        await user_admin.toggle_active(555)
