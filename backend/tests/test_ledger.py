"""잔액 원장 테스트"""
import asyncio
from decimal import Decimal

import pytest

from domain.exceptions import InsufficientFundsError, UserNotFoundError
from infrastructure.persistence.ledger import adjust_balance, to_money


def test_to_money_quantizes_to_cents():
    assert to_money("10.016") == Decimal("10.02")
    assert to_money(3) == Decimal("3.00")


@pytest.mark.asyncio
async def test_debit_and_credit(session_scope, make_user, balance_of):
    user_id = await make_user("100")

    async with session_scope() as session:
        assert await adjust_balance(session, user_id, "-30") == Decimal("70.00")
    async with session_scope() as session:
        assert await adjust_balance(session, user_id, 5) == Decimal("75.00")

    assert await balance_of(user_id) == Decimal("75.00")


@pytest.mark.asyncio
async def test_debit_beyond_balance_is_rejected_without_change(session_scope, make_user, balance_of):
    user_id = await make_user("50")

    with pytest.raises(InsufficientFundsError):
        async with session_scope() as session:
            await adjust_balance(session, user_id, -80)

    assert await balance_of(user_id) == Decimal("50.00")


@pytest.mark.asyncio
async def test_debit_to_exactly_zero_is_allowed(session_scope, make_user, balance_of):
    user_id = await make_user("40")
    async with session_scope() as session:
        await adjust_balance(session, user_id, -40)
    assert await balance_of(user_id) == Decimal("0.00")


@pytest.mark.asyncio
async def test_unknown_user(session_scope):
    with pytest.raises(UserNotFoundError):
        async with session_scope() as session:
            await adjust_balance(session, 9999, 10)
    with pytest.raises(UserNotFoundError):
        async with session_scope() as session:
            await adjust_balance(session, 9999, 0)


@pytest.mark.asyncio
async def test_failure_later_in_transaction_rolls_back_debit(session_scope, make_user, balance_of):
    user_id = await make_user("100")

    with pytest.raises(RuntimeError):
        async with session_scope() as session:
            await adjust_balance(session, user_id, -30)
            raise RuntimeError("주문 행 저장 실패")

    assert await balance_of(user_id) == Decimal("100.00")


@pytest.mark.asyncio
async def test_concurrent_debits_never_overdraw(session_scope, make_user, balance_of):
    """잔액 100에서 30씩 10번 동시 차감 -> 정확히 3건만 성공"""
    user_id = await make_user("100")

    async def debit():
        async with session_scope() as session:
            await adjust_balance(session, user_id, -30)

    results = await asyncio.gather(*(debit() for _ in range(10)), return_exceptions=True)

    succeeded = [r for r in results if r is None]
    rejected = [r for r in results if isinstance(r, InsufficientFundsError)]
    assert len(succeeded) == 3
    assert len(rejected) == 7
    assert await balance_of(user_id) == Decimal("10.00")


@pytest.mark.asyncio
async def test_concurrent_mixed_operations_sum_up(session_scope, make_user, balance_of):
    """최종 잔액 = 초기 잔액 + 적용된 delta 합"""
    user_id = await make_user("20")
    deltas = [-15, 10, -15, 25, -40, 5, -10, 30, -50, 20]

    async def apply(delta):
        async with session_scope() as session:
            await adjust_balance(session, user_id, delta)
        return delta

    results = await asyncio.gather(*(apply(d) for d in deltas), return_exceptions=True)

    applied = [r for r in results if not isinstance(r, Exception)]
    assert all(isinstance(r, InsufficientFundsError) for r in results if isinstance(r, Exception))
    final = await balance_of(user_id)
    assert final == Decimal("20") + sum(Decimal(d) for d in applied)
    assert final >= 0
