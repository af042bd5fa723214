"""
잔액 원장 (balance ledger)

모든 잔액 변경은 adjust_balance 한 곳을 통한다. 조건부 UPDATE 한 문장으로
"읽기-검사-증감"을 수행하므로 같은 사용자에 대한 동시 차감이 오래된 잔액을
기준으로 함께 통과할 수 없다. 호출자의 트랜잭션 안에서 실행되며, 실패 시
예외가 트랜잭션 전체를 롤백시킨다.
"""
from decimal import Decimal
from typing import Union

from loguru import logger
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from domain.exceptions import InsufficientFundsError, UserNotFoundError
from infrastructure.persistence.models.user import User

Amount = Union[Decimal, int, str]


def to_money(value: Amount) -> Decimal:
    return Decimal(str(value)).quantize(Decimal("0.01"))


async def get_balance(session: AsyncSession, user_id: int) -> Decimal:
    balance = await session.scalar(select(User.balance).where(User.id == user_id))
    if balance is None:
        raise UserNotFoundError()
    return to_money(balance)


async def adjust_balance(session: AsyncSession, user_id: int, delta: Amount) -> Decimal:
    """잔액에 delta를 더하고 새 잔액을 반환한다. 음수 잔액은 허용하지 않는다."""
    delta = to_money(delta)
    if delta == 0:
        return await get_balance(session, user_id)

    stmt = update(User).where(User.id == user_id)
    if delta < 0:
        stmt = stmt.where(User.balance + delta >= 0)
    result = await session.execute(
        stmt.values(balance=User.balance + delta).execution_options(synchronize_session=False)
    )

    if result.rowcount == 0:
        exists = await session.scalar(select(User.id).where(User.id == user_id))
        if exists is None:
            raise UserNotFoundError()
        logger.info(f"잔액 부족으로 차감 거부: user={user_id} delta={delta}")
        raise InsufficientFundsError()

    new_balance = await get_balance(session, user_id)
    logger.debug(f"잔액 변경: user={user_id} delta={delta} balance={new_balance}")
    return new_balance
