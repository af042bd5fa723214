"""
데이터베이스 연결 및 세션 관리

get_session: 요청 단위 세션 (FastAPI 의존성)
get_db_session: 짧은 트랜잭션 단위의 컨텍스트 매니저 (유스케이스가 사용)
"""
import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base

from config import settings

os.makedirs("./data", exist_ok=True)
os.makedirs("./logs", exist_ok=True)

engine = create_async_engine(
    settings.DB_URL,
    echo=settings.DEBUG,
    future=True,
)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False
)

Base = declarative_base()


async def init_db():
    """데이터베이스 초기화"""
    # 모델 등록
    import infrastructure.persistence.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """비동기 세션 의존성"""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


def make_session_scope(factory: async_sessionmaker):
    """주어진 세션 팩토리로 트랜잭션 컨텍스트 매니저를 만든다"""

    @asynccontextmanager
    async def session_scope():
        async with factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise
            finally:
                await session.close()

    return session_scope


get_db_session = make_session_scope(async_session_factory)
