"""
IMEI 언락 리셀러 백엔드 - FastAPI 메인 애플리케이션
"""
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from config import settings
from infrastructure.persistence.database import init_db
from api.errors import register_exception_handlers
from api.middleware import ApiProtectionMiddleware, AuthRateLimitMiddleware, SecurityHeadersMiddleware
from api.routers import admin, auth, deposits, funds, health, nowpayments, orders, payment_gateways, payments

# 로깅 설정
os.makedirs(os.path.dirname(settings.LOG_FILE) or ".", exist_ok=True)
logger.add(
    settings.LOG_FILE,
    rotation="10 MB",
    retention="30 days",
    level=settings.LOG_LEVEL
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """애플리케이션 수명 주기 관리"""
    logger.info("서비스 시작...")
    await init_db()
    logger.info("데이터베이스 초기화 완료")

    yield

    logger.info("서비스 종료...")


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="IMEI 언락/체크 주문, 잔액, NOWPayments 입금 처리",
        lifespan=lifespan
    )

    # 마지막에 추가한 미들웨어가 가장 바깥에서 실행된다
    app.add_middleware(ApiProtectionMiddleware)
    app.add_middleware(AuthRateLimitMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    for module in (health, auth, orders, funds, deposits, payments, nowpayments, payment_gateways, admin):
        app.include_router(module.router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG
    )
