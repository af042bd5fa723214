"""
IMEI 언락 리셀러 백엔드 설정
"""
from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """애플리케이션 설정"""

    # 앱 기본 설정
    APP_NAME: str = "IMEI 언락 서비스 백엔드"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    PRODUCTION: bool = False

    # 서버 설정
    HOST: str = "0.0.0.0"
    PORT: int = 3000
    BACKEND_BASE_URL: str = "http://localhost:3000"

    # 데이터베이스 설정
    DB_URL: str = "sqlite+aiosqlite:///./data/unlock.db"

    # JWT 설정
    SECRET_KEY: str = "dev_secret_change_me_32chars_minimum"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 120

    # 게이트웨이 키 암호화 (비어 있으면 SECRET_KEY에서 파생)
    CREDENTIALS_ENCRYPTION_KEY: str = ""

    # DHRU 설정
    DHRU_API_URL: str = "https://gsmiair.com"
    DHRU_USERNAME: str = "testdhru"
    DHRU_API_KEY: str = ""
    DHRU_ORDER_USERNAME: str = "AungThu"
    DHRU_TIMEOUT: float = 30.0

    # NOWPayments 설정
    NOWPAYMENTS_API_KEY: str = ""
    NOWPAYMENTS_IPN_SECRET: str = ""
    NOWPAYMENTS_API_URL: str = "https://api.nowpayments.io/v1"
    NOWPAYMENTS_TIMEOUT: float = 30.0

    # 주문 배치(place) 선점 만료 시간 (초)
    ORDER_PLACEMENT_CLAIM_TTL: int = 120

    # CORS / API 보호 설정
    CORS_ORIGINS: list = [
        "http://localhost:8080",
        "http://localhost:8081",
        "http://127.0.0.1:8080",
        "http://localhost:5173",
    ]
    DEV_ORIGINS: list = [
        "http://localhost:8080",
        "http://localhost:8081",
        "http://127.0.0.1:8080",
        "http://localhost:5173",
        "http://localhost:8085",
    ]
    IPN_CALLBACK_PATHS: list = [
        "/api/deposits/ipn-callback",
        "/api/payments/nowpayments/ipn-callback",
        "/api/nowpayments/ipn-callback",
    ]

    # 인증 엔드포인트 rate limit
    RATE_LIMIT_WINDOW_SECONDS: int = 15 * 60
    RATE_LIMIT_MAX_AUTH_REQUESTS: int = 20
    RATE_LIMIT_MAX_SIGNUP_REQUESTS: int = 100

    # 로깅 설정
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "./logs/app.log"

    class Config:
        env_file = ".env.backend"
        case_sensitive = True
        env_file_encoding = "utf-8"


@lru_cache()
def get_settings() -> Settings:
    """설정 싱글톤 반환"""
    return Settings()


# 설정 인스턴스
settings = get_settings()
