"""도메인 예외 → HTTP 응답 변환"""
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from loguru import logger

from domain.exceptions import DomainError


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    if exc.http_status >= 500:
        logger.error(f"{request.method} {request.url.path} 처리 실패: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} -> {exc.http_status}: {exc.message}")
    return JSONResponse(status_code=exc.http_status, content={"success": False, "error": exc.message})


async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"{request.method} {request.url.path} 처리 중 예기치 못한 오류")
    return JSONResponse(status_code=500, content={"success": False, "error": "서버 오류가 발생했습니다."})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainError, domain_error_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)
