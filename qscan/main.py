"""FastAPI 앱 진입점 — CORS, 라우터, 예외 핸들러, lifespan 이벤트 핸들러 설정"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import InterfaceError, OperationalError

from qscan.api.v1.health import router as health_router
from qscan.api.v1.router import api_router
from qscan.config import get_settings
from qscan.db import close_database
from qscan.errors import AppError
from qscan.middleware.logging_middleware import LoggingMiddleware
from qscan.schemas.common import ErrorResponse

settings = get_settings()

# 구조화 로깅 기본 설정
logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)

logger = logging.getLogger("qscan")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """앱 생명주기 이벤트 핸들러.

    startup: 로그만 남긴다 (DB 엔진은 첫 요청 시 생성)
    shutdown: DB 연결 풀 정리
    """
    # ---- startup ----
    logger.info("[%s] 서버 시작 중... (env=%s)", settings.APP_NAME, settings.APP_ENV)

    yield

    # ---- shutdown ----
    await close_database()
    logger.info("[%s] 서버 종료", settings.APP_NAME)


# ---------------------------------------------------------------------------
# 예외 핸들러
# ---------------------------------------------------------------------------

def _error_response(status_code: int, error: str, error_code: str, details=None) -> JSONResponse:
    content = ErrorResponse(error=error, error_code=error_code, details=details).model_dump()
    if details is None:
        content.pop("details")
    return JSONResponse(status_code=status_code, content=content)


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """도메인 예외 -> 상태 코드 + 표준 에러 본문"""
    if exc.status_code >= 500:
        logger.error(f"[{exc.error_code}] {request.method} {request.url.path}: {exc.message} ({exc.details})")
    else:
        logger.warning(f"[{exc.error_code}] {request.method} {request.url.path}: {exc.message}")
    return _error_response(exc.status_code, exc.message, exc.error_code, exc.details)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """요청 스키마 검증 실패 -> 400"""
    details = [
        {
            "loc": [str(part) for part in error.get("loc", ())],
            "msg": error.get("msg", ""),
            "type": error.get("type", ""),
        }
        for error in exc.errors()
    ]
    logger.warning(f"[VALIDATION_ERROR] {request.method} {request.url.path}: {len(details)} field error(s)")
    return _error_response(400, "Validation failed", "VALIDATION_ERROR", details)


async def database_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """DB 연결 실패 -> 503"""
    logger.error(f"[STORE_UNAVAILABLE] {request.method} {request.url.path}: {exc!r}")
    return _error_response(503, "Database connection error", "STORE_UNAVAILABLE")


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """예상하지 못한 예외 -> 500 (내부 정보 미노출)"""
    logger.exception(f"[INTERNAL_ERROR] {request.method} {request.url.path}", exc_info=exc)
    return _error_response(500, "Internal server error", "INTERNAL_ERROR")


def create_app() -> FastAPI:
    """FastAPI 앱 팩토리"""
    app = FastAPI(
        title=settings.APP_NAME,
        version="1.0.0",
        description="소스코드 저장소의 양자 내성 암호(PQC) 취약점 스캔 및 CBOM/VDR 리포트 API",
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
        lifespan=lifespan,
    )

    # CORS 미들웨어 설정
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # 구조화 로깅 미들웨어 (CORS 다음에 등록, 실제 요청만 로깅)
    app.add_middleware(LoggingMiddleware)

    # 예외 핸들러
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(OperationalError, database_error_handler)
    app.add_exception_handler(InterfaceError, database_error_handler)
    app.add_exception_handler(ConnectionRefusedError, database_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    # 헬스체크 라우터 등록 (prefix 없이 최상위 경로)
    app.include_router(health_router)

    # API 라우터 등록
    app.include_router(api_router, prefix="/api")

    return app


app = create_app()
