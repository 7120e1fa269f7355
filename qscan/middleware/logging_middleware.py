"""요청/응답 구조화 로깅 미들웨어"""
import json
import logging
import time
import uuid

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger("qscan.access")

# 헬스체크 probe는 기록하지 않는다
_SKIP_PATHS = {"/health", "/health/detailed"}

# 값을 기록하지 않는 헤더
_SENSITIVE_HEADERS = ("authorization", "x-api-key")


def mask_headers(raw_headers) -> dict[str, str]:
    """민감 헤더 값을 가린 사본을 만든다."""
    headers = {k.lower(): v for k, v in dict(raw_headers).items()}
    for name in _SENSITIVE_HEADERS:
        if name in headers:
            headers[name] = "***"
    return headers


def _caller(headers: dict[str, str]) -> str:
    """호출 주체 구분: 연동 API Key / 사용자 헤더 / 익명"""
    if headers.get("authorization", "").startswith("***"):
        return "integration"
    if headers.get("x-user-id"):
        return f"user:{headers['x-user-id']}"
    return "anonymous"


class LoggingMiddleware(BaseHTTPMiddleware):
    """요청마다 JSON 한 줄짜리 access 로그를 남긴다.

    Authorization / X-Api-Key 값은 기록하지 않고, 응답에는 X-Request-ID를 붙인다.
    상태 코드 400 이상은 WARNING으로 기록한다.
    """

    async def dispatch(self, request: Request, call_next: object) -> Response:
        if request.url.path in _SKIP_PATHS:
            return await call_next(request)  # type: ignore[operator]

        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex[:12]
        headers = mask_headers(request.headers)
        started = time.perf_counter()

        response: Response = await call_next(request)  # type: ignore[operator]

        entry = {
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "query": request.url.query or None,
            "status_code": response.status_code,
            "duration_ms": round((time.perf_counter() - started) * 1000, 2),
            "client_ip": request.client.host if request.client else None,
            "caller": _caller(headers),
        }

        level = logging.WARNING if response.status_code >= 400 else logging.INFO
        logger.log(level, json.dumps(entry))

        response.headers["X-Request-ID"] = request_id
        return response
