"""헬스체크 엔드포인트"""
import asyncio
import shutil

from fastapi import APIRouter
from sqlalchemy import text

from qscan.config import get_settings
from qscan.db import get_database
from qscan.services.external_scanner import ExternalScanner
from qscan.services.scan_dispatcher import get_scan_queue

router = APIRouter()

_APP_VERSION = "1.0.0"


@router.get("/health", tags=["system"])
async def health() -> dict[str, str]:
    """기본 헬스체크 (로드밸런서, 컨테이너 probe용)"""
    settings = get_settings()
    return {
        "status": "ok",
        "app": settings.APP_NAME,
        "env": settings.APP_ENV,
    }


def _queue_depth() -> int:
    return get_scan_queue().count


@router.get("/health/detailed", tags=["system"])
async def health_detailed() -> dict[str, object]:
    """DB, 스캔 큐, 스캐너 CLI 상태를 포함한 상세 헬스체크.

    - database: SELECT 1 실행 결과
    - scan_queue: 대기 작업 수 (SCAN_QUEUE_ENABLED일 때만 확인)
    - scanners: API 프로세스 PATH에서 CLI를 찾을 수 있는지 (정보용, 전체 상태에 미반영)
    - status: database와 scan_queue가 모두 정상이면 "ok", 아니면 "degraded"
    """
    settings = get_settings()
    checks: dict[str, str] = {}

    try:
        async with get_database().session() as session:
            await session.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except Exception as exc:
        checks["database"] = f"error: {str(exc)[:50]}"

    queued: int | None = None
    if settings.SCAN_QUEUE_ENABLED:
        try:
            queued = await asyncio.to_thread(_queue_depth)
            checks["scan_queue"] = "ok"
        except Exception as exc:
            checks["scan_queue"] = f"error: {str(exc)[:50]}"
    else:
        checks["scan_queue"] = "disabled"

    scanners = {
        tool: "available" if shutil.which(tool) else "missing"
        for tool in ExternalScanner.SUPPORTED_TOOLS
    }

    overall = "ok" if all(v in ("ok", "disabled") for v in checks.values()) else "degraded"
    return {
        "status": overall,
        "checks": checks,
        "queued_jobs": queued,
        "scanners": scanners,
        "version": _APP_VERSION,
    }
