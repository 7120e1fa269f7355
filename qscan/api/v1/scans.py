"""스캔 관련 엔드포인트"""

import logging

from fastapi import APIRouter, Query, status
from redis.exceptions import RedisError
from sqlalchemy.ext.asyncio import AsyncSession

from qscan.api.deps import DbSession, OptionalIntegration
from qscan.config import get_settings
from qscan.models.repository import Repository
from qscan.models.scan import Scan
from qscan.schemas.common import ApiResponse
from qscan.schemas.scan import (
    ScanCompleteRequest,
    ScanCreatedResponse,
    ScanCreateRequest,
    ScanFailRequest,
    ScanProgressRequest,
    ScanResponse,
    ScanResultsResponse,
    ScanStats,
)
from qscan.schemas.vulnerability import VulnerabilityResponse
from qscan.services.scan_dispatcher import enqueue_scan_job
from qscan.services.scan_orchestrator import ScanOrchestrator

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# 헬퍼 함수
# ---------------------------------------------------------------------------

async def dispatch_scan(db: AsyncSession, scan: Scan) -> None:
    """큐가 활성화된 경우 스캔을 워커로 보낸다.

    워커가 스캔 행을 볼 수 있도록 먼저 커밋한다.
    큐 등록 실패는 호출자에게 던지지 않고 스캔을 failed로 기록한다.
    """
    if not get_settings().SCAN_QUEUE_ENABLED:
        return

    await db.commit()
    repository = await db.get(Repository, scan.repository_id)
    try:
        enqueue_scan_job(scan, repository)
    except RedisError as e:
        logger.error(f"[Scans] 큐 등록 실패: scan_id={scan.id}, error={e}")
        await ScanOrchestrator(db).fail_scan(scan.id, f"Failed to enqueue scan: {e}")


def _created(scan: Scan, job_id: str) -> ApiResponse[ScanCreatedResponse]:
    return ApiResponse(
        success=True,
        data=ScanCreatedResponse(scan=ScanResponse.model_validate(scan), job_id=job_id),
    )


def _ok(scan: Scan) -> ApiResponse[ScanResponse]:
    return ApiResponse(success=True, data=ScanResponse.model_validate(scan))


# ---------------------------------------------------------------------------
# 엔드포인트
# ---------------------------------------------------------------------------

@router.get("", response_model=ApiResponse[list[ScanResponse]])
async def list_scans(
    db: DbSession,
    repository_id: str | None = Query(default=None, description="저장소 필터"),
    status_filter: str | None = Query(default=None, alias="status", description="상태 필터"),
) -> ApiResponse[list[ScanResponse]]:
    """스캔 목록 (최신순)"""
    scans = await ScanOrchestrator(db).list_scans(repository_id=repository_id, status=status_filter)
    return ApiResponse(success=True, data=[ScanResponse.model_validate(s) for s in scans])


@router.post(
    "",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=ApiResponse[ScanCreatedResponse],
)
async def create_scan(
    request: ScanCreateRequest,
    db: DbSession,
    integration: OptionalIntegration,
) -> ApiResponse[ScanCreatedResponse]:
    """스캔 생성.

    스캔을 pending 상태로 만들고 작업 추적용 job_id를 함께 반환한다.
    Bearer API Key가 활성 연동과 일치하면 integration_id를 기록한다.
    """
    orchestrator = ScanOrchestrator(db)
    scan, job_id = await orchestrator.create_scan(
        repository_id=request.repository_id,
        branch=request.branch,
        scan_config=request.scan_config.model_dump() if request.scan_config else None,
        integration_id=integration.id if integration is not None else None,
    )
    await dispatch_scan(db, scan)
    return _created(scan, job_id)


@router.get("/{scan_id}", response_model=ApiResponse[ScanResponse])
async def get_scan(scan_id: str, db: DbSession) -> ApiResponse[ScanResponse]:
    """스캔 1건 조회 (진행률 폴링용)"""
    return _ok(await ScanOrchestrator(db).get_scan(scan_id))


@router.get("/{scan_id}/results", response_model=ApiResponse[ScanResultsResponse])
async def get_scan_results(scan_id: str, db: DbSession) -> ApiResponse[ScanResultsResponse]:
    """스캔 + 탐지 취약점 + 심각도별 통계"""
    results = await ScanOrchestrator(db).get_scan_results(scan_id)
    return ApiResponse(
        success=True,
        data=ScanResultsResponse(
            scan=ScanResponse.model_validate(results.scan),
            vulnerabilities=[VulnerabilityResponse.model_validate(v) for v in results.vulnerabilities],
            stats=ScanStats(**results.stats),
        ),
    )


@router.post("/{scan_id}/start", response_model=ApiResponse[ScanResponse])
async def start_scan(scan_id: str, db: DbSession) -> ApiResponse[ScanResponse]:
    return _ok(await ScanOrchestrator(db).start_scan(scan_id))


@router.post("/{scan_id}/progress", response_model=ApiResponse[ScanResponse])
async def advance_progress(
    scan_id: str,
    request: ScanProgressRequest,
    db: DbSession,
) -> ApiResponse[ScanResponse]:
    """진행률 보고. 범위를 벗어난 값은 [0, 100]으로 보정된다."""
    return _ok(await ScanOrchestrator(db).advance_progress(scan_id, request.progress))


@router.post("/{scan_id}/complete", response_model=ApiResponse[ScanResponse])
async def complete_scan(
    scan_id: str,
    request: ScanCompleteRequest,
    db: DbSession,
) -> ApiResponse[ScanResponse]:
    scan = await ScanOrchestrator(db).complete_scan(
        scan_id,
        total_files=request.total_files,
        vulnerabilities=request.vulnerabilities,
    )
    return _ok(scan)


@router.post("/{scan_id}/fail", response_model=ApiResponse[ScanResponse])
async def fail_scan(
    scan_id: str,
    request: ScanFailRequest,
    db: DbSession,
) -> ApiResponse[ScanResponse]:
    return _ok(await ScanOrchestrator(db).fail_scan(scan_id, request.error_message))


@router.post("/{scan_id}/cancel", response_model=ApiResponse[ScanResponse])
async def cancel_scan(scan_id: str, db: DbSession) -> ApiResponse[ScanResponse]:
    return _ok(await ScanOrchestrator(db).cancel_scan(scan_id))


@router.post(
    "/{scan_id}/retry",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=ApiResponse[ScanCreatedResponse],
)
async def retry_scan(scan_id: str, db: DbSession) -> ApiResponse[ScanCreatedResponse]:
    """실패한 스캔을 같은 설정의 새 스캔으로 다시 실행한다."""
    scan, job_id = await ScanOrchestrator(db).retry_scan(scan_id)
    await dispatch_scan(db, scan)
    return _created(scan, job_id)
