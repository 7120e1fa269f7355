"""취약점 조회 엔드포인트 (읽기 전용)"""

from fastapi import APIRouter, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from qscan.api.deps import DbSession
from qscan.errors import NotFoundError
from qscan.models.vulnerability import Vulnerability
from qscan.schemas.common import ApiResponse
from qscan.schemas.vulnerability import VulnerabilityResponse

router = APIRouter()


# ---------------------------------------------------------------------------
# DB 헬퍼 함수
# ---------------------------------------------------------------------------

async def get_vulnerabilities(
    db: AsyncSession,
    scan_id: str | None = None,
    repository_id: str | None = None,
    severity: str | None = None,
) -> list[Vulnerability]:
    """필터 조건으로 취약점 목록을 조회한다 (최신순)."""
    query = select(Vulnerability)
    if scan_id:
        query = query.where(Vulnerability.scan_id == scan_id)
    if repository_id:
        query = query.where(Vulnerability.repository_id == repository_id)
    if severity:
        query = query.where(Vulnerability.severity == severity)
    result = await db.execute(query.order_by(Vulnerability.created_at.desc()))
    return list(result.scalars().all())


# ---------------------------------------------------------------------------
# 엔드포인트
# ---------------------------------------------------------------------------

@router.get("", response_model=ApiResponse[list[VulnerabilityResponse]])
async def list_vulnerabilities(
    db: DbSession,
    scan_id: str | None = Query(default=None),
    repository_id: str | None = Query(default=None),
    severity: str | None = Query(default=None),
) -> ApiResponse[list[VulnerabilityResponse]]:
    vulnerabilities = await get_vulnerabilities(
        db, scan_id=scan_id, repository_id=repository_id, severity=severity
    )
    return ApiResponse(
        success=True,
        data=[VulnerabilityResponse.model_validate(v) for v in vulnerabilities],
    )


@router.get("/{vulnerability_id}", response_model=ApiResponse[VulnerabilityResponse])
async def get_vulnerability(
    vulnerability_id: str,
    db: DbSession,
) -> ApiResponse[VulnerabilityResponse]:
    vulnerability = await db.get(Vulnerability, vulnerability_id)
    if vulnerability is None:
        raise NotFoundError("Vulnerability not found", details=vulnerability_id)
    return ApiResponse(success=True, data=VulnerabilityResponse.model_validate(vulnerability))
