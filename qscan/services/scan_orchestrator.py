"""스캔 오케스트레이터 — 스캔 생성, 상태 전이, 결과 저장

상태 머신:
    pending -> scanning -> completed
    pending -> failed
    scanning -> failed

터미널 상태(completed / failed)에서는 어떤 전이도 허용하지 않는다.
상태 머신 위반은 재시도 없이 InvalidStateError로 호출자에게 전달된다.
"""

import logging
from collections import Counter
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from qscan.errors import InvalidStateError, NotFoundError, ValidationError
from qscan.models.base import utcnow
from qscan.models.repository import Repository
from qscan.models.scan import Scan
from qscan.models.vulnerability import SEVERITIES, Vulnerability
from qscan.schemas.vulnerability import VulnerabilityCreate

logger = logging.getLogger(__name__)

DEFAULT_BRANCH = "main"
CANCELLED_MESSAGE = "Scan cancelled by user"


def job_id_for(scan_id: str) -> str:
    """스캔 ID에서 파생한 작업 추적용 핸들"""
    return f"job-{scan_id}"


@dataclass
class ScanResults:
    """스캔 결과 묶음"""

    scan: Scan
    vulnerabilities: list[Vulnerability]
    stats: dict[str, int]


class ScanOrchestrator:
    """스캔의 생명주기를 관리하는 오케스트레이터.

    역할:
    - 스캔 레코드 생성 (status=pending)
    - 상태 전이 (pending -> scanning -> completed / failed)
    - 완료 시 취약점 저장 및 저장소 last_scan_at 갱신
    - 실패한 스캔의 재실행 (새 스캔 생성)
    """

    def __init__(self, db: AsyncSession) -> None:
        """DB 세션을 주입받아 초기화한다."""
        self.db = db

    # ──────────────────────────────────────────────────────────────
    # 조회
    # ──────────────────────────────────────────────────────────────

    async def list_scans(
        self,
        repository_id: str | None = None,
        status: str | None = None,
    ) -> list[Scan]:
        """스캔 목록을 최신순으로 조회한다.

        Args:
            repository_id: 저장소 필터
            status: 상태 필터

        Returns:
            Scan 목록 (created_at 내림차순)
        """
        query = select(Scan)
        if repository_id:
            query = query.where(Scan.repository_id == repository_id)
        if status:
            query = query.where(Scan.status == status)
        query = query.order_by(Scan.created_at.desc())
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_scan(self, scan_id: str) -> Scan:
        """스캔을 조회한다.

        Raises:
            NotFoundError: 스캔이 없을 때
        """
        result = await self.db.execute(select(Scan).where(Scan.id == scan_id))
        scan = result.scalar_one_or_none()
        if scan is None:
            raise NotFoundError("Scan not found", details=scan_id)
        return scan

    async def _get_scan_for_update(self, scan_id: str) -> Scan:
        """상태 전이용으로 스캔 행을 잠그고 조회한다."""
        result = await self.db.execute(
            select(Scan).where(Scan.id == scan_id).with_for_update()
        )
        scan = result.scalar_one_or_none()
        if scan is None:
            raise NotFoundError("Scan not found", details=scan_id)
        return scan

    async def get_scan_results(self, scan_id: str) -> ScanResults:
        """스캔과 탐지된 취약점, 심각도별 통계를 반환한다."""
        scan = await self.get_scan(scan_id)
        result = await self.db.execute(
            select(Vulnerability)
            .where(Vulnerability.scan_id == scan_id)
            .order_by(Vulnerability.created_at.asc())
        )
        vulnerabilities = list(result.scalars().all())

        counts = Counter(v.severity for v in vulnerabilities)
        stats = {"total": len(vulnerabilities)}
        for severity in SEVERITIES:
            stats[severity] = counts.get(severity, 0)

        return ScanResults(scan=scan, vulnerabilities=vulnerabilities, stats=stats)

    # ──────────────────────────────────────────────────────────────
    # 생성
    # ──────────────────────────────────────────────────────────────

    async def create_scan(
        self,
        repository_id: str,
        branch: str | None = None,
        scan_config: dict | None = None,
        integration_id: str | None = None,
    ) -> tuple[Scan, str]:
        """새 스캔을 pending 상태로 생성한다.

        Args:
            repository_id: 대상 저장소 ID (필수)
            branch: 대상 브랜치 (생략 시 main)
            scan_config: 스캔 설정
            integration_id: 스캔을 요청한 Integration ID

        Returns:
            (생성된 Scan, job_id)

        Raises:
            ValidationError: repository_id가 비었거나 저장소가 없을 때
        """
        if not repository_id or not repository_id.strip():
            raise ValidationError("Repository ID is required")

        repository = await self.db.get(Repository, repository_id)
        if repository is None:
            raise ValidationError("Repository not found", details=repository_id)

        scan = Scan(
            repository_id=repository_id,
            branch=branch or DEFAULT_BRANCH,
            status="pending",
            progress=0,
            total_files=0,
            integration_id=integration_id,
            scan_config=scan_config,
        )
        self.db.add(scan)
        await self.db.flush()

        logger.info(f"[ScanOrchestrator] 스캔 생성: scan_id={scan.id}, repository_id={repository_id}")
        return scan, job_id_for(scan.id)

    # ──────────────────────────────────────────────────────────────
    # 상태 전이
    # ──────────────────────────────────────────────────────────────

    async def start_scan(self, scan_id: str) -> Scan:
        """pending -> scanning 전이.

        Raises:
            InvalidStateError: pending이 아닐 때
        """
        scan = await self._get_scan_for_update(scan_id)
        if scan.status != "pending":
            raise InvalidStateError(
                f"Cannot start scan in status '{scan.status}'", details=scan_id
            )
        scan.status = "scanning"
        scan.started_at = utcnow()
        await self.db.flush()
        logger.info(f"[ScanOrchestrator] 스캔 시작: scan_id={scan_id}")
        return scan

    async def advance_progress(self, scan_id: str, progress: int) -> Scan:
        """진행률을 갱신한다.

        범위를 벗어난 값은 [0, 100]으로 보정하고, 저장된 값보다 작은 값은 무시한다.

        Raises:
            InvalidStateError: scanning이 아닐 때 (진행률 변경 없음)
        """
        scan = await self._get_scan_for_update(scan_id)
        if scan.status != "scanning":
            raise InvalidStateError(
                f"Cannot update progress of scan in status '{scan.status}'",
                details=scan_id,
            )
        clamped = max(0, min(100, int(progress)))
        scan.progress = max(scan.progress, clamped)
        await self.db.flush()
        return scan

    async def complete_scan(
        self,
        scan_id: str,
        total_files: int,
        vulnerabilities: list[VulnerabilityCreate],
    ) -> Scan:
        """scanning -> completed 전이. 탐지 결과를 Vulnerability로 저장한다.

        이미 completed인 스캔에 다시 호출하면 아무것도 하지 않는다.

        Raises:
            InvalidStateError: pending 또는 failed일 때
        """
        scan = await self._get_scan_for_update(scan_id)
        if scan.status == "completed":
            logger.info(f"[ScanOrchestrator] 이미 완료된 스캔: scan_id={scan_id}")
            return scan
        if scan.status != "scanning":
            raise InvalidStateError(
                f"Cannot complete scan in status '{scan.status}'", details=scan_id
            )

        for finding in vulnerabilities:
            self.db.add(
                Vulnerability(
                    scan_id=scan.id,
                    repository_id=scan.repository_id,
                    **finding.model_dump(),
                )
            )

        now = utcnow()
        scan.status = "completed"
        scan.progress = 100
        scan.total_files = total_files
        scan.completed_at = now

        repository = await self.db.get(Repository, scan.repository_id)
        if repository is not None:
            repository.last_scan_at = now
            repository.updated_at = now

        await self.db.flush()
        logger.info(
            f"[ScanOrchestrator] 스캔 완료: scan_id={scan_id}, "
            f"files={total_files}, findings={len(vulnerabilities)}"
        )
        return scan

    async def fail_scan(self, scan_id: str, error_message: str) -> Scan:
        """pending | scanning -> failed 전이.

        Raises:
            InvalidStateError: 이미 터미널 상태일 때
        """
        scan = await self._get_scan_for_update(scan_id)
        if scan.is_terminal:
            raise InvalidStateError(
                f"Cannot fail scan in status '{scan.status}'", details=scan_id
            )
        scan.status = "failed"
        scan.error_message = error_message
        scan.completed_at = utcnow()
        await self.db.flush()
        logger.warning(f"[ScanOrchestrator] 스캔 실패: scan_id={scan_id}, error={error_message}")
        return scan

    async def cancel_scan(self, scan_id: str) -> Scan:
        """사용자 취소. 별도 상태 없이 failed로 기록한다."""
        return await self.fail_scan(scan_id, CANCELLED_MESSAGE)

    async def retry_scan(self, scan_id: str) -> tuple[Scan, str]:
        """실패한 스캔과 같은 설정으로 새 스캔을 생성한다.

        Raises:
            InvalidStateError: failed가 아닐 때
        """
        scan = await self.get_scan(scan_id)
        if scan.status != "failed":
            raise InvalidStateError(
                f"Only failed scans can be retried (status '{scan.status}')",
                details=scan_id,
            )
        return await self.create_scan(
            repository_id=scan.repository_id,
            branch=scan.branch,
            scan_config=scan.scan_config,
            integration_id=scan.integration_id,
        )
