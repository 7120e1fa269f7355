"""리포트 서비스 — CBOM / VDR 리포트 저장, 조회, 다운로드 본문 생성

리포트 본문(content)은 외부에서 생성된 JSON 문서로, 이 서비스는 해석하지 않는다.
pdf 포맷은 실제 PDF를 만들지 않고 plain-text 요약을 반환한다 (축소 모드).
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from qscan.errors import NotFoundError, ValidationError
from qscan.models.report import CBOMReport, VDRReport
from qscan.models.repository import Repository
from qscan.models.scan import Scan
from qscan.models.vulnerability import Vulnerability

logger = logging.getLogger(__name__)

REPORT_KINDS = ("cbom", "vdr")
REPORT_FORMATS = ("json", "pdf")
PDF_UNAVAILABLE_NOTICE = "Full PDF rendering is not available in this deployment"
UNKNOWN_REPOSITORY = "Unknown Repository"

_KEY_LABELS = {"cbom": "Scan ID", "vdr": "Vulnerability ID"}


@dataclass
class ReportDownload:
    """다운로드 응답 본문과 헤더 정보"""

    content: str
    media_type: str
    filename: str


class ReportService:
    """CBOM / VDR 리포트 서비스."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    # ──────────────────────────────────────────────────────────────
    # 다운로드
    # ──────────────────────────────────────────────────────────────

    async def get_report(self, kind: str, key: str, fmt: str) -> ReportDownload:
        """리포트 다운로드 본문을 만든다.

        Args:
            kind: cbom (key = scan_id) 또는 vdr (key = vulnerability_id)
            key: 리포트 조회 키
            fmt: json 또는 pdf

        Returns:
            ReportDownload

        Raises:
            ValidationError: 지원하지 않는 kind / fmt
            NotFoundError: 리포트가 없을 때
        """
        if kind not in REPORT_KINDS:
            raise ValidationError(f"Unsupported report kind: {kind}")
        if fmt not in REPORT_FORMATS:
            raise ValidationError(
                f"Unsupported report format: {fmt}",
                details=f"supported formats: {', '.join(REPORT_FORMATS)}",
            )

        if kind == "cbom":
            report = await self.get_cbom_report(key)
            repository_name = await self._repository_name(report.repository_id)
        else:
            report = await self.get_vdr_report(key)
            repository_name = await self._repository_name_for_vulnerability(key)

        if fmt == "json":
            return ReportDownload(
                content=json.dumps(report.content, ensure_ascii=False),
                media_type="application/json",
                filename=f"{kind}-report-{key}.json",
            )

        return ReportDownload(
            content=render_text_report(kind, key, repository_name, report.created_at, report.content),
            media_type="text/plain; charset=utf-8",
            filename=f"{kind}-report-{key}.txt",
        )

    # ──────────────────────────────────────────────────────────────
    # CBOM
    # ──────────────────────────────────────────────────────────────

    async def list_cbom_reports(self) -> list[CBOMReport]:
        result = await self.db.execute(
            select(CBOMReport).order_by(CBOMReport.created_at.desc())
        )
        return list(result.scalars().all())

    async def get_cbom_report(self, scan_id: str) -> CBOMReport:
        """scan_id의 최신 CBOM 리포트.

        Raises:
            NotFoundError: 리포트가 없을 때
        """
        result = await self.db.execute(
            select(CBOMReport)
            .where(CBOMReport.scan_id == scan_id)
            .order_by(CBOMReport.created_at.desc())
            .limit(1)
        )
        report = result.scalar_one_or_none()
        if report is None:
            raise NotFoundError("CBOM report not found", details=scan_id)
        return report

    async def store_cbom_report(
        self,
        scan_id: str,
        content,
        bom_format: str = "CycloneDX",
        spec_version: str = "1.6",
    ) -> CBOMReport:
        """스캔에 대한 CBOM 리포트를 저장한다. repository_id는 스캔에서 가져온다.

        Raises:
            NotFoundError: 스캔이 없을 때
        """
        scan = await self.db.get(Scan, scan_id)
        if scan is None:
            raise NotFoundError("Scan not found", details=scan_id)

        report = CBOMReport(
            repository_id=scan.repository_id,
            scan_id=scan.id,
            bom_format=bom_format,
            spec_version=spec_version,
            content=content,
        )
        self.db.add(report)
        await self.db.flush()
        logger.info(f"[ReportService] CBOM 리포트 저장: id={report.id}, scan_id={scan_id}")
        return report

    # ──────────────────────────────────────────────────────────────
    # VDR
    # ──────────────────────────────────────────────────────────────

    async def list_vdr_reports(self) -> list[VDRReport]:
        result = await self.db.execute(
            select(VDRReport).order_by(VDRReport.created_at.desc())
        )
        return list(result.scalars().all())

    async def get_vdr_report(self, vulnerability_id: str) -> VDRReport:
        """vulnerability_id가 정확히 일치하는 최신 VDR 리포트.

        Raises:
            NotFoundError: 리포트가 없을 때
        """
        result = await self.db.execute(
            select(VDRReport)
            .where(VDRReport.vulnerability_id == vulnerability_id)
            .order_by(VDRReport.created_at.desc())
            .limit(1)
        )
        report = result.scalar_one_or_none()
        if report is None:
            raise NotFoundError("VDR report not found", details=vulnerability_id)
        return report

    async def store_vdr_report(
        self,
        vulnerability_id: str,
        content,
        bom_format: str = "CycloneDX",
        spec_version: str = "1.6",
        vex_status: str | None = "not_affected",
    ) -> VDRReport:
        """취약점에 대한 VDR 리포트를 저장한다.

        Raises:
            NotFoundError: 취약점이 없을 때
        """
        vulnerability = await self.db.get(Vulnerability, vulnerability_id)
        if vulnerability is None:
            raise NotFoundError("Vulnerability not found", details=vulnerability_id)

        report = VDRReport(
            vulnerability_id=vulnerability.id,
            bom_format=bom_format,
            spec_version=spec_version,
            vex_status=vex_status,
            content=content,
        )
        self.db.add(report)
        await self.db.flush()
        logger.info(
            f"[ReportService] VDR 리포트 저장: id={report.id}, vulnerability_id={vulnerability_id}"
        )
        return report

    # ---- 내부 헬퍼 ----

    async def _repository_name(self, repository_id: str | None) -> str:
        if not repository_id:
            return UNKNOWN_REPOSITORY
        repository = await self.db.get(Repository, repository_id)
        return repository.name if repository is not None else UNKNOWN_REPOSITORY

    async def _repository_name_for_vulnerability(self, vulnerability_id: str) -> str:
        vulnerability = await self.db.get(Vulnerability, vulnerability_id)
        if vulnerability is None:
            return UNKNOWN_REPOSITORY
        return await self._repository_name(vulnerability.repository_id)


def render_text_report(
    kind: str,
    key: str,
    repository_name: str,
    generated_at: datetime,
    content,
) -> str:
    """pdf 요청에 대한 plain-text 요약을 만든다."""
    lines = [
        f"{kind.upper()} Report - {repository_name}",
        f"Generated: {generated_at.isoformat()}",
        f"{_KEY_LABELS[kind]}: {key}",
        "",
        "Summary:",
        json.dumps(content, indent=2, ensure_ascii=False),
        "",
        f"Note: {PDF_UNAVAILABLE_NOTICE}. Download the JSON format for the complete report.",
        "",
    ]
    return "\n".join(lines)
