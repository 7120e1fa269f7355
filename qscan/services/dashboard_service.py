"""대시보드 집계 서비스"""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from qscan.models.repository import Repository
from qscan.models.scan import Scan
from qscan.models.vulnerability import SEVERITIES, Vulnerability

RECENT_SCAN_LIMIT = 5


class DashboardService:
    """대시보드 요약 통계를 계산한다."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get_stats(self) -> dict:
        """대시보드 통계.

        Returns:
            critical_vulnerabilities, quantum_vulnerable, pqc_compliant, active_scans,
            total_repositories, total_scans, total_vulnerabilities,
            severity_distribution, recent_scans
        """
        severity_rows = await self.db.execute(
            select(Vulnerability.severity, func.count()).group_by(Vulnerability.severity)
        )
        severity_distribution = {severity: 0 for severity in SEVERITIES}
        for severity, count in severity_rows.all():
            severity_distribution[severity] = count

        category_rows = await self.db.execute(
            select(Vulnerability.pqc_category, func.count())
            .where(Vulnerability.pqc_category.is_not(None))
            .group_by(Vulnerability.pqc_category)
        )
        categories = dict(category_rows.all())

        active_scans = await self._count(
            select(func.count()).select_from(Scan).where(Scan.status.in_(["pending", "scanning"]))
        )
        total_repositories = await self._count(select(func.count()).select_from(Repository))
        total_scans = await self._count(select(func.count()).select_from(Scan))

        recent = await self.db.execute(
            select(Scan).order_by(Scan.created_at.desc()).limit(RECENT_SCAN_LIMIT)
        )

        return {
            "critical_vulnerabilities": severity_distribution["critical"],
            "quantum_vulnerable": categories.get("quantum_vulnerable", 0),
            "pqc_compliant": categories.get("pqc_compliant", 0),
            "active_scans": active_scans,
            "total_repositories": total_repositories,
            "total_scans": total_scans,
            "total_vulnerabilities": sum(severity_distribution.values()),
            "severity_distribution": severity_distribution,
            "recent_scans": list(recent.scalars().all()),
        }

    async def _count(self, query) -> int:
        result = await self.db.execute(query)
        return result.scalar_one()
