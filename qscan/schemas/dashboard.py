"""대시보드 응답 스키마"""

from pydantic import BaseModel

from qscan.schemas.scan import ScanResponse


class DashboardStats(BaseModel):
    """대시보드 요약 통계"""

    critical_vulnerabilities: int
    # pqc_category 기준
    quantum_vulnerable: int
    pqc_compliant: int
    # pending + scanning
    active_scans: int
    total_repositories: int
    total_scans: int
    total_vulnerabilities: int
    # 심각도별 분포: critical / high / medium / low / info
    severity_distribution: dict[str, int]
    # 최근 5건 스캔 목록
    recent_scans: list[ScanResponse]
