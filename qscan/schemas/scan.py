"""스캔 관련 요청/응답 스키마"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from qscan.schemas.vulnerability import VulnerabilityCreate, VulnerabilityResponse


class ScanConfig(BaseModel):
    """스캔 설정"""

    tools: list[str] = Field(default_factory=lambda: ["semgrep"], description="실행할 스캐너")
    languages: list[str] = Field(default_factory=list, description="대상 언어")
    custom_rules: list[str] = Field(default_factory=list, description="사용자 정의 규칙 (줄 단위)")


class ScanCreateRequest(BaseModel):
    """스캔 생성 요청"""

    # 빈 문자열은 서비스 계층에서 ValidationError로 처리
    repository_id: str = Field(description="대상 저장소 ID")
    branch: str | None = Field(default=None, description="대상 브랜치 (기본: main)")
    scan_config: ScanConfig | None = None


class ScanResponse(BaseModel):
    """스캔 응답"""

    id: str
    repository_id: str
    branch: str
    status: Literal["pending", "scanning", "completed", "failed"]
    progress: int
    started_at: datetime | None
    completed_at: datetime | None
    error_message: str | None
    total_files: int
    integration_id: str | None
    scan_config: dict | None
    created_at: datetime

    model_config = {"from_attributes": True}


class ScanCreatedResponse(BaseModel):
    """스캔 생성 결과 (작업 추적용 job_id 포함)"""

    scan: ScanResponse
    job_id: str


class ScanProgressRequest(BaseModel):
    """진행률 보고. 범위를 벗어난 값은 거부하지 않고 보정한다."""

    progress: int


class ScanCompleteRequest(BaseModel):
    """스캔 완료 보고"""

    total_files: int = Field(default=0, ge=0)
    vulnerabilities: list[VulnerabilityCreate] = Field(default_factory=list)


class ScanFailRequest(BaseModel):
    """스캔 실패 보고"""

    error_message: str = Field(min_length=1)


class ScanStats(BaseModel):
    """심각도별 취약점 수"""

    total: int = 0
    critical: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0
    info: int = 0


class ScanResultsResponse(BaseModel):
    """스캔 결과 (스캔 + 취약점 + 통계)"""

    scan: ScanResponse
    vulnerabilities: list[VulnerabilityResponse]
    stats: ScanStats
