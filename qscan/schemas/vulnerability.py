"""취약점 관련 요청/응답 스키마"""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

Severity = Literal["critical", "high", "medium", "low", "info"]


class VulnerabilityCreate(BaseModel):
    """스캔 완료 시 전달되는 탐지 결과 1건"""

    title: str = Field(min_length=1)
    description: str = ""
    severity: Severity
    file_path: str = Field(min_length=1)
    start_line: int | None = Field(default=None, ge=0)
    end_line: int | None = Field(default=None, ge=0)
    code_snippet: str | None = None
    recommendation: str | None = None
    workaround: str | None = None
    cve_id: str | None = None
    cvss_score: str | None = None
    pqc_category: str | None = None
    detected_by: str = "manual"
    details: dict[str, Any] | None = None


class VulnerabilityResponse(BaseModel):
    """취약점 응답"""

    id: str
    scan_id: str
    repository_id: str
    cve_id: str | None
    title: str
    description: str
    severity: str
    status: str
    file_path: str
    start_line: int | None
    end_line: int | None
    code_snippet: str | None
    recommendation: str | None
    workaround: str | None
    cvss_score: str | None
    pqc_category: str | None
    detected_by: str
    details: dict[str, Any] | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
