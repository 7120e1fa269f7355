"""CBOM / VDR 리포트 요청/응답 스키마"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class CBOMReportCreateRequest(BaseModel):
    """CBOM 리포트 저장 요청. content는 해석하지 않고 그대로 저장한다."""

    scan_id: str = Field(min_length=1)
    content: Any
    bom_format: str = "CycloneDX"
    spec_version: str = "1.6"


class VDRReportCreateRequest(BaseModel):
    """VDR 리포트 저장 요청"""

    vulnerability_id: str = Field(min_length=1)
    content: Any
    bom_format: str = "CycloneDX"
    spec_version: str = "1.6"
    vex_status: str | None = "not_affected"


class CBOMReportResponse(BaseModel):
    id: str
    repository_id: str
    scan_id: str | None
    bom_format: str
    spec_version: str
    content: Any
    created_at: datetime

    model_config = {"from_attributes": True}


class VDRReportResponse(BaseModel):
    id: str
    vulnerability_id: str
    bom_format: str
    spec_version: str
    vex_status: str | None
    content: Any
    created_at: datetime

    model_config = {"from_attributes": True}
