"""외부 연동(Integration) 요청/응답 스키마"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class IntegrationCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    type: str = Field(min_length=1, max_length=50, description="github_actions / jenkins / sonarqube / api_key")
    config: dict[str, Any] | None = None


class IntegrationUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    config: dict[str, Any] | None = None
    is_active: bool | None = None


class IntegrationResponse(BaseModel):
    """연동 응답. API Key는 CI 설정에 복사할 수 있도록 노출한다."""

    id: str
    name: str
    type: str
    api_key: str
    config: dict[str, Any] | None
    is_active: bool
    last_used: datetime | None
    created_at: datetime

    model_config = {"from_attributes": True}
