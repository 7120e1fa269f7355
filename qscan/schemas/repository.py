"""저장소 관련 요청/응답 스키마"""

from datetime import datetime
from typing import Literal
from urllib.parse import urlparse

from pydantic import BaseModel, Field, field_validator

RepositoryProvider = Literal["github", "gitlab", "bitbucket", "local"]


def _check_url(value: str) -> str:
    """http(s) URL 또는 local provider용 경로만 허용한다."""
    value = value.strip()
    parsed = urlparse(value)
    if parsed.scheme in ("http", "https") and parsed.netloc:
        return value
    if parsed.scheme == "file" or value.startswith("/"):
        return value
    raise ValueError("url must be an http(s) URL or an absolute path")


class RepositoryCreateRequest(BaseModel):
    """저장소 등록 요청"""

    name: str = Field(min_length=1, max_length=255, description="저장소 표시 이름")
    url: str = Field(min_length=1, description="저장소 URL")
    provider: RepositoryProvider = Field(description="호스팅 provider")
    description: str | None = Field(default=None, description="설명")
    languages: list[str] = Field(default_factory=list, description="언어 목록")

    @field_validator("url")
    @classmethod
    def validate_url(cls, value: str) -> str:
        return _check_url(value)


class RepositoryUpdateRequest(BaseModel):
    """저장소 부분 수정 요청 (전달된 필드만 반영)"""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    url: str | None = None
    provider: RepositoryProvider | None = None
    description: str | None = None
    languages: list[str] | None = None

    @field_validator("name", "url", "provider", "languages")
    @classmethod
    def reject_null(cls, value):
        # 생략은 허용, 명시적 null은 NOT NULL 컬럼이라 거부
        if value is None:
            raise ValueError("field cannot be null")
        return value

    @field_validator("url")
    @classmethod
    def validate_url(cls, value: str) -> str:
        return _check_url(value)


class RepositoryResponse(BaseModel):
    """저장소 응답"""

    id: str
    name: str
    url: str
    provider: str
    description: str | None
    languages: list[str]
    last_scan_at: datetime | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class RepositoryDeleteResponse(BaseModel):
    """저장소 cascade 삭제 결과 (테이블별 삭제 행 수)"""

    id: str
    deleted: dict[str, int]


class BranchListResponse(BaseModel):
    """브랜치 목록"""

    repository_url: str
    branches: list[str]
