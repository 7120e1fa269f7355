"""Provider 토큰 설정 요청/응답 스키마"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

# 응답에는 어떤 경우에도 평문/암호문 토큰을 싣지 않는다
REDACTED = "***REDACTED***"


class ProviderTokenCreateRequest(BaseModel):
    """Provider 토큰 등록 요청"""

    name: str = Field(min_length=1, max_length=255)
    provider: Literal["github", "gitlab", "bitbucket"]
    access_token: str = Field(min_length=1)
    refresh_token: str | None = None
    token_type: str = "personal_access_token"
    expires_at: datetime | None = None
    scopes: str | None = None
    organization_access: list[str] = Field(default_factory=list)


class ProviderTokenUpdateRequest(BaseModel):
    """Provider 토큰 부분 수정 요청"""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    organization_access: list[str] | None = None
    is_active: bool | None = None


class ProviderTokenResponse(BaseModel):
    """Provider 토큰 응답 (비밀 값은 마스킹)"""

    id: str
    user_id: str
    name: str
    provider: str
    token_type: str
    access_token: str = REDACTED
    refresh_token: str | None = None
    expires_at: datetime | None
    scopes: str | None
    organization_access: list[str]
    is_active: bool
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_model(cls, token) -> "ProviderTokenResponse":
        """ORM 객체를 비밀 값이 제거된 응답으로 변환한다."""
        return cls(
            id=token.id,
            user_id=token.user_id,
            name=token.name,
            provider=token.provider,
            token_type=token.token_type,
            access_token=REDACTED,
            refresh_token=REDACTED if token.refresh_token else None,
            expires_at=token.expires_at,
            scopes=token.scopes,
            organization_access=list(token.organization_access or []),
            is_active=token.is_active,
            created_at=token.created_at,
            updated_at=token.updated_at,
        )


class TokenTestResponse(BaseModel):
    """토큰 검증 결과"""

    success: bool
    provider: str
    message: str
    status_code: int | None = None
