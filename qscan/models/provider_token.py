"""ProviderToken 모델 — Git 호스팅 provider 인증 정보 (사용자별)"""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from qscan.models.base import Base, IDMixin, JSONType, TimestampMixin

TOKEN_PROVIDERS = ("github", "gitlab", "bitbucket")


class ProviderToken(IDMixin, TimestampMixin, Base):
    """Provider 토큰 테이블.

    access_token / refresh_token은 Fernet 암호문으로만 저장한다.
    이름은 사용자별로 유일하다.
    """

    __tablename__ = "provider_tokens"
    __table_args__ = (
        UniqueConstraint("user_id", "name", name="uq_provider_tokens_user_name"),
        {"comment": "Git 호스팅 provider 토큰"},
    )

    user_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        index=True,
        comment="소유 사용자 ID",
    )
    name: Mapped[str] = mapped_column(Text, nullable=False, comment="토큰 이름")
    provider: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        comment="provider (github / gitlab / bitbucket)",
    )
    token_type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default="personal_access_token",
        comment="토큰 유형",
    )
    access_token: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Fernet 암호화된 access token",
    )
    refresh_token: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        comment="Fernet 암호화된 refresh token",
    )
    expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        comment="만료 시각",
    )
    scopes: Mapped[str | None] = mapped_column(Text, nullable=True, comment="권한 범위")
    organization_access: Mapped[list] = mapped_column(
        JSONType,
        nullable=False,
        default=list,
        comment="접근 가능한 조직 이름 목록",
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
        comment="활성 여부",
    )

    def __repr__(self) -> str:
        return f"<ProviderToken id={self.id} provider={self.provider} name={self.name}>"
