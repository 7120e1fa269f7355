"""Integration 모델 — CI 시스템 등 외부 호출자용 API Key 발급 단위"""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from qscan.models.base import Base, CreatedAtMixin, IDMixin, JSONType


class Integration(IDMixin, CreatedAtMixin, Base):
    """Integration 테이블.

    API Key는 생성 시 발급되며 `pqc_` 접두어를 가진다.
    스캔 생성 요청에 Bearer 토큰으로 실리면 Scan.integration_id로 기록된다.
    """

    __tablename__ = "integrations"
    __table_args__ = {"comment": "외부 연동 (CI / API Key)"}

    name: Mapped[str] = mapped_column(Text, nullable=False, comment="연동 이름")
    # github_actions / jenkins / sonarqube / api_key ...
    type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        comment="연동 유형",
    )
    api_key: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        unique=True,
        index=True,
        comment="발급된 API Key",
    )
    config: Mapped[dict | None] = mapped_column(
        JSONType,
        nullable=True,
        comment="연동별 설정",
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
        comment="활성 여부",
    )
    last_used: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        comment="마지막 사용 시각 (UTC)",
    )

    def __repr__(self) -> str:
        return f"<Integration id={self.id} name={self.name} active={self.is_active}>"
