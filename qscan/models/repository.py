"""Repository 모델 — 스캔 대상 소스코드 저장소"""

from datetime import datetime

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from qscan.models.base import Base, IDMixin, JSONType, TimestampMixin

REPOSITORY_PROVIDERS = ("github", "gitlab", "bitbucket", "local")


class Repository(IDMixin, TimestampMixin, Base):
    """저장소 테이블.

    사용자 등록으로 생성되고, PATCH 또는 스캔 완료 시 갱신된다.
    명시적으로 삭제되며 그때 종속 행(scans, vulnerabilities, cbom_reports,
    vdr_reports)은 RepositoryService가 순서대로 정리한다.
    """

    __tablename__ = "repositories"
    __table_args__ = {"comment": "스캔 대상 저장소"}

    name: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="저장소 표시 이름",
    )
    url: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="저장소 URL",
    )
    provider: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        comment="호스팅 provider (github / gitlab / bitbucket / local)",
    )
    description: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        comment="설명",
    )
    languages: Mapped[list] = mapped_column(
        JSONType,
        nullable=False,
        default=list,
        comment="언어 목록 (순서 유지)",
    )
    last_scan_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        comment="마지막 스캔 완료 시각",
    )

    def __repr__(self) -> str:
        return f"<Repository id={self.id} name={self.name}>"
