"""Scan 모델 — 스캔 1회 실행의 생명주기"""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from qscan.models.base import Base, CreatedAtMixin, IDMixin, JSONType

SCAN_STATUSES = ("pending", "scanning", "completed", "failed")
TERMINAL_SCAN_STATUSES = ("completed", "failed")


class Scan(IDMixin, CreatedAtMixin, Base):
    """스캔 테이블.

    상태 머신: pending -> scanning -> completed / failed (pending -> failed 허용)
    ScanOrchestrator만 상태를 변경한다. 단독 삭제는 없고 저장소 삭제 시에만 제거된다.
    """

    __tablename__ = "scans"
    __table_args__ = {"comment": "스캔 실행"}

    repository_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("repositories.id"),
        nullable=False,
        index=True,
        comment="대상 저장소 ID (FK)",
    )
    branch: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default="main",
        comment="대상 브랜치",
    )

    # 스캔 상태: pending / scanning / completed / failed
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="pending",
        index=True,
        comment="스캔 상태 (pending / scanning / completed / failed)",
    )
    progress: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        comment="진행률 (0 ~ 100)",
    )
    started_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        comment="스캔 시작 시각",
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        comment="완료 또는 실패 시각",
    )
    error_message: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        comment="실패 시 에러 메시지",
    )
    total_files: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        comment="스캔한 파일 수",
    )
    integration_id: Mapped[str | None] = mapped_column(
        String(36),
        nullable=True,
        comment="스캔을 요청한 Integration ID",
    )
    scan_config: Mapped[dict | None] = mapped_column(
        JSONType,
        nullable=True,
        comment="스캔 설정 (tools / languages / custom_rules)",
    )

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_SCAN_STATUSES

    def __repr__(self) -> str:
        return f"<Scan id={self.id} status={self.status} repository_id={self.repository_id}>"
