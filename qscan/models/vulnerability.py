"""Vulnerability 모델 — 스캔이 생성한 PQC 취약점 (생성 후 불변)"""

from sqlalchemy import ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from qscan.models.base import Base, IDMixin, JSONType, TimestampMixin

SEVERITIES = ("critical", "high", "medium", "low", "info")
VULNERABILITY_STATUSES = ("new", "reviewing", "fixed", "false_positive", "ignored")


class Vulnerability(IDMixin, TimestampMixin, Base):
    """취약점 테이블."""

    __tablename__ = "vulnerabilities"
    __table_args__ = {"comment": "스캔 탐지 취약점"}

    scan_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("scans.id"),
        nullable=False,
        index=True,
        comment="탐지한 스캔 ID (FK)",
    )
    repository_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("repositories.id"),
        nullable=False,
        index=True,
        comment="저장소 ID (FK)",
    )
    cve_id: Mapped[str | None] = mapped_column(Text, nullable=True, comment="CVE ID")
    title: Mapped[str] = mapped_column(Text, nullable=False, comment="제목")
    description: Mapped[str] = mapped_column(Text, nullable=False, comment="설명")
    severity: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        index=True,
        comment="심각도 (critical / high / medium / low / info)",
    )
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="new",
        comment="처리 상태 (new / reviewing / fixed / false_positive / ignored)",
    )
    file_path: Mapped[str] = mapped_column(Text, nullable=False, comment="파일 경로")
    start_line: Mapped[int | None] = mapped_column(Integer, nullable=True)
    end_line: Mapped[int | None] = mapped_column(Integer, nullable=True)
    code_snippet: Mapped[str | None] = mapped_column(Text, nullable=True)
    recommendation: Mapped[str | None] = mapped_column(Text, nullable=True)
    workaround: Mapped[str | None] = mapped_column(Text, nullable=True)
    cvss_score: Mapped[str | None] = mapped_column(Text, nullable=True)
    # 예: quantum_vulnerable / migration_required / pqc_compliant
    pqc_category: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        index=True,
        comment="PQC 분류",
    )
    detected_by: Mapped[str] = mapped_column(Text, nullable=False, comment="탐지 도구")
    details: Mapped[dict | None] = mapped_column(
        JSONType,
        nullable=True,
        comment="부가 정보 (library / algorithm / key_size / nist_standard)",
    )

    def __repr__(self) -> str:
        return f"<Vulnerability id={self.id} severity={self.severity} scan_id={self.scan_id}>"
