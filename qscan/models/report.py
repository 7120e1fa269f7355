"""CBOM / VDR 리포트 모델 — 외부에서 생성된 JSON 문서를 저장 (생성 후 불변)"""

from typing import Any

from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from qscan.models.base import Base, CreatedAtMixin, IDMixin, JSONType


class CBOMReport(IDMixin, CreatedAtMixin, Base):
    """CBOM(Cryptographic Bill of Materials) 리포트 테이블. scan_id로 조회한다."""

    __tablename__ = "cbom_reports"
    __table_args__ = {"comment": "CBOM 리포트"}

    repository_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("repositories.id"),
        nullable=False,
        index=True,
        comment="저장소 ID (FK)",
    )
    scan_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("scans.id"),
        nullable=True,
        index=True,
        comment="스캔 ID (FK)",
    )
    bom_format: Mapped[str] = mapped_column(Text, nullable=False, default="CycloneDX")
    spec_version: Mapped[str] = mapped_column(Text, nullable=False, default="1.6")
    content: Mapped[Any] = mapped_column(
        JSONType,
        nullable=False,
        comment="CBOM 문서 (불투명 JSON)",
    )

    def __repr__(self) -> str:
        return f"<CBOMReport id={self.id} scan_id={self.scan_id}>"


class VDRReport(IDMixin, CreatedAtMixin, Base):
    """VDR(Vulnerability Disclosure Report) 테이블. vulnerability_id로 조회한다."""

    __tablename__ = "vdr_reports"
    __table_args__ = {"comment": "VDR 리포트"}

    vulnerability_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("vulnerabilities.id"),
        nullable=False,
        index=True,
        comment="취약점 ID (FK)",
    )
    bom_format: Mapped[str] = mapped_column(Text, nullable=False, default="CycloneDX")
    spec_version: Mapped[str] = mapped_column(Text, nullable=False, default="1.6")
    # affected / not_affected / fixed / under_investigation
    vex_status: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        default="not_affected",
        comment="VEX 상태",
    )
    content: Mapped[Any] = mapped_column(
        JSONType,
        nullable=False,
        comment="VDR 문서 (불투명 JSON)",
    )

    def __repr__(self) -> str:
        return f"<VDRReport id={self.id} vulnerability_id={self.vulnerability_id}>"
