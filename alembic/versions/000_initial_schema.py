"""초기 스키마 생성 — 모든 기본 테이블 CREATE TABLE

Revision ID: 000_initial_schema
Revises: None
Create Date: 2026-10-16

변경사항:
- repositories / scans / vulnerabilities 테이블 생성
- cbom_reports / vdr_reports 테이블 생성
- integrations / provider_tokens 테이블 생성
- 기본 인덱스 추가

주의:
- 외래 키에 ON DELETE 동작을 두지 않는다. 저장소 삭제 시 종속 행 정리는
  RepositoryService.delete_repository가 자식 -> 부모 순서로 수행한다.
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision = "000_initial_schema"
down_revision = None
branch_labels = None
depends_on = None

_JSON = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def _id_column() -> sa.Column:
    return sa.Column("id", sa.String(36), primary_key=True, comment="기본 키 (UUID v4 문자열)")


def _created_at() -> sa.Column:
    return sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, comment="생성 시각 (UTC)")


def _updated_at() -> sa.Column:
    return sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, comment="수정 시각 (UTC)")


def upgrade() -> None:
    # ------------------------------------------------------------------ #
    # repositories 테이블
    # ------------------------------------------------------------------ #
    op.create_table(
        "repositories",
        _id_column(),
        sa.Column("name", sa.Text(), nullable=False, comment="저장소 표시 이름"),
        sa.Column("url", sa.Text(), nullable=False, comment="저장소 URL"),
        sa.Column("provider", sa.String(20), nullable=False, comment="호스팅 provider"),
        sa.Column("description", sa.Text(), nullable=True, comment="설명"),
        sa.Column("languages", _JSON, nullable=False, comment="언어 목록 (순서 유지)"),
        sa.Column("last_scan_at", sa.DateTime(timezone=True), nullable=True, comment="마지막 스캔 완료 시각"),
        _created_at(),
        _updated_at(),
        comment="스캔 대상 저장소",
    )

    # ------------------------------------------------------------------ #
    # scans 테이블
    # ------------------------------------------------------------------ #
    op.create_table(
        "scans",
        _id_column(),
        sa.Column(
            "repository_id",
            sa.String(36),
            sa.ForeignKey("repositories.id"),
            nullable=False,
            comment="대상 저장소 ID (FK)",
        ),
        sa.Column("branch", sa.Text(), nullable=False, comment="대상 브랜치"),
        sa.Column("status", sa.String(20), nullable=False, comment="스캔 상태"),
        sa.Column("progress", sa.Integer(), nullable=False, comment="진행률 (0 ~ 100)"),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("total_files", sa.Integer(), nullable=False),
        sa.Column("integration_id", sa.String(36), nullable=True),
        sa.Column("scan_config", _JSON, nullable=True),
        _created_at(),
        comment="스캔 실행",
    )
    op.create_index("ix_scans_repository_id", "scans", ["repository_id"])
    op.create_index("ix_scans_status", "scans", ["status"])

    # ------------------------------------------------------------------ #
    # vulnerabilities 테이블
    # ------------------------------------------------------------------ #
    op.create_table(
        "vulnerabilities",
        _id_column(),
        sa.Column("scan_id", sa.String(36), sa.ForeignKey("scans.id"), nullable=False),
        sa.Column("repository_id", sa.String(36), sa.ForeignKey("repositories.id"), nullable=False),
        sa.Column("cve_id", sa.Text(), nullable=True),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("severity", sa.String(20), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("file_path", sa.Text(), nullable=False),
        sa.Column("start_line", sa.Integer(), nullable=True),
        sa.Column("end_line", sa.Integer(), nullable=True),
        sa.Column("code_snippet", sa.Text(), nullable=True),
        sa.Column("recommendation", sa.Text(), nullable=True),
        sa.Column("workaround", sa.Text(), nullable=True),
        sa.Column("cvss_score", sa.Text(), nullable=True),
        sa.Column("pqc_category", sa.Text(), nullable=True),
        sa.Column("detected_by", sa.Text(), nullable=False),
        sa.Column("details", _JSON, nullable=True),
        _created_at(),
        _updated_at(),
        comment="스캔 탐지 취약점",
    )
    op.create_index("ix_vulnerabilities_scan_id", "vulnerabilities", ["scan_id"])
    op.create_index("ix_vulnerabilities_repository_id", "vulnerabilities", ["repository_id"])
    op.create_index("ix_vulnerabilities_severity", "vulnerabilities", ["severity"])
    op.create_index("ix_vulnerabilities_pqc_category", "vulnerabilities", ["pqc_category"])

    # ------------------------------------------------------------------ #
    # cbom_reports / vdr_reports 테이블
    # ------------------------------------------------------------------ #
    op.create_table(
        "cbom_reports",
        _id_column(),
        sa.Column("repository_id", sa.String(36), sa.ForeignKey("repositories.id"), nullable=False),
        sa.Column("scan_id", sa.String(36), sa.ForeignKey("scans.id"), nullable=True),
        sa.Column("bom_format", sa.Text(), nullable=False),
        sa.Column("spec_version", sa.Text(), nullable=False),
        sa.Column("content", _JSON, nullable=False, comment="CBOM 문서 (불투명 JSON)"),
        _created_at(),
        comment="CBOM 리포트",
    )
    op.create_index("ix_cbom_reports_repository_id", "cbom_reports", ["repository_id"])
    op.create_index("ix_cbom_reports_scan_id", "cbom_reports", ["scan_id"])

    op.create_table(
        "vdr_reports",
        _id_column(),
        sa.Column(
            "vulnerability_id",
            sa.String(36),
            sa.ForeignKey("vulnerabilities.id"),
            nullable=False,
        ),
        sa.Column("bom_format", sa.Text(), nullable=False),
        sa.Column("spec_version", sa.Text(), nullable=False),
        sa.Column("vex_status", sa.Text(), nullable=True),
        sa.Column("content", _JSON, nullable=False, comment="VDR 문서 (불투명 JSON)"),
        _created_at(),
        comment="VDR 리포트",
    )
    op.create_index("ix_vdr_reports_vulnerability_id", "vdr_reports", ["vulnerability_id"])

    # ------------------------------------------------------------------ #
    # integrations 테이블
    # ------------------------------------------------------------------ #
    op.create_table(
        "integrations",
        _id_column(),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("type", sa.String(50), nullable=False),
        sa.Column("api_key", sa.String(64), nullable=False),
        sa.Column("config", _JSON, nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("last_used", sa.DateTime(timezone=True), nullable=True),
        _created_at(),
        comment="외부 연동 (CI / API Key)",
    )
    op.create_index("ix_integrations_api_key", "integrations", ["api_key"], unique=True)

    # ------------------------------------------------------------------ #
    # provider_tokens 테이블
    # ------------------------------------------------------------------ #
    op.create_table(
        "provider_tokens",
        _id_column(),
        sa.Column("user_id", sa.String(255), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("provider", sa.String(20), nullable=False),
        sa.Column("token_type", sa.String(50), nullable=False),
        sa.Column("access_token", sa.Text(), nullable=False, comment="Fernet 암호화된 access token"),
        sa.Column("refresh_token", sa.Text(), nullable=True, comment="Fernet 암호화된 refresh token"),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("scopes", sa.Text(), nullable=True),
        sa.Column("organization_access", _JSON, nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        _created_at(),
        _updated_at(),
        sa.UniqueConstraint("user_id", "name", name="uq_provider_tokens_user_name"),
        comment="Git 호스팅 provider 토큰",
    )
    op.create_index("ix_provider_tokens_user_id", "provider_tokens", ["user_id"])


def downgrade() -> None:
    op.drop_table("provider_tokens")
    op.drop_table("integrations")
    op.drop_table("vdr_reports")
    op.drop_table("cbom_reports")
    op.drop_table("vulnerabilities")
    op.drop_table("scans")
    op.drop_table("repositories")
