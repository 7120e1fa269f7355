"""SQLAlchemy 2.0 DeclarativeBase + 공통 컬럼 믹스인"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, DateTime, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# PostgreSQL에서는 JSONB, 그 외(테스트용 SQLite)에서는 JSON
JSONType = JSON().with_variant(JSONB(), "postgresql")


def utcnow() -> datetime:
    """timezone-aware 현재 UTC 시각"""
    return datetime.now(timezone.utc)


def new_id() -> str:
    """불투명 식별자 (UUID v4 문자열)"""
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    """모든 SQLAlchemy 모델의 기반 클래스"""
    pass


class CreatedAtMixin:
    """created_at 공통 컬럼 믹스인"""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
        comment="생성 시각 (UTC)",
    )


class TimestampMixin(CreatedAtMixin):
    """created_at / updated_at 공통 컬럼 믹스인"""

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
        comment="수정 시각 (UTC)",
    )


class IDMixin:
    """문자열 UUID 기본 키 믹스인"""

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=new_id,
        comment="기본 키 (UUID v4 문자열)",
    )
