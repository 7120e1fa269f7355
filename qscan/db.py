"""DB 엔진/세션 팩토리 — 프로세스당 하나의 엔진을 지연 생성하고 종료 시 정리한다"""

import logging
from functools import lru_cache

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from qscan.config import get_settings

logger = logging.getLogger(__name__)


class Database:
    """비동기 엔진과 세션 팩토리를 소유하는 핸들."""

    def __init__(self, engine: AsyncEngine) -> None:
        self.engine = engine
        self.session_factory = async_sessionmaker(
            engine,
            expire_on_commit=False,
            autoflush=False,
        )

    @classmethod
    def from_url(cls, url: str, echo: bool = False) -> "Database":
        """연결 URL로 엔진을 생성한다."""
        engine = create_async_engine(url, echo=echo, pool_pre_ping=True)
        return cls(engine)

    def session(self) -> AsyncSession:
        return self.session_factory()

    async def dispose(self) -> None:
        """커넥션 풀을 정리한다."""
        await self.engine.dispose()


@lru_cache
def get_database() -> Database:
    """프로세스 전역 Database 핸들 (최초 호출 시 한 번만 생성)"""
    settings = get_settings()
    logger.info("[Database] 엔진 생성 (echo=%s)", settings.DEBUG)
    return Database.from_url(settings.DATABASE_URL, echo=settings.DEBUG)


async def close_database() -> None:
    """생성된 핸들이 있으면 정리하고 캐시를 비운다 (lifespan shutdown)."""
    if get_database.cache_info().currsize:
        await get_database().dispose()
        get_database.cache_clear()
