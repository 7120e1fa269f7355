"""공통 의존성 — DB 세션, 요청 사용자, 연동 API Key 등 FastAPI Depends로 주입"""

from typing import Annotated, AsyncGenerator

from fastapi import Depends, Header
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from qscan.config import get_settings
from qscan.db import get_database
from qscan.models.integration import Integration
from qscan.services.integration_service import IntegrationService


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """요청 단위 비동기 DB 세션. 성공 시 커밋, 예외 시 롤백한다."""
    async with get_database().session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


DbSession = Annotated[AsyncSession, Depends(get_db)]


# ---- 요청 사용자 ----
# 인증은 이 서비스 범위 밖이므로 상위 게이트웨이가 넣어준 X-User-Id를 신뢰한다

async def get_current_user_id(
    x_user_id: Annotated[str | None, Header()] = None,
) -> str:
    """X-User-Id 헤더 값, 없으면 DEFAULT_USER_ID"""
    if x_user_id and x_user_id.strip():
        return x_user_id.strip()
    return get_settings().DEFAULT_USER_ID


CurrentUserId = Annotated[str, Depends(get_current_user_id)]


# ---- 연동 API Key (선택) ----
_bearer_scheme = HTTPBearer(auto_error=False)


async def get_optional_integration(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_bearer_scheme)],
    db: DbSession,
) -> Integration | None:
    """Bearer 토큰이 활성 연동의 API Key면 해당 연동, 아니면 None."""
    if credentials is None:
        return None
    return await IntegrationService(db).authenticate_api_key(credentials.credentials)


OptionalIntegration = Annotated[Integration | None, Depends(get_optional_integration)]
