"""Integration 서비스 — CI 연동 등록 및 API Key 인증"""

import logging
import secrets

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from qscan.errors import NotFoundError
from qscan.models.base import utcnow
from qscan.models.integration import Integration
from qscan.schemas.integration import IntegrationCreateRequest, IntegrationUpdateRequest

logger = logging.getLogger(__name__)

# API Key 형식 접두사
_KEY_PREFIX = "pqc_"


def generate_api_key() -> str:
    """pqc_ + 32자 URL-safe 랜덤 문자열"""
    return f"{_KEY_PREFIX}{secrets.token_urlsafe(24)}"


class IntegrationService:
    """Integration CRUD 서비스."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def list_integrations(self) -> list[Integration]:
        result = await self.db.execute(select(Integration).order_by(Integration.name.asc()))
        return list(result.scalars().all())

    async def get_integration(self, integration_id: str) -> Integration:
        integration = await self.db.get(Integration, integration_id)
        if integration is None:
            raise NotFoundError("Integration not found", details=integration_id)
        return integration

    async def create_integration(self, data: IntegrationCreateRequest) -> Integration:
        """연동을 생성하고 API Key를 발급한다."""
        integration = Integration(
            name=data.name,
            type=data.type,
            api_key=generate_api_key(),
            config=data.config,
            is_active=True,
        )
        self.db.add(integration)
        await self.db.flush()
        logger.info(f"[IntegrationService] 연동 생성: id={integration.id}, type={integration.type}")
        return integration

    async def update_integration(
        self,
        integration_id: str,
        patch: IntegrationUpdateRequest,
    ) -> Integration:
        integration = await self.get_integration(integration_id)
        for key, value in patch.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(integration, key, value)
        await self.db.flush()
        return integration

    async def delete_integration(self, integration_id: str) -> None:
        integration = await self.get_integration(integration_id)
        await self.db.delete(integration)
        await self.db.flush()
        logger.info(f"[IntegrationService] 연동 삭제: id={integration_id}")

    async def authenticate_api_key(self, api_key: str) -> Integration | None:
        """활성 연동의 API Key면 해당 연동을 반환하고 last_used를 갱신한다.

        Args:
            api_key: Bearer 토큰으로 전달된 키

        Returns:
            Integration 또는 None (미존재 / 비활성)
        """
        if not api_key or not api_key.startswith(_KEY_PREFIX):
            return None
        result = await self.db.execute(
            select(Integration).where(
                Integration.api_key == api_key,
                Integration.is_active.is_(True),
            )
        )
        integration = result.scalar_one_or_none()
        if integration is None:
            return None
        integration.last_used = utcnow()
        await self.db.flush()
        return integration
