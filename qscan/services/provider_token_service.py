"""Provider 토큰 설정 서비스 — 사용자별 Git 호스팅 토큰 CRUD"""

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from qscan.errors import NotFoundError, ValidationError
from qscan.models.base import utcnow
from qscan.models.provider_token import ProviderToken
from qscan.schemas.provider_token import ProviderTokenCreateRequest, ProviderTokenUpdateRequest
from qscan.services.token_crypto import encrypt_token

logger = logging.getLogger(__name__)

DUPLICATE_NAME_MESSAGE = "A provider with this name already exists. Please choose a different name."


class ProviderTokenService:
    """Provider 토큰 CRUD.

    토큰 원문은 저장 직전에 암호화하며, 조회 결과로 노출하지 않는다.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def list_tokens(self, user_id: str) -> list[ProviderToken]:
        result = await self.db.execute(
            select(ProviderToken)
            .where(ProviderToken.user_id == user_id)
            .order_by(ProviderToken.created_at.desc())
        )
        return list(result.scalars().all())

    async def get_token(self, token_id: str, user_id: str | None = None) -> ProviderToken:
        """토큰을 조회한다. user_id가 주어지면 소유자가 다른 토큰은 없는 것으로 취급한다."""
        token = await self.db.get(ProviderToken, token_id)
        if token is None or (user_id is not None and token.user_id != user_id):
            raise NotFoundError("Provider token not found", details=token_id)
        return token

    async def create_token(self, user_id: str, data: ProviderTokenCreateRequest) -> ProviderToken:
        """토큰을 암호화하여 저장한다.

        Raises:
            ValidationError: 같은 사용자에게 동일한 이름이 이미 있을 때
        """
        await self._ensure_name_available(user_id, data.name)

        token = ProviderToken(
            user_id=user_id,
            name=data.name,
            provider=data.provider,
            token_type=data.token_type,
            access_token=encrypt_token(data.access_token),
            refresh_token=encrypt_token(data.refresh_token) if data.refresh_token else None,
            expires_at=data.expires_at,
            scopes=data.scopes,
            organization_access=list(data.organization_access),
            is_active=True,
        )
        self.db.add(token)
        await self._flush_unique()
        logger.info(
            f"[ProviderTokenService] 토큰 등록: id={token.id}, provider={token.provider}, user_id={user_id}"
        )
        return token

    async def update_token(
        self,
        token_id: str,
        patch: ProviderTokenUpdateRequest,
        user_id: str | None = None,
    ) -> ProviderToken:
        """이름 / 조직 목록 / 활성 여부를 수정한다.

        Raises:
            NotFoundError: 토큰이 없을 때
            ValidationError: 변경할 이름이 이미 사용 중일 때
        """
        token = await self.get_token(token_id, user_id)
        changes = patch.model_dump(exclude_unset=True)

        new_name = changes.get("name")
        if new_name and new_name != token.name:
            await self._ensure_name_available(token.user_id, new_name)

        for key, value in changes.items():
            if value is not None:
                setattr(token, key, value)
        token.updated_at = utcnow()
        await self._flush_unique()
        return token

    async def delete_token(self, token_id: str, user_id: str | None = None) -> None:
        token = await self.get_token(token_id, user_id)
        await self.db.delete(token)
        await self.db.flush()
        logger.info(f"[ProviderTokenService] 토큰 삭제: id={token_id}")

    async def _ensure_name_available(self, user_id: str, name: str) -> None:
        result = await self.db.execute(
            select(ProviderToken.id).where(
                ProviderToken.user_id == user_id,
                ProviderToken.name == name,
            )
        )
        if result.first() is not None:
            raise ValidationError(DUPLICATE_NAME_MESSAGE)

    async def _flush_unique(self) -> None:
        # 동시 요청이 이름 검사를 함께 통과한 경우 unique 제약이 막는다
        try:
            await self.db.flush()
        except IntegrityError as e:
            await self.db.rollback()
            raise ValidationError(DUPLICATE_NAME_MESSAGE) from e
