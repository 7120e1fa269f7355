"""ProviderTokenService 단위 테스트 — 암호화 저장, 이름 중복, 소유자 검사"""

import pytest

from qscan.errors import NotFoundError, ValidationError
from qscan.schemas.provider_token import (
    ProviderTokenCreateRequest,
    ProviderTokenResponse,
    ProviderTokenUpdateRequest,
    REDACTED,
)
from qscan.services.provider_token_service import DUPLICATE_NAME_MESSAGE, ProviderTokenService
from qscan.services.token_crypto import decrypt_token


def _request(**overrides) -> ProviderTokenCreateRequest:
    data = {
        "name": "work",
        "provider": "github",
        "access_token": "ghp_secret_value",
        "organization_access": ["acme"],
    }
    data.update(overrides)
    return ProviderTokenCreateRequest(**data)


@pytest.mark.asyncio
async def test_create_token_encrypts_secret(db_session):
    """토큰 원문은 암호화되어 저장되고 복호화하면 원문과 같다."""
    service = ProviderTokenService(db_session)

    token = await service.create_token("demo-user", _request(refresh_token="refresh-me"))

    assert token.access_token != "ghp_secret_value"
    assert decrypt_token(token.access_token) == "ghp_secret_value"
    assert decrypt_token(token.refresh_token) == "refresh-me"
    assert token.is_active is True


@pytest.mark.asyncio
async def test_response_never_exposes_secret(db_session):
    service = ProviderTokenService(db_session)
    token = await service.create_token("demo-user", _request(refresh_token="refresh-me"))

    response = ProviderTokenResponse.from_model(token)

    assert response.access_token == REDACTED
    assert response.refresh_token == REDACTED
    assert "ghp_secret_value" not in response.model_dump_json()


@pytest.mark.asyncio
async def test_duplicate_name_for_same_user_rejected(db_session):
    """같은 사용자에게 동일한 이름의 토큰은 등록할 수 없다."""
    service = ProviderTokenService(db_session)
    await service.create_token("demo-user", _request())

    with pytest.raises(ValidationError) as exc_info:
        await service.create_token("demo-user", _request(provider="gitlab"))

    assert exc_info.value.message == DUPLICATE_NAME_MESSAGE


@pytest.mark.asyncio
async def test_same_name_allowed_for_different_users(db_session):
    service = ProviderTokenService(db_session)
    await service.create_token("alice", _request())

    token = await service.create_token("bob", _request())

    assert token.user_id == "bob"


@pytest.mark.asyncio
async def test_update_token_rename_to_existing_name_rejected(db_session):
    service = ProviderTokenService(db_session)
    await service.create_token("demo-user", _request(name="first"))
    second = await service.create_token("demo-user", _request(name="second"))

    with pytest.raises(ValidationError):
        await service.update_token(second.id, ProviderTokenUpdateRequest(name="first"))


@pytest.mark.asyncio
async def test_update_token_deactivates(db_session):
    service = ProviderTokenService(db_session)
    token = await service.create_token("demo-user", _request())

    updated = await service.update_token(
        token.id, ProviderTokenUpdateRequest(is_active=False, organization_access=[])
    )

    assert updated.is_active is False
    assert updated.organization_access == []
    assert updated.name == "work"


@pytest.mark.asyncio
async def test_other_users_token_is_not_found(db_session):
    """다른 사용자의 토큰은 조회 / 삭제 시 없는 것으로 취급한다."""
    service = ProviderTokenService(db_session)
    token = await service.create_token("alice", _request())

    with pytest.raises(NotFoundError):
        await service.get_token(token.id, user_id="bob")
    with pytest.raises(NotFoundError):
        await service.delete_token(token.id, user_id="bob")

    assert (await service.get_token(token.id, user_id="alice")).id == token.id


@pytest.mark.asyncio
async def test_delete_token(db_session):
    service = ProviderTokenService(db_session)
    token = await service.create_token("demo-user", _request())

    await service.delete_token(token.id, user_id="demo-user")

    assert await service.list_tokens("demo-user") == []
