"""설정 엔드포인트 — Provider 토큰 관리

응답에는 토큰 원문도 암호문도 포함하지 않는다.
"""

from fastapi import APIRouter, status

from qscan.api.deps import CurrentUserId, DbSession
from qscan.schemas.common import ApiResponse, DeletedResponse
from qscan.schemas.provider_token import (
    ProviderTokenCreateRequest,
    ProviderTokenResponse,
    ProviderTokenUpdateRequest,
    TokenTestResponse,
)
from qscan.services.provider_token_gateway import ProviderTokenGateway
from qscan.services.provider_token_service import ProviderTokenService

router = APIRouter()


@router.get("/provider-tokens", response_model=ApiResponse[list[ProviderTokenResponse]])
async def list_provider_tokens(
    db: DbSession,
    user_id: CurrentUserId,
) -> ApiResponse[list[ProviderTokenResponse]]:
    tokens = await ProviderTokenService(db).list_tokens(user_id)
    return ApiResponse(success=True, data=[ProviderTokenResponse.from_model(t) for t in tokens])


@router.post(
    "/provider-tokens",
    status_code=status.HTTP_201_CREATED,
    response_model=ApiResponse[ProviderTokenResponse],
)
async def create_provider_token(
    request: ProviderTokenCreateRequest,
    db: DbSession,
    user_id: CurrentUserId,
) -> ApiResponse[ProviderTokenResponse]:
    token = await ProviderTokenService(db).create_token(user_id, request)
    return ApiResponse(success=True, data=ProviderTokenResponse.from_model(token))


@router.patch("/provider-tokens/{token_id}", response_model=ApiResponse[ProviderTokenResponse])
async def update_provider_token(
    token_id: str,
    request: ProviderTokenUpdateRequest,
    db: DbSession,
    user_id: CurrentUserId,
) -> ApiResponse[ProviderTokenResponse]:
    token = await ProviderTokenService(db).update_token(token_id, request, user_id=user_id)
    return ApiResponse(success=True, data=ProviderTokenResponse.from_model(token))


@router.delete("/provider-tokens/{token_id}", response_model=ApiResponse[DeletedResponse])
async def delete_provider_token(
    token_id: str,
    db: DbSession,
    user_id: CurrentUserId,
) -> ApiResponse[DeletedResponse]:
    await ProviderTokenService(db).delete_token(token_id, user_id=user_id)
    return ApiResponse(success=True, data=DeletedResponse(id=token_id))


@router.post("/provider-tokens/{token_id}/test", response_model=ApiResponse[TokenTestResponse])
async def test_provider_token(
    token_id: str,
    db: DbSession,
    user_id: CurrentUserId,
) -> ApiResponse[TokenTestResponse]:
    """저장된 토큰으로 provider API를 1회 호출해 유효성을 확인한다."""
    await ProviderTokenService(db).get_token(token_id, user_id)
    result = await ProviderTokenGateway(db).test_token(token_id)
    return ApiResponse(
        success=True,
        data=TokenTestResponse(
            success=result.success,
            provider=result.provider,
            message=result.message,
        ),
    )
