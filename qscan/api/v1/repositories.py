"""저장소 관련 엔드포인트"""

from fastapi import APIRouter, Query, status

from qscan.api.deps import CurrentUserId, DbSession
from qscan.schemas.common import ApiResponse
from qscan.schemas.repository import (
    BranchListResponse,
    RepositoryCreateRequest,
    RepositoryDeleteResponse,
    RepositoryResponse,
    RepositoryUpdateRequest,
)
from qscan.services.provider_token_gateway import ProviderTokenGateway
from qscan.services.repository_service import RepositoryService

router = APIRouter()


@router.get("", response_model=ApiResponse[list[RepositoryResponse]])
async def list_repositories(db: DbSession) -> ApiResponse[list[RepositoryResponse]]:
    repositories = await RepositoryService(db).list_repositories()
    return ApiResponse(
        success=True,
        data=[RepositoryResponse.model_validate(r) for r in repositories],
    )


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=ApiResponse[RepositoryResponse],
)
async def create_repository(
    request: RepositoryCreateRequest,
    db: DbSession,
) -> ApiResponse[RepositoryResponse]:
    repository = await RepositoryService(db).create_repository(request)
    return ApiResponse(success=True, data=RepositoryResponse.model_validate(repository))


# /{repository_id} 보다 먼저 등록해야 "temp"가 ID로 해석되지 않는다
@router.get("/temp/branches", response_model=ApiResponse[BranchListResponse])
async def list_branches_for_url(
    db: DbSession,
    user_id: CurrentUserId,
    url: str = Query(min_length=1, description="GitHub 저장소 URL"),
) -> ApiResponse[BranchListResponse]:
    """등록 전 저장소 URL의 브랜치 목록 (GitHub 전용)"""
    branches = await ProviderTokenGateway(db).list_branches(url, user_id=user_id)
    return ApiResponse(
        success=True,
        data=BranchListResponse(repository_url=url, branches=branches),
    )


@router.get("/{repository_id}", response_model=ApiResponse[RepositoryResponse])
async def get_repository(repository_id: str, db: DbSession) -> ApiResponse[RepositoryResponse]:
    repository = await RepositoryService(db).get_repository(repository_id)
    return ApiResponse(success=True, data=RepositoryResponse.model_validate(repository))


@router.patch("/{repository_id}", response_model=ApiResponse[RepositoryResponse])
async def update_repository(
    repository_id: str,
    request: RepositoryUpdateRequest,
    db: DbSession,
) -> ApiResponse[RepositoryResponse]:
    repository = await RepositoryService(db).update_repository(repository_id, request)
    return ApiResponse(success=True, data=RepositoryResponse.model_validate(repository))


@router.delete("/{repository_id}", response_model=ApiResponse[RepositoryDeleteResponse])
async def delete_repository(
    repository_id: str,
    db: DbSession,
) -> ApiResponse[RepositoryDeleteResponse]:
    """저장소와 종속 스캔 / 취약점 / 리포트를 한 트랜잭션에서 삭제한다."""
    deletion = await RepositoryService(db).delete_repository(repository_id)
    return ApiResponse(
        success=True,
        data=RepositoryDeleteResponse(id=deletion.id, deleted=deletion.counts),
    )


@router.get("/{repository_id}/branches", response_model=ApiResponse[BranchListResponse])
async def list_repository_branches(
    repository_id: str,
    db: DbSession,
    user_id: CurrentUserId,
) -> ApiResponse[BranchListResponse]:
    """등록된 저장소의 브랜치 목록 (GitHub 전용)"""
    repository = await RepositoryService(db).get_repository(repository_id)
    branches = await ProviderTokenGateway(db).list_branches(repository.url, user_id=user_id)
    return ApiResponse(
        success=True,
        data=BranchListResponse(repository_url=repository.url, branches=branches),
    )
