"""외부 연동(Integration) 엔드포인트"""

from fastapi import APIRouter, status

from qscan.api.deps import DbSession
from qscan.schemas.common import ApiResponse, DeletedResponse
from qscan.schemas.integration import (
    IntegrationCreateRequest,
    IntegrationResponse,
    IntegrationUpdateRequest,
)
from qscan.services.integration_service import IntegrationService

router = APIRouter()


@router.get("", response_model=ApiResponse[list[IntegrationResponse]])
async def list_integrations(db: DbSession) -> ApiResponse[list[IntegrationResponse]]:
    integrations = await IntegrationService(db).list_integrations()
    return ApiResponse(
        success=True,
        data=[IntegrationResponse.model_validate(i) for i in integrations],
    )


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=ApiResponse[IntegrationResponse],
)
async def create_integration(
    request: IntegrationCreateRequest,
    db: DbSession,
) -> ApiResponse[IntegrationResponse]:
    """연동을 생성하고 pqc_ 접두어의 API Key를 발급한다."""
    integration = await IntegrationService(db).create_integration(request)
    return ApiResponse(success=True, data=IntegrationResponse.model_validate(integration))


@router.patch("/{integration_id}", response_model=ApiResponse[IntegrationResponse])
async def update_integration(
    integration_id: str,
    request: IntegrationUpdateRequest,
    db: DbSession,
) -> ApiResponse[IntegrationResponse]:
    integration = await IntegrationService(db).update_integration(integration_id, request)
    return ApiResponse(success=True, data=IntegrationResponse.model_validate(integration))


@router.delete("/{integration_id}", response_model=ApiResponse[DeletedResponse])
async def delete_integration(integration_id: str, db: DbSession) -> ApiResponse[DeletedResponse]:
    await IntegrationService(db).delete_integration(integration_id)
    return ApiResponse(success=True, data=DeletedResponse(id=integration_id))
