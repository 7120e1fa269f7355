"""CBOM / VDR 리포트 엔드포인트

다운로드 엔드포인트는 ApiResponse 래퍼 없이 첨부 파일 본문을 그대로 반환한다.
"""

from fastapi import APIRouter, Response, status

from qscan.api.deps import DbSession
from qscan.schemas.common import ApiResponse
from qscan.schemas.report import (
    CBOMReportCreateRequest,
    CBOMReportResponse,
    VDRReportCreateRequest,
    VDRReportResponse,
)
from qscan.services.report_service import ReportDownload, ReportService

cbom_router = APIRouter()
vdr_router = APIRouter()


def attachment(download: ReportDownload) -> Response:
    """브라우저가 인라인 렌더링하지 않도록 attachment로 내려준다."""
    return Response(
        content=download.content,
        media_type=download.media_type,
        headers={"Content-Disposition": f'attachment; filename="{download.filename}"'},
    )


# ---------------------------------------------------------------------------
# CBOM
# ---------------------------------------------------------------------------

@cbom_router.get("", response_model=ApiResponse[list[CBOMReportResponse]])
async def list_cbom_reports(db: DbSession) -> ApiResponse[list[CBOMReportResponse]]:
    reports = await ReportService(db).list_cbom_reports()
    return ApiResponse(success=True, data=[CBOMReportResponse.model_validate(r) for r in reports])


@cbom_router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=ApiResponse[CBOMReportResponse],
)
async def store_cbom_report(
    request: CBOMReportCreateRequest,
    db: DbSession,
) -> ApiResponse[CBOMReportResponse]:
    report = await ReportService(db).store_cbom_report(
        scan_id=request.scan_id,
        content=request.content,
        bom_format=request.bom_format,
        spec_version=request.spec_version,
    )
    return ApiResponse(success=True, data=CBOMReportResponse.model_validate(report))


@cbom_router.get("/{scan_id}", response_model=ApiResponse[CBOMReportResponse])
async def get_cbom_report(scan_id: str, db: DbSession) -> ApiResponse[CBOMReportResponse]:
    """리포트 메타데이터 + 본문 (다운로드 아님)"""
    report = await ReportService(db).get_cbom_report(scan_id)
    return ApiResponse(success=True, data=CBOMReportResponse.model_validate(report))


@cbom_router.get("/{scan_id}/{fmt}")
async def download_cbom_report(scan_id: str, fmt: str, db: DbSession) -> Response:
    """CBOM 다운로드 (json / pdf)"""
    return attachment(await ReportService(db).get_report("cbom", scan_id, fmt))


# ---------------------------------------------------------------------------
# VDR
# ---------------------------------------------------------------------------

@vdr_router.get("", response_model=ApiResponse[list[VDRReportResponse]])
async def list_vdr_reports(db: DbSession) -> ApiResponse[list[VDRReportResponse]]:
    reports = await ReportService(db).list_vdr_reports()
    return ApiResponse(success=True, data=[VDRReportResponse.model_validate(r) for r in reports])


@vdr_router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=ApiResponse[VDRReportResponse],
)
async def store_vdr_report(
    request: VDRReportCreateRequest,
    db: DbSession,
) -> ApiResponse[VDRReportResponse]:
    report = await ReportService(db).store_vdr_report(
        vulnerability_id=request.vulnerability_id,
        content=request.content,
        bom_format=request.bom_format,
        spec_version=request.spec_version,
        vex_status=request.vex_status,
    )
    return ApiResponse(success=True, data=VDRReportResponse.model_validate(report))


@vdr_router.get("/{vulnerability_id}")
async def download_vdr_report_json(vulnerability_id: str, db: DbSession) -> Response:
    """포맷 생략 시 json"""
    return attachment(await ReportService(db).get_report("vdr", vulnerability_id, "json"))


@vdr_router.get("/{vulnerability_id}/{fmt}")
async def download_vdr_report(vulnerability_id: str, fmt: str, db: DbSession) -> Response:
    return attachment(await ReportService(db).get_report("vdr", vulnerability_id, fmt))
