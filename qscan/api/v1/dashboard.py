"""대시보드 통계 엔드포인트"""

from fastapi import APIRouter

from qscan.api.deps import DbSession
from qscan.schemas.common import ApiResponse
from qscan.schemas.dashboard import DashboardStats
from qscan.schemas.scan import ScanResponse
from qscan.services.dashboard_service import DashboardService

router = APIRouter()


@router.get("/stats", response_model=ApiResponse[DashboardStats])
async def get_dashboard_stats(db: DbSession) -> ApiResponse[DashboardStats]:
    """취약점 / 스캔 / 저장소 요약 통계와 최근 스캔 5건"""
    stats = await DashboardService(db).get_stats()
    stats["recent_scans"] = [ScanResponse.model_validate(s) for s in stats["recent_scans"]]
    return ApiResponse(success=True, data=DashboardStats(**stats))
