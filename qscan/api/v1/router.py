"""API 라우터 — 모든 엔드포인트 라우터를 통합한다"""

from fastapi import APIRouter

from qscan.api.v1 import (
    dashboard,
    integrations,
    reports,
    repositories,
    scans,
    settings,
    vulnerabilities,
)

api_router = APIRouter()

# 저장소 (등록 / 수정 / cascade 삭제 / 브랜치 조회)
api_router.include_router(
    repositories.router,
    prefix="/repositories",
    tags=["repositories"],
)

# 스캔
api_router.include_router(
    scans.router,
    prefix="/scans",
    tags=["scans"],
)

# 취약점 (읽기 전용)
api_router.include_router(
    vulnerabilities.router,
    prefix="/vulnerabilities",
    tags=["vulnerabilities"],
)

# CBOM / VDR 리포트
api_router.include_router(
    reports.cbom_router,
    prefix="/cbom-reports",
    tags=["reports"],
)
api_router.include_router(
    reports.vdr_router,
    prefix="/vdr-reports",
    tags=["reports"],
)

# Provider 토큰 설정
api_router.include_router(
    settings.router,
    prefix="/settings",
    tags=["settings"],
)

# 외부 연동 (CI API Key)
api_router.include_router(
    integrations.router,
    prefix="/integrations",
    tags=["integrations"],
)

# 대시보드
api_router.include_router(
    dashboard.router,
    prefix="/dashboard",
    tags=["dashboard"],
)
