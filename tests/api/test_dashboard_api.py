"""대시보드 / 취약점 조회 API 통합 테스트"""

from datetime import datetime, timedelta, timezone

import pytest


@pytest.mark.asyncio
async def test_dashboard_stats_empty(client):
    response = await client.get("/api/dashboard/stats")

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["total_repositories"] == 0
    assert data["total_vulnerabilities"] == 0
    assert data["severity_distribution"] == {
        "critical": 0,
        "high": 0,
        "medium": 0,
        "low": 0,
        "info": 0,
    }
    assert data["recent_scans"] == []


@pytest.mark.asyncio
async def test_dashboard_stats_aggregates(
    client, db_session, make_repository, make_scan, make_vulnerability
):
    """심각도 / PQC 분류 / 활성 스캔 / 최근 스캔 5건을 집계한다.

    Given: 저장소 1개, 스캔 6개(1개 scanning), 취약점 3개
    When: GET /api/dashboard/stats
    Then: 집계 값 일치, recent_scans는 최신 5건
    """
    # Arrange
    repository = await make_repository()
    base = datetime.now(timezone.utc)
    scans = [
        await make_scan(repository, status="completed", created_at=base - timedelta(minutes=10 - i))
        for i in range(5)
    ]
    active = await make_scan(repository, status="scanning", created_at=base)
    await make_vulnerability(scans[0], severity="critical")
    await make_vulnerability(scans[0], severity="high")
    await make_vulnerability(scans[1], severity="low", pqc_category="pqc_compliant")
    await db_session.commit()

    # Act
    response = await client.get("/api/dashboard/stats")

    # Assert
    data = response.json()["data"]
    assert data["critical_vulnerabilities"] == 1
    assert data["quantum_vulnerable"] == 2
    assert data["pqc_compliant"] == 1
    assert data["active_scans"] == 1
    assert data["total_repositories"] == 1
    assert data["total_scans"] == 6
    assert data["total_vulnerabilities"] == 3
    assert data["severity_distribution"]["high"] == 1
    assert len(data["recent_scans"]) == 5
    assert data["recent_scans"][0]["id"] == active.id
    assert scans[0].id not in [s["id"] for s in data["recent_scans"]]


@pytest.mark.asyncio
async def test_list_vulnerabilities_filters(
    client, db_session, make_repository, make_scan, make_vulnerability
):
    scan = await make_scan(await make_repository(), status="completed")
    critical = await make_vulnerability(scan, severity="critical")
    await make_vulnerability(scan, severity="low")
    await db_session.commit()

    response = await client.get(
        "/api/vulnerabilities", params={"scan_id": scan.id, "severity": "critical"}
    )

    assert response.status_code == 200
    assert [v["id"] for v in response.json()["data"]] == [critical.id]


@pytest.mark.asyncio
async def test_get_unknown_vulnerability_returns_404(client):
    response = await client.get("/api/vulnerabilities/missing")

    assert response.status_code == 404
    assert response.json()["error"] == "Vulnerability not found"
