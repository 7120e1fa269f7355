"""저장소 API 엔드포인트 통합 테스트"""

import httpx
import pytest
import respx

from qscan.models.provider_token import ProviderToken
from qscan.models.report import CBOMReport, VDRReport
from qscan.models.scan import Scan
from qscan.models.vulnerability import Vulnerability
from qscan.services.token_crypto import encrypt_token

BRANCHES_URL = "https://api.github.com/repos/acme/demo/branches"


@pytest.mark.asyncio
async def test_create_and_get_repository(client):
    """저장소 등록 후 ID로 조회할 수 있다."""
    # Act
    created = await client.post(
        "/api/repositories",
        json={
            "name": "demo",
            "url": "https://github.com/acme/demo",
            "provider": "github",
            "languages": ["python", "go"],
        },
    )
    repository_id = created.json()["data"]["id"]
    fetched = await client.get(f"/api/repositories/{repository_id}")

    # Assert
    assert created.status_code == 201
    assert fetched.status_code == 200
    data = fetched.json()["data"]
    assert data["name"] == "demo"


@pytest.mark.asyncio
@pytest.mark.parametrize("field", ["name", "url", "provider", "languages"])
async def test_update_repository_null_required_field_returns_400(
    client, db_session, make_repository, field
):
    """NOT NULL 컬럼에 null을 보내면 400이고 저장소는 바뀌지 않는다.

    Given: 등록된 저장소
    When: PATCH {field: null}
    Then: 400 Validation failed, 기존 값 유지
    """
    # Arrange
    repository = await make_repository()
    await db_session.commit()

    # Act
    response = await client.patch(f"/api/repositories/{repository.id}", json={field: None})
    fetched = await client.get(f"/api/repositories/{repository.id}")

    # Assert
    assert response.status_code == 400
    assert response.json()["error"] == "Validation failed"
    assert fetched.json()["data"]["name"] == "demo"


@pytest.mark.asyncio
async def test_update_repository_null_description_clears_it(client, db_session, make_repository):
    repository = await make_repository(description="before")
    await db_session.commit()

    response = await client.patch(f"/api/repositories/{repository.id}", json={"description": None})

    assert response.status_code == 200
    assert response.json()["data"]["description"] is None
    assert data["languages"] == ["python", "go"]
    assert data["last_scan_at"] is None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        {"name": "x", "url": "not-a-url", "provider": "github"},
        {"name": "x", "url": "https://github.com/acme/x", "provider": "svn"},
        {"name": "", "url": "https://github.com/acme/x", "provider": "github"},
    ],
)
async def test_create_repository_invalid_payload_returns_400(client, payload):
    response = await client.post("/api/repositories", json=payload)

    assert response.status_code == 400
    assert response.json()["error"] == "Validation failed"


@pytest.mark.asyncio
async def test_create_local_repository_accepts_absolute_path(client):
    response = await client.post(
        "/api/repositories",
        json={"name": "local", "url": "/srv/code/local", "provider": "local"},
    )

    assert response.status_code == 201


@pytest.mark.asyncio
async def test_update_repository_partial(client, db_session, make_repository):
    repository = await make_repository(description="before")
    await db_session.commit()

    response = await client.patch(
        f"/api/repositories/{repository.id}", json={"description": "after"}
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["description"] == "after"
    assert data["name"] == "demo"


@pytest.mark.asyncio
async def test_get_unknown_repository_returns_404(client):
    response = await client.get("/api/repositories/missing")

    assert response.status_code == 404
    assert response.json()["error_code"] == "NOT_FOUND"


@pytest.mark.asyncio
async def test_delete_repository_returns_cascade_counts(
    client, db_session, session_factory, make_repository, make_scan, make_vulnerability
):
    """DELETE는 종속 행까지 삭제하고 테이블별 삭제 수를 반환한다.

    Given: 스캔 1개, 취약점 2개, VDR 1개, CBOM 1개를 가진 저장소
    When: DELETE /api/repositories/{id}
    Then: 200, deleted 카운트 일치, DB에 종속 행이 남지 않음
    """
    # Arrange
    repository = await make_repository()
    scan = await make_scan(repository, status="completed")
    vuln = await make_vulnerability(scan)
    await make_vulnerability(scan, severity="low")
    db_session.add_all([
        VDRReport(vulnerability_id=vuln.id, content={}),
        CBOMReport(repository_id=repository.id, scan_id=scan.id, content={}),
    ])
    await db_session.commit()

    # Act
    response = await client.delete(f"/api/repositories/{repository.id}")

    # Assert
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["id"] == repository.id
    assert data["deleted"] == {
        "vdr_reports": 1,
        "vulnerabilities": 2,
        "cbom_reports": 1,
        "scans": 1,
        "repositories": 1,
    }
    async with session_factory() as verify:
        assert await verify.get(Scan, scan.id) is None
        assert await verify.get(Vulnerability, vuln.id) is None

    second = await client.delete(f"/api/repositories/{repository.id}")
    assert second.status_code == 404


# ──────────────────────────────────────────────────────────────
# 브랜치 조회
# ──────────────────────────────────────────────────────────────

@pytest.mark.asyncio
@respx.mock
async def test_temp_branches_for_github_url(client):
    respx.get(BRANCHES_URL).mock(
        return_value=httpx.Response(200, json=[{"name": "main"}, {"name": "dev"}])
    )

    response = await client.get(
        "/api/repositories/temp/branches",
        params={"url": "https://github.com/acme/demo.git"},
    )

    assert response.status_code == 200
    assert response.json()["data"] == {
        "repository_url": "https://github.com/acme/demo.git",
        "branches": ["main", "dev"],
    }


@pytest.mark.asyncio
async def test_temp_branches_rejects_non_github_url(client):
    response = await client.get(
        "/api/repositories/temp/branches",
        params={"url": "https://gitlab.com/acme/demo"},
    )

    assert response.status_code == 400
    assert response.json()["error"] == "Branch fetching only supported for GitHub repositories"


@pytest.mark.asyncio
@respx.mock
@pytest.mark.parametrize(
    "upstream_status, expected_status, error",
    [
        (404, 404, "Repository not found"),
        (403, 403, "Access forbidden - repository may be private"),
        (502, 500, "Failed to fetch branches"),
    ],
)
async def test_temp_branches_maps_upstream_errors(client, upstream_status, expected_status, error):
    respx.get(BRANCHES_URL).mock(return_value=httpx.Response(upstream_status))

    response = await client.get(
        "/api/repositories/temp/branches",
        params={"url": "https://github.com/acme/demo"},
    )

    assert response.status_code == expected_status
    assert response.json()["error"] == error


@pytest.mark.asyncio
@respx.mock
async def test_repository_branches_uses_requesting_users_token(client, db_session, make_repository):
    """등록된 저장소 브랜치 조회 시 X-User-Id 사용자의 토큰을 첨부한다."""
    # Arrange
    repository = await make_repository()
    db_session.add(
        ProviderToken(
            user_id="alice",
            name="alice-gh",
            provider="github",
            access_token=encrypt_token("ghp_alice"),
            organization_access=[],
        )
    )
    await db_session.commit()
    route = respx.get(BRANCHES_URL).mock(return_value=httpx.Response(200, json=[{"name": "main"}]))

    # Act
    response = await client.get(
        f"/api/repositories/{repository.id}/branches", headers={"X-User-Id": "alice"}
    )

    # Assert
    assert response.status_code == 200
    assert response.json()["data"]["branches"] == ["main"]
    assert route.calls[0].request.headers["authorization"] == "token ghp_alice"
