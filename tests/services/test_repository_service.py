"""RepositoryService 단위 테스트 — 부분 수정과 cascade 삭제"""

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from qscan.errors import NotFoundError
from qscan.models.report import CBOMReport, VDRReport
from qscan.models.repository import Repository
from qscan.models.scan import Scan
from qscan.models.vulnerability import Vulnerability
from qscan.schemas.repository import RepositoryCreateRequest, RepositoryUpdateRequest
from qscan.services.repository_service import RepositoryService


async def _count(session, model) -> int:
    return (await session.execute(select(func.count()).select_from(model))).scalar_one()


@pytest.mark.asyncio
async def test_create_repository(db_session):
    service = RepositoryService(db_session)

    repository = await service.create_repository(
        RepositoryCreateRequest(
            name="payments",
            url="https://github.com/acme/payments",
            provider="github",
            languages=["java"],
        )
    )

    assert repository.id
    assert repository.last_scan_at is None
    assert repository.languages == ["java"]


@pytest.mark.asyncio
async def test_update_repository_applies_only_sent_fields(db_session, make_repository):
    """전달되지 않은 필드는 그대로 유지된다."""
    # Arrange
    repository = await make_repository(description="original")
    service = RepositoryService(db_session)

    # Act
    updated = await service.update_repository(
        repository.id, RepositoryUpdateRequest(name="renamed")
    )

    # Assert
    assert updated.name == "renamed"
    assert updated.description == "original"
    assert updated.url == "https://github.com/acme/demo"


@pytest.mark.asyncio
async def test_get_unknown_repository_raises_not_found(db_session):
    service = RepositoryService(db_session)

    with pytest.raises(NotFoundError):
        await service.get_repository("missing")


@pytest.mark.asyncio
async def test_delete_repository_cascades_dependents(
    db_session, session_factory, make_repository, make_scan, make_vulnerability
):
    """저장소 삭제 시 스캔, 취약점, 리포트가 모두 삭제되고 다른 저장소는 유지된다.

    Given: 스캔 2개, 취약점 3개, VDR 2개, CBOM 1개를 가진 저장소와 별도 저장소 1개
    When: delete_repository() 호출 후 커밋
    Then: 테이블별 삭제 수 반환, 별도 저장소의 행은 그대로
    """
    # Arrange
    target = await make_repository(name="target")
    other = await make_repository(name="other", url="https://github.com/acme/other")

    scan_1 = await make_scan(target, status="completed")
    scan_2 = await make_scan(target, status="failed")
    vuln_1 = await make_vulnerability(scan_1)
    vuln_2 = await make_vulnerability(scan_1, severity="low")
    await make_vulnerability(scan_2)
    db_session.add_all([
        VDRReport(vulnerability_id=vuln_1.id, content={"vulnerabilities": []}),
        VDRReport(vulnerability_id=vuln_2.id, content={"vulnerabilities": []}),
        CBOMReport(repository_id=target.id, scan_id=scan_1.id, content={"components": []}),
    ])

    other_scan = await make_scan(other, status="completed")
    other_vuln = await make_vulnerability(other_scan)
    db_session.add(VDRReport(vulnerability_id=other_vuln.id, content={}))
    await db_session.commit()

    service = RepositoryService(db_session)

    # Act
    deletion = await service.delete_repository(target.id)
    await db_session.commit()

    # Assert
    assert deletion.id == target.id
    assert deletion.counts == {
        "vdr_reports": 2,
        "vulnerabilities": 3,
        "cbom_reports": 1,
        "scans": 2,
        "repositories": 1,
    }

    async with session_factory() as verify:
        assert await verify.get(Repository, target.id) is None
        assert await verify.get(Repository, other.id) is not None
        assert await _count(verify, Scan) == 1
        assert await _count(verify, Vulnerability) == 1
        assert await _count(verify, VDRReport) == 1
        assert await _count(verify, CBOMReport) == 0


@pytest.mark.asyncio
async def test_delete_repository_failure_midway_rolls_back(
    db_session, session_factory, make_repository, make_scan, make_vulnerability, monkeypatch
):
    """cascade 도중 실패하면 이미 지운 종속 행까지 모두 복구된다.

    Given: 스캔, 취약점, VDR, CBOM을 가진 저장소
    When: 스캔 삭제 단계에서 DB 에러 발생
    Then: 예외 전파, 저장소와 모든 종속 행이 그대로 남음
    """
    # Arrange
    repository = await make_repository()
    scan = await make_scan(repository, status="completed")
    vuln = await make_vulnerability(scan)
    db_session.add_all([
        VDRReport(vulnerability_id=vuln.id, content={"vulnerabilities": []}),
        CBOMReport(repository_id=repository.id, scan_id=scan.id, content={"components": []}),
    ])
    await db_session.commit()
    repository_id = repository.id

    original = RepositoryService._delete_where

    async def failing_delete_where(self, model, condition):
        if model is Scan:
            raise OperationalError("DELETE FROM scans", {}, Exception("disk I/O error"))
        return await original(self, model, condition)

    monkeypatch.setattr(RepositoryService, "_delete_where", failing_delete_where)
    service = RepositoryService(db_session)

    # Act
    with pytest.raises(OperationalError):
        await service.delete_repository(repository_id)

    # Assert
    async with session_factory() as verify:
        assert await verify.get(Repository, repository_id) is not None
        assert await _count(verify, Scan) == 1
        assert await _count(verify, Vulnerability) == 1
        assert await _count(verify, VDRReport) == 1
        assert await _count(verify, CBOMReport) == 1


@pytest.mark.asyncio
async def test_delete_repository_without_dependents(db_session, make_repository):
    """종속 행이 없는 저장소도 삭제되고 0건 카운트가 반환된다."""
    repository = await make_repository()
    await db_session.commit()
    service = RepositoryService(db_session)

    deletion = await service.delete_repository(repository.id)

    assert deletion.counts["repositories"] == 1
    assert deletion.counts["scans"] == 0
    assert deletion.counts["vulnerabilities"] == 0


@pytest.mark.asyncio
async def test_delete_unknown_repository_raises_not_found(db_session):
    service = RepositoryService(db_session)

    with pytest.raises(NotFoundError):
        await service.delete_repository("missing")


@pytest.mark.asyncio
async def test_delete_repository_twice_second_call_not_found(db_session, make_repository):
    """이미 삭제된 저장소를 다시 삭제하면 NotFoundError이다."""
    repository = await make_repository()
    await db_session.commit()
    service = RepositoryService(db_session)

    await service.delete_repository(repository.id)
    await db_session.commit()

    with pytest.raises(NotFoundError):
        await service.delete_repository(repository.id)
