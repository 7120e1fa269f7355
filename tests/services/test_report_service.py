"""ReportService 단위 테스트 — 저장, 최신 리포트 조회, 다운로드 본문"""

import json
from datetime import datetime, timedelta, timezone

import pytest

from qscan.errors import NotFoundError, ValidationError
from qscan.models.report import CBOMReport, VDRReport
from qscan.services.report_service import (
    PDF_UNAVAILABLE_NOTICE,
    ReportService,
    render_text_report,
)

CBOM_CONTENT = {"bomFormat": "CycloneDX", "components": [{"name": "RSA", "type": "cryptographic-asset"}]}


@pytest.mark.asyncio
async def test_store_cbom_report_takes_repository_from_scan(db_session, make_repository, make_scan):
    """CBOM 저장 시 repository_id는 스캔에서 가져온다."""
    repository = await make_repository()
    scan = await make_scan(repository, status="completed")
    service = ReportService(db_session)

    report = await service.store_cbom_report(scan.id, CBOM_CONTENT)

    assert report.repository_id == repository.id
    assert report.scan_id == scan.id
    assert report.bom_format == "CycloneDX"
    assert report.spec_version == "1.6"


@pytest.mark.asyncio
async def test_store_cbom_report_unknown_scan(db_session):
    service = ReportService(db_session)

    with pytest.raises(NotFoundError) as exc_info:
        await service.store_cbom_report("missing", CBOM_CONTENT)

    assert exc_info.value.message == "Scan not found"


@pytest.mark.asyncio
async def test_store_vdr_report_unknown_vulnerability(db_session):
    service = ReportService(db_session)

    with pytest.raises(NotFoundError) as exc_info:
        await service.store_vdr_report("missing", {})

    assert exc_info.value.message == "Vulnerability not found"


@pytest.mark.asyncio
async def test_get_cbom_report_returns_latest(db_session, make_repository, make_scan):
    """같은 스캔에 리포트가 여러 개면 가장 최근 것을 반환한다."""
    # Arrange
    repository = await make_repository()
    scan = await make_scan(repository)
    now = datetime.now(timezone.utc)
    db_session.add_all([
        CBOMReport(repository_id=repository.id, scan_id=scan.id, content={"v": 1},
                   created_at=now - timedelta(minutes=5)),
        CBOMReport(repository_id=repository.id, scan_id=scan.id, content={"v": 2},
                   created_at=now),
    ])
    await db_session.flush()
    service = ReportService(db_session)

    # Act
    report = await service.get_cbom_report(scan.id)

    # Assert
    assert report.content == {"v": 2}


@pytest.mark.asyncio
async def test_get_vdr_report_matches_exact_vulnerability_id(
    db_session, make_repository, make_scan, make_vulnerability
):
    """VDR 조회는 vulnerability_id 완전 일치만 허용한다."""
    scan = await make_scan(await make_repository())
    vulnerability = await make_vulnerability(scan)
    db_session.add(VDRReport(vulnerability_id=vulnerability.id, content={"ok": True}))
    await db_session.flush()
    service = ReportService(db_session)

    report = await service.get_vdr_report(vulnerability.id)
    assert report.content == {"ok": True}

    with pytest.raises(NotFoundError) as exc_info:
        await service.get_vdr_report(vulnerability.id[:8])
    assert exc_info.value.message == "VDR report not found"


@pytest.mark.asyncio
async def test_get_report_json_download(db_session, make_repository, make_scan):
    """json 다운로드는 저장된 content를 그대로 직렬화한다."""
    # Arrange
    scan = await make_scan(await make_repository())
    service = ReportService(db_session)
    await service.store_cbom_report(scan.id, CBOM_CONTENT)

    # Act
    download = await service.get_report("cbom", scan.id, "json")

    # Assert
    assert download.media_type == "application/json"
    assert download.filename == f"cbom-report-{scan.id}.json"
    assert json.loads(download.content) == CBOM_CONTENT


@pytest.mark.asyncio
async def test_get_report_json_keeps_non_ascii_text(db_session, make_repository, make_scan):
    """비ASCII 문자는 \\u 이스케이프 없이 그대로 내려간다."""
    scan = await make_scan(await make_repository())
    service = ReportService(db_session)
    content = {"metadata": {"component": "결제 모듈", "note": "Schlüssel"}}
    await service.store_cbom_report(scan.id, content)

    json_download = await service.get_report("cbom", scan.id, "json")
    text_download = await service.get_report("cbom", scan.id, "pdf")

    assert "결제 모듈" in json_download.content
    assert "\\u" not in json_download.content
    assert json.loads(json_download.content) == content
    assert "Schlüssel" in text_download.content


@pytest.mark.asyncio
async def test_get_report_pdf_returns_text_summary(db_session, make_repository, make_scan):
    """pdf 요청은 축소 모드 안내가 포함된 텍스트 요약을 반환한다.

    Given: 저장소 이름이 payments인 스캔의 CBOM 리포트
    When: get_report("cbom", scan_id, "pdf")
    Then: text/plain, .txt 파일명, 저장소 이름과 안내 문구 포함
    """
    # Arrange
    scan = await make_scan(await make_repository(name="payments"))
    service = ReportService(db_session)
    await service.store_cbom_report(scan.id, CBOM_CONTENT)

    # Act
    download = await service.get_report("cbom", scan.id, "pdf")

    # Assert
    assert download.media_type.startswith("text/plain")
    assert download.filename == f"cbom-report-{scan.id}.txt"
    assert download.content.startswith("CBOM Report - payments")
    assert f"Scan ID: {scan.id}" in download.content
    assert PDF_UNAVAILABLE_NOTICE in download.content


@pytest.mark.asyncio
async def test_get_report_vdr_pdf_uses_vulnerability_repository(
    db_session, make_repository, make_scan, make_vulnerability
):
    scan = await make_scan(await make_repository(name="ledger"))
    vulnerability = await make_vulnerability(scan)
    service = ReportService(db_session)
    await service.store_vdr_report(vulnerability.id, {"vulnerabilities": []})

    download = await service.get_report("vdr", vulnerability.id, "pdf")

    assert download.content.startswith("VDR Report - ledger")
    assert f"Vulnerability ID: {vulnerability.id}" in download.content


@pytest.mark.asyncio
async def test_get_report_rejects_unknown_format(db_session):
    service = ReportService(db_session)

    with pytest.raises(ValidationError):
        await service.get_report("cbom", "any", "xml")


@pytest.mark.asyncio
async def test_get_report_missing_report_raises_not_found(db_session):
    service = ReportService(db_session)

    with pytest.raises(NotFoundError):
        await service.get_report("cbom", "missing", "json")


def test_render_text_report_layout():
    generated = datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

    text = render_text_report("vdr", "v-1", "Unknown Repository", generated, {"a": 1})

    lines = text.splitlines()
    assert lines[0] == "VDR Report - Unknown Repository"
    assert lines[1] == f"Generated: {generated.isoformat()}"
    assert lines[2] == "Vulnerability ID: v-1"
    assert "Summary:" in lines
    assert text.rstrip().endswith("Download the JSON format for the complete report.")
