"""pytest 공통 픽스처 — SQLite 테스트 DB, 엔티티 팩토리, ASGI 테스트 클라이언트"""

import base64
import os

# 테스트용 환경변수를 qscan import 전에 설정하여 Settings 로드 오류 방지
TEST_ENV = {
    "DATABASE_URL": "sqlite+aiosqlite:///:memory:",
    "REDIS_URL": "redis://localhost:6379",
    "SCAN_QUEUE_ENABLED": "false",
    "TOKEN_ENCRYPTION_KEY": base64.urlsafe_b64encode(b"0" * 32).decode(),
    "APP_ENV": "development",
}
os.environ.update(TEST_ENV)

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy import event  # noqa: E402
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine  # noqa: E402

from qscan.config import get_settings  # noqa: E402
from qscan.models import Base  # noqa: E402
from qscan.models.repository import Repository  # noqa: E402
from qscan.models.scan import Scan  # noqa: E402
from qscan.models.vulnerability import Vulnerability  # noqa: E402


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """테스트마다 설정 캐시를 비워 monkeypatch한 환경변수가 반영되도록 한다."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


# ──────────────────────────────────────────────────────────────
# DB 픽스처
# ──────────────────────────────────────────────────────────────

@pytest_asyncio.fixture
async def engine(tmp_path):
    """테스트마다 새 SQLite 파일 DB를 만든다 (외래 키 강제 활성화)."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path}/test.db")

    @event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, _connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


# ──────────────────────────────────────────────────────────────
# 엔티티 팩토리
# ──────────────────────────────────────────────────────────────

@pytest.fixture
def make_repository(db_session):
    async def _make(**overrides) -> Repository:
        data = {
            "name": "demo",
            "url": "https://github.com/acme/demo",
            "provider": "github",
            "languages": ["python"],
        }
        data.update(overrides)
        repository = Repository(**data)
        db_session.add(repository)
        await db_session.flush()
        return repository

    return _make


@pytest.fixture
def make_scan(db_session):
    async def _make(repository: Repository, **overrides) -> Scan:
        data = {
            "repository_id": repository.id,
            "branch": "main",
            "status": "pending",
            "progress": 0,
        }
        data.update(overrides)
        scan = Scan(**data)
        db_session.add(scan)
        await db_session.flush()
        return scan

    return _make


@pytest.fixture
def make_vulnerability(db_session):
    async def _make(scan: Scan, **overrides) -> Vulnerability:
        data = {
            "scan_id": scan.id,
            "repository_id": scan.repository_id,
            "title": "RSA-2048 key generation",
            "description": "RSA is vulnerable to Shor's algorithm",
            "severity": "high",
            "file_path": "src/crypto.py",
            "start_line": 10,
            "end_line": 12,
            "pqc_category": "quantum_vulnerable",
            "detected_by": "semgrep",
        }
        data.update(overrides)
        vulnerability = Vulnerability(**data)
        db_session.add(vulnerability)
        await db_session.flush()
        return vulnerability

    return _make


# ──────────────────────────────────────────────────────────────
# API 클라이언트
# ──────────────────────────────────────────────────────────────

@pytest_asyncio.fixture
async def client(session_factory):
    """get_db를 테스트 DB 세션으로 오버라이드한 비동기 클라이언트."""
    from qscan.api.deps import get_db
    from qscan.main import create_app

    app = create_app()

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
