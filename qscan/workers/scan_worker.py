"""RQ 스캔 워커 — Redis 큐에서 스캔 작업을 가져와 처리한다.

실행 방법:
    python -m qscan.workers.scan_worker

또는:
    rq worker scans --url $REDIS_URL
"""

import asyncio
import logging
import shutil
import subprocess
import tempfile
from contextlib import asynccontextmanager
from pathlib import Path

import redis
from rq import Queue, Worker

from qscan.config import get_settings
from qscan.db import Database
from qscan.errors import InvalidStateError
from qscan.services.external_scanner import ExternalScanner, count_source_files
from qscan.services.scan_dispatcher import SCAN_QUEUE_NAME, ScanJobMessage
from qscan.services.scan_orchestrator import ScanOrchestrator

logger = logging.getLogger(__name__)

CLONE_TIMEOUT_SECONDS = 300
PROGRESS_CLONED = 10
PROGRESS_TOOLS_DONE = 90


# ──────────────────────────────────────────────────────────────
# DB 세션 컨텍스트 매니저 (워커 전용)
# ──────────────────────────────────────────────────────────────

@asynccontextmanager
async def get_async_session():
    """워커 전용 비동기 DB 세션 컨텍스트 매니저.

    작업 1건마다 엔진을 만들고 종료 시 정리한다 (asyncio.run 루프 단위).
    """
    settings = get_settings()
    database = Database.from_url(settings.DATABASE_URL)
    async with database.session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
            await database.dispose()


# ──────────────────────────────────────────────────────────────
# 워커 진입점
# ──────────────────────────────────────────────────────────────

def run_scan(message: ScanJobMessage) -> dict:
    """스캔 작업의 전체 파이프라인을 실행한다.

    RQ 워커가 Redis 큐에서 이 함수를 호출한다.
    동기 함수이지만 내부적으로 asyncio.run()으로 비동기 로직을 실행한다.

    Args:
        message: 스캔 작업 메시지 (ScanJobMessage)

    Returns:
        스캔 결과 요약 딕셔너리
    """
    logger.info(f"[WorkerID={message.job_id}] 스캔 작업 시작 (scan_id={message.scan_id})")

    try:
        result = asyncio.run(_run_scan_async(message))
        logger.info(f"[WorkerID={message.job_id}] 스캔 완료")
        return result
    except Exception as e:
        logger.error(f"[WorkerID={message.job_id}] 스캔 실패: {e}")
        raise


async def _run_scan_async(message: ScanJobMessage) -> dict:
    """비동기 스캔 파이프라인 실행.

    파이프라인:
    1. Scan 상태 -> scanning
    2. 저장소 shallow clone (progress 10)
    3. 설정된 도구 순서대로 실행 (progress 최대 90까지 비례 증가)
    4. Scan 상태 -> completed (파일 수 + 탐지 결과 저장)
    5. 임시 디렉토리 삭제 (finally)

    각 단계는 별도로 커밋되어 폴링하는 클라이언트가 진행률을 볼 수 있다.
    오류 시 Scan status -> failed (error_message 저장) 후 예외를 다시 던진다.
    """
    settings = get_settings()
    scanner = ExternalScanner(timeout_seconds=settings.SCAN_TOOL_TIMEOUT_SECONDS)
    work_dir = Path(tempfile.mkdtemp(prefix=f"qscan-{message.scan_id}-", dir=settings.SCAN_WORKDIR))

    async with get_async_session() as db:
        orchestrator = ScanOrchestrator(db)

        try:
            # 1. pending -> scanning
            await orchestrator.start_scan(message.scan_id)
            await db.commit()

            # 2. git clone
            clone_dir = work_dir / "repo"
            await asyncio.to_thread(
                clone_repository, message.repository_url, message.branch, clone_dir
            )
            await orchestrator.advance_progress(message.scan_id, PROGRESS_CLONED)
            await db.commit()

            # 3. 외부 도구 실행
            tools = _supported_tools(message)
            findings = []
            for index, tool in enumerate(tools, start=1):
                tool_findings = await asyncio.to_thread(
                    scanner.scan, tool, clone_dir, message.custom_rules
                )
                logger.info(
                    f"[WorkerID={message.job_id}] {tool} 스캔 완료: {len(tool_findings)}건 탐지"
                )
                findings.extend(tool_findings)
                progress = PROGRESS_CLONED + (PROGRESS_TOOLS_DONE - PROGRESS_CLONED) * index // len(tools)
                await orchestrator.advance_progress(message.scan_id, progress)
                await db.commit()

            # 4. scanning -> completed
            total_files = count_source_files(clone_dir)
            await orchestrator.complete_scan(
                message.scan_id,
                total_files=total_files,
                vulnerabilities=[f.to_vulnerability() for f in findings],
            )

            return {
                "job_id": message.job_id,
                "scan_id": message.scan_id,
                "status": "completed",
                "total_files": total_files,
                "findings": len(findings),
            }

        except Exception as e:
            logger.error(f"[WorkerID={message.job_id}] 파이프라인 실패: {e}")
            await db.rollback()
            await _mark_failed(orchestrator, message, str(e))
            await db.commit()
            raise

        finally:
            # 임시 디렉토리는 성공/실패 관계없이 항상 삭제
            _cleanup_work_dir(work_dir)


# ──────────────────────────────────────────────────────────────
# 내부 헬퍼 함수
# ──────────────────────────────────────────────────────────────

def clone_repository(repository_url: str, branch: str, dest: Path) -> None:
    """저장소를 지정 브랜치로 shallow clone 한다.

    Raises:
        RuntimeError: git 미설치, 타임아웃, clone 실패 시
    """
    cmd = ["git", "clone", "--depth", "1", "--branch", branch, repository_url, str(dest)]
    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=CLONE_TIMEOUT_SECONDS,
        )
    except subprocess.TimeoutExpired as e:
        raise RuntimeError(f"git clone timed out after {CLONE_TIMEOUT_SECONDS}s") from e
    except FileNotFoundError as e:
        raise RuntimeError("git is not installed") from e

    if result.returncode != 0:
        raise RuntimeError(f"git clone failed: {result.stderr.strip()[:300]}")


def _supported_tools(message: ScanJobMessage) -> list[str]:
    """알 수 없는 도구는 경고 후 건너뛴다."""
    tools = []
    for tool in message.tools:
        if tool in ExternalScanner.SUPPORTED_TOOLS:
            tools.append(tool)
        else:
            logger.warning(f"[WorkerID={message.job_id}] 지원하지 않는 도구 건너뜀: {tool}")
    return tools


async def _mark_failed(
    orchestrator: ScanOrchestrator,
    message: ScanJobMessage,
    error_message: str,
) -> None:
    """스캔을 failed로 기록한다. 이미 터미널 상태면 경고만 남긴다."""
    try:
        await orchestrator.fail_scan(message.scan_id, error_message)
    except InvalidStateError as e:
        logger.warning(f"[WorkerID={message.job_id}] 실패 기록 생략: {e.message}")


def _cleanup_work_dir(work_dir: Path) -> None:
    if work_dir.exists():
        try:
            shutil.rmtree(work_dir)
            logger.info(f"[ScanWorker] 임시 디렉토리 삭제 완료: {work_dir}")
        except OSError as e:
            logger.warning(f"[ScanWorker] 임시 디렉토리 삭제 실패: {e}")


# ──────────────────────────────────────────────────────────────
# 워커 시작
# ──────────────────────────────────────────────────────────────

def start_worker() -> None:
    """RQ 워커를 시작한다.

    'scans' 큐를 리스닝하며 스캔 작업을 처리한다.
    """
    settings = get_settings()
    redis_conn = redis.from_url(settings.REDIS_URL)
    queues = [Queue(SCAN_QUEUE_NAME, connection=redis_conn)]

    worker = Worker(queues, connection=redis_conn)
    redis_host = settings.REDIS_URL.split("@")[-1] if "@" in settings.REDIS_URL else settings.REDIS_URL
    logger.info(f"[ScanWorker] 워커 시작 (Redis: {redis_host})")
    worker.work()


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    start_worker()
