"""스캔 디스패처 — 생성된 스캔을 Redis(RQ) 큐에 등록한다"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

import redis
from rq import Queue

from qscan.config import get_settings
from qscan.models.repository import Repository
from qscan.models.scan import Scan
from qscan.services.scan_orchestrator import job_id_for

logger = logging.getLogger(__name__)

SCAN_QUEUE_NAME = "scans"
WORKER_ENTRYPOINT = "qscan.workers.scan_worker.run_scan"


@dataclass
class ScanJobMessage:
    """Redis 큐에 등록할 스캔 작업 메시지.

    이 구조체가 워커로 전달된다.
    """

    job_id: str
    scan_id: str
    repository_id: str
    repository_url: str
    branch: str
    tools: list[str] = field(default_factory=list)
    custom_rules: list[str] = field(default_factory=list)
    created_at: str = ""    # ISO 8601 형식


def build_message(scan: Scan, repository: Repository) -> ScanJobMessage:
    """스캔과 저장소 정보로 작업 메시지를 만든다."""
    config = scan.scan_config or {}
    return ScanJobMessage(
        job_id=job_id_for(scan.id),
        scan_id=scan.id,
        repository_id=repository.id,
        repository_url=repository.url,
        branch=scan.branch,
        tools=list(config.get("tools") or ["semgrep"]),
        custom_rules=list(config.get("custom_rules") or []),
        created_at=datetime.now(timezone.utc).isoformat(),
    )


def get_scan_queue() -> Queue:
    """설정의 REDIS_URL로 스캔 큐를 연다."""
    settings = get_settings()
    conn = redis.from_url(settings.REDIS_URL)
    return Queue(SCAN_QUEUE_NAME, connection=conn)


def enqueue_scan_job(scan: Scan, repository: Repository) -> str:
    """스캔 작업을 큐에 등록한다.

    Args:
        scan: pending 상태의 스캔
        repository: 스캔 대상 저장소

    Returns:
        등록된 RQ 작업 ID (job handle과 동일)

    Raises:
        redis.exceptions.RedisError: 큐 연결/등록 실패 시
    """
    settings = get_settings()
    message = build_message(scan, repository)
    queue = get_scan_queue()
    queue.enqueue(
        WORKER_ENTRYPOINT,
        args=(message,),
        job_id=message.job_id,
        job_timeout=settings.SCAN_JOB_TIMEOUT,
    )
    logger.info(f"[ScanDispatcher] 작업 등록: job_id={message.job_id}, scan_id={scan.id}")
    return message.job_id
