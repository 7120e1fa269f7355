"""저장소 관리 서비스 — 등록, 수정, 트랜잭션 cascade 삭제"""

import logging
from dataclasses import dataclass, field

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from qscan.errors import NotFoundError
from qscan.models.base import utcnow
from qscan.models.report import CBOMReport, VDRReport
from qscan.models.repository import Repository
from qscan.models.scan import Scan
from qscan.models.vulnerability import Vulnerability
from qscan.schemas.repository import RepositoryCreateRequest, RepositoryUpdateRequest

logger = logging.getLogger(__name__)


@dataclass
class RepositoryDeletion:
    """cascade 삭제 결과"""

    id: str
    counts: dict[str, int] = field(default_factory=dict)


class RepositoryService:
    """저장소 CRUD.

    삭제는 자식 -> 부모 순서로 종속 행을 지운 뒤 저장소를 지운다.
    스키마에 ON DELETE 동작이 없으므로 이 순서가 곧 참조 무결성이다.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def list_repositories(self) -> list[Repository]:
        """저장소 목록 (최신순)"""
        result = await self.db.execute(
            select(Repository).order_by(Repository.created_at.desc())
        )
        return list(result.scalars().all())

    async def get_repository(self, repository_id: str) -> Repository:
        """저장소를 조회한다.

        Raises:
            NotFoundError: 저장소가 없을 때
        """
        repository = await self.db.get(Repository, repository_id)
        if repository is None:
            raise NotFoundError("Repository not found", details=repository_id)
        return repository

    async def create_repository(self, data: RepositoryCreateRequest) -> Repository:
        repository = Repository(**data.model_dump())
        self.db.add(repository)
        await self.db.flush()
        logger.info(f"[RepositoryService] 저장소 등록: id={repository.id}, name={repository.name}")
        return repository

    async def update_repository(
        self,
        repository_id: str,
        patch: RepositoryUpdateRequest,
    ) -> Repository:
        """전달된 필드만 반영하는 부분 수정.

        Raises:
            NotFoundError: 저장소가 없을 때
        """
        repository = await self.get_repository(repository_id)
        for key, value in patch.model_dump(exclude_unset=True).items():
            setattr(repository, key, value)
        repository.updated_at = utcnow()
        await self.db.flush()
        return repository

    async def delete_repository(self, repository_id: str) -> RepositoryDeletion:
        """저장소와 종속 행을 하나의 트랜잭션에서 삭제한다.

        순서:
        1. 존재 확인 (행 잠금)
        2. 저장소 취약점 ID 수집
        3. 해당 취약점의 VDR 리포트 삭제
        4. 취약점 삭제
        5. CBOM 리포트 삭제
        6. 스캔 삭제
        7. 저장소 삭제 (compare-and-delete, 영향 행 1개여야 함)

        중간 단계가 실패하면 전체가 롤백된다.

        Args:
            repository_id: 삭제할 저장소 ID

        Returns:
            삭제된 저장소 ID와 테이블별 삭제 행 수

        Raises:
            NotFoundError: 저장소가 없거나 동시에 먼저 삭제되었을 때
        """
        try:
            # 1. 존재 확인 + 행 잠금 (SQLite에서는 FOR UPDATE가 생략됨)
            result = await self.db.execute(
                select(Repository.id)
                .where(Repository.id == repository_id)
                .with_for_update()
            )
            if result.scalar_one_or_none() is None:
                raise NotFoundError("Repository not found", details=repository_id)

            # 2. 취약점 ID 수집 (스캔 기준으로 연결된 행 포함)
            scan_ids = select(Scan.id).where(Scan.repository_id == repository_id)
            vuln_ids = list(
                (
                    await self.db.execute(
                        select(Vulnerability.id).where(
                            (Vulnerability.repository_id == repository_id)
                            | Vulnerability.scan_id.in_(scan_ids)
                        )
                    )
                ).scalars().all()
            )

            counts = {
                "vdr_reports": 0,
                "vulnerabilities": 0,
                "cbom_reports": 0,
                "scans": 0,
                "repositories": 0,
            }

            # 3. VDR 리포트
            if vuln_ids:
                counts["vdr_reports"] = await self._delete_where(
                    VDRReport, VDRReport.vulnerability_id.in_(vuln_ids)
                )

            # 4. 취약점
            if vuln_ids:
                counts["vulnerabilities"] = await self._delete_where(
                    Vulnerability, Vulnerability.id.in_(vuln_ids)
                )

            # 5. CBOM 리포트
            counts["cbom_reports"] = await self._delete_where(
                CBOMReport,
                (CBOMReport.repository_id == repository_id)
                | CBOMReport.scan_id.in_(scan_ids),
            )

            # 6. 스캔
            counts["scans"] = await self._delete_where(
                Scan, Scan.repository_id == repository_id
            )

            # 7. 저장소 (compare-and-delete)
            deleted = await self._delete_where(Repository, Repository.id == repository_id)
            if deleted != 1:
                raise NotFoundError("Repository not found", details=repository_id)
            counts["repositories"] = deleted

        except Exception:
            await self.db.rollback()
            raise

        # 세션 identity map에 남은 삭제된 객체 제거
        self.db.expunge_all()
        logger.info(f"[RepositoryService] 저장소 삭제: id={repository_id}, counts={counts}")
        return RepositoryDeletion(id=repository_id, counts=counts)

    async def _delete_where(self, model, condition) -> int:
        result = await self.db.execute(
            delete(model).where(condition).execution_options(synchronize_session=False)
        )
        return result.rowcount or 0
