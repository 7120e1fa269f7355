"""GitHub REST API 기반 플랫폼 서비스 (PAT 또는 익명 호출)"""

import logging

import httpx

from qscan.config import get_settings
from qscan.errors import CredentialsRejectedError, ForbiddenError, NotFoundError, UpstreamError
from qscan.services.git_platform_service import GitPlatformService

logger = logging.getLogger(__name__)

USER_AGENT = "Q-Scan-PQC-Scanner"
BRANCHES_PER_PAGE = 100
# 브랜치 페이지 수 상한 (100 x 10 = 1000개)
MAX_BRANCH_PAGES = 10


class GitHubPlatformService(GitPlatformService):
    """GitHub REST API v3 기반 플랫폼 서비스.

    access_token이 없으면 익명으로 호출한다 (공개 저장소만 접근 가능).
    """

    provider = "github"

    def __init__(
        self,
        access_token: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
    ) -> None:
        super().__init__(timeout)
        self.access_token = access_token
        self.base_url = (base_url or get_settings().GITHUB_API_BASE_URL).rstrip("/")
        self._headers = {
            "Accept": "application/vnd.github.v3+json",
            "User-Agent": USER_AGENT,
        }
        if access_token:
            self._headers["Authorization"] = f"token {access_token}"

    async def validate_credentials(self) -> bool:
        """GET /user 를 호출하여 200이면 True."""
        async with self._client() as client:
            resp = await client.get(f"{self.base_url}/user", headers=self._headers)
            return resp.status_code == 200

    async def list_branches(self, owner: str, repo: str) -> list[str]:
        """저장소 브랜치 이름 목록을 조회한다.

        100개 단위 페이지를 짧은 페이지가 나올 때까지 따라간다 (최대 MAX_BRANCH_PAGES).

        Args:
            owner: 저장소 소유자 (사용자 또는 조직)
            repo: 저장소 이름 (.git 제거된 값)

        Returns:
            브랜치 이름 목록

        Raises:
            NotFoundError: 저장소가 없을 때 (404)
            ForbiddenError: 접근 거부 (403, 비공개 저장소 등)
            UpstreamError: 그 외 비정상 응답 또는 네트워크 오류
        """
        url = f"{self.base_url}/repos/{owner}/{repo}/branches"
        branches: list[str] = []

        try:
            async with self._client() as client:
                for page in range(1, MAX_BRANCH_PAGES + 1):
                    resp = await client.get(
                        url,
                        headers=self._headers,
                        params={"per_page": BRANCHES_PER_PAGE, "page": page},
                    )
                    self._raise_for_status(resp, owner, repo)
                    items = self._branch_names(resp)
                    branches.extend(items)
                    if len(items) < BRANCHES_PER_PAGE:
                        break
                else:
                    logger.warning(
                        f"[GitHubPlatformService] 브랜치 페이지 상한 도달: {owner}/{repo}"
                    )
        except httpx.HTTPError as e:
            raise UpstreamError("Failed to fetch branches", details=str(e)) from e

        return branches

    @staticmethod
    def _branch_names(resp: httpx.Response) -> list[str]:
        """브랜치 목록 응답 본문에서 이름만 추출한다."""
        try:
            items = resp.json()
            return [str(item["name"]) for item in items]
        except (ValueError, TypeError, KeyError) as e:
            raise UpstreamError(
                "Failed to fetch branches",
                details=f"Unexpected GitHub API response: {resp.text[:200]}",
            ) from e

    @staticmethod
    def _raise_for_status(resp: httpx.Response, owner: str, repo: str) -> None:
        if resp.status_code == 401:
            raise CredentialsRejectedError(
                "Failed to fetch branches",
                details=f"GitHub API rejected credentials: {resp.text[:200]}",
            )
        if resp.status_code == 404:
            raise NotFoundError("Repository not found", details=f"{owner}/{repo}")
        if resp.status_code == 403:
            raise ForbiddenError(
                "Access forbidden - repository may be private",
                details=f"{owner}/{repo}",
            )
        if not resp.is_success:
            raise UpstreamError(
                "Failed to fetch branches",
                details=f"GitHub API responded {resp.status_code}: {resp.text[:200]}",
            )
