"""GitLab PAT 기반 플랫폼 서비스 구현

GitLab REST API v4를 사용한다.
인증: Personal Access Token (PRIVATE-TOKEN 헤더)
"""

from qscan.config import get_settings
from qscan.services.git_platform_service import GitPlatformService


class GitLabPlatformService(GitPlatformService):
    """GitLab REST API v4 기반 플랫폼 서비스.

    Self-managed 인스턴스를 위해 base_url을 설정할 수 있다.
    """

    provider = "gitlab"

    def __init__(
        self,
        access_token: str,
        base_url: str | None = None,
        timeout: float | None = None,
    ) -> None:
        """초기화.

        Args:
            access_token: GitLab Personal Access Token
            base_url: GitLab 인스턴스 URL (트레일링 슬래시 자동 제거)
            timeout: 호출 제한 시간 (초)
        """
        super().__init__(timeout)
        self.access_token = access_token
        self.base_url = (base_url or get_settings().GITLAB_BASE_URL).rstrip("/")
        self._api_base = f"{self.base_url}/api/v4"
        self._headers = {"PRIVATE-TOKEN": self.access_token}

    async def validate_credentials(self) -> bool:
        """GET /api/v4/user 를 호출하여 200이면 True."""
        async with self._client() as client:
            resp = await client.get(f"{self._api_base}/user", headers=self._headers)
            return resp.status_code == 200
