"""Bitbucket Cloud 플랫폼 서비스 구현 (API 2.0, Bearer 토큰)"""

from qscan.config import get_settings
from qscan.services.git_platform_service import GitPlatformService


class BitbucketPlatformService(GitPlatformService):
    provider = "bitbucket"

    def __init__(
        self,
        access_token: str,
        base_url: str | None = None,
        timeout: float | None = None,
    ) -> None:
        super().__init__(timeout)
        self.access_token = access_token
        self._api_base = (base_url or get_settings().BITBUCKET_API_BASE_URL).rstrip("/")
        self._headers = {"Authorization": f"Bearer {self.access_token}"}

    async def validate_credentials(self) -> bool:
        """GET /2.0/user 를 호출하여 200이면 True."""
        async with self._client() as client:
            resp = await client.get(f"{self._api_base}/user", headers=self._headers)
            return resp.status_code == 200
