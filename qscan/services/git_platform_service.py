"""Git 플랫폼 공통 추상 인터페이스 (Strategy Pattern)

GitHub / GitLab / Bitbucket 구현체가 이 계약을 따른다.
"""

from abc import ABC, abstractmethod

import httpx

from qscan.config import get_settings


class GitPlatformService(ABC):
    """Git 플랫폼 공통 인터페이스.

    모든 외부 호출은 PROVIDER_API_TIMEOUT_SECONDS 제한 시간을 가지며 재시도하지 않는다.
    """

    provider: str = ""

    def __init__(self, timeout: float | None = None) -> None:
        self._timeout = timeout if timeout is not None else get_settings().PROVIDER_API_TIMEOUT_SECONDS

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self._timeout)

    @abstractmethod
    async def validate_credentials(self) -> bool:
        """자격증명 유효성 검증 (인증된 API 1회 호출).

        Returns:
            유효하면 True, 그렇지 않으면 False

        Raises:
            httpx.HTTPError: 네트워크 오류 / 타임아웃
        """
