"""Provider 토큰 게이트웨이 — 저장된 자격증명으로 외부 Git 호스팅 API를 호출한다

- 토큰 검증: 인증된 경량 API 1회 호출, 재시도 / 캐시 없음
- 브랜치 조회: GitHub URL만 지원, 소유자에 맞는 저장 토큰을 자동으로 첨부
"""

import logging
from dataclasses import dataclass
from urllib.parse import urlparse

import httpx
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from qscan.errors import CredentialsRejectedError, NotFoundError, ValidationError
from qscan.models.provider_token import ProviderToken
from qscan.services.github_platform_service import GitHubPlatformService
from qscan.services.platform_factory import get_platform_service
from qscan.services.token_crypto import decrypt_token

logger = logging.getLogger(__name__)

GITHUB_HOSTS = ("github.com", "www.github.com")


@dataclass
class TokenTestResult:
    """토큰 검증 결과"""

    success: bool
    provider: str
    message: str


def parse_github_url(repository_url: str) -> tuple[str, str]:
    """GitHub 저장소 URL에서 (owner, repo)를 추출한다.

    허용 형식: https://github.com/<owner>/<repo>[.git][/...]

    Raises:
        ValidationError: GitHub가 아니거나 형식이 잘못된 경우
    """
    parsed = urlparse((repository_url or "").strip())
    if parsed.scheme not in ("http", "https") or not parsed.hostname:
        raise ValidationError("Invalid repository URL", details=repository_url)
    if parsed.hostname.lower() not in GITHUB_HOSTS:
        raise ValidationError(
            "Branch fetching only supported for GitHub repositories",
            details=repository_url,
        )

    parts = [p for p in parsed.path.split("/") if p]
    if len(parts) < 2:
        raise ValidationError("Invalid GitHub repository URL", details=repository_url)

    owner, repo = parts[0], parts[1]
    if repo.endswith(".git"):
        repo = repo[: -len(".git")]
    if not repo:
        raise ValidationError("Invalid GitHub repository URL", details=repository_url)
    return owner, repo


class ProviderTokenGateway:
    """저장된 ProviderToken을 외부 API 호출로 연결한다."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def test_token(self, token_id: str) -> TokenTestResult:
        """저장된 토큰으로 인증 API를 1회 호출해 유효성을 확인한다.

        네트워크 실패는 예외가 아니라 실패 결과로 반환한다.

        Raises:
            NotFoundError: 토큰이 없을 때
        """
        token = await self.db.get(ProviderToken, token_id)
        if token is None:
            raise NotFoundError("Provider token not found", details=token_id)

        plain = decrypt_token(token.access_token)
        if not plain:
            return TokenTestResult(
                success=False,
                provider=token.provider,
                message="Stored token could not be decrypted",
            )

        service = get_platform_service(token.provider, plain)
        try:
            valid = await service.validate_credentials()
        except httpx.HTTPError as e:
            logger.warning(f"[ProviderTokenGateway] 토큰 검증 호출 실패: id={token_id}, error={e!r}")
            return TokenTestResult(
                success=False,
                provider=token.provider,
                message=f"Connection to {token.provider} failed: {e.__class__.__name__}",
            )

        if valid:
            return TokenTestResult(success=True, provider=token.provider, message="Token is valid")
        return TokenTestResult(
            success=False,
            provider=token.provider,
            message=f"Token was rejected by {token.provider}",
        )

    async def list_branches(self, repository_url: str, user_id: str | None = None) -> list[str]:
        """GitHub 저장소의 브랜치 이름 목록을 반환한다.

        user_id의 활성 GitHub 토큰이 있으면 첨부하고, 없으면 익명으로 호출한다.
        첨부한 토큰이 401로 거부되면 익명으로 한 번 더 호출한다.

        Raises:
            ValidationError: GitHub URL이 아니거나 형식이 잘못된 경우
            NotFoundError / ForbiddenError / UpstreamError: 외부 API 응답에 따라
        """
        owner, repo = parse_github_url(repository_url)
        access_token = await self._select_github_token(user_id, owner) if user_id else None

        try:
            branches = await GitHubPlatformService(access_token=access_token).list_branches(owner, repo)
        except CredentialsRejectedError:
            if access_token is None:
                raise
            logger.warning(
                f"[ProviderTokenGateway] 저장된 GitHub 토큰 거부됨, 익명 재시도: {owner}/{repo}"
            )
            access_token = None
            branches = await GitHubPlatformService().list_branches(owner, repo)
        logger.info(
            f"[ProviderTokenGateway] 브랜치 조회: {owner}/{repo}, "
            f"count={len(branches)}, authenticated={access_token is not None}"
        )
        return branches

    async def _select_github_token(self, user_id: str, owner: str) -> str | None:
        """owner를 organization_access에 포함한 토큰을 우선 선택한다."""
        result = await self.db.execute(
            select(ProviderToken)
            .where(
                ProviderToken.user_id == user_id,
                ProviderToken.provider == "github",
                ProviderToken.is_active.is_(True),
            )
            .order_by(ProviderToken.created_at.desc())
        )
        tokens = list(result.scalars().all())
        owner_lower = owner.lower()
        tokens.sort(
            key=lambda t: owner_lower not in [o.lower() for o in (t.organization_access or [])]
        )

        for token in tokens:
            plain = decrypt_token(token.access_token)
            if plain:
                return plain
        return None
