"""플랫폼 서비스 팩토리

Provider 이름에 따라 적절한 GitPlatformService 구현체를 반환한다.
"""

from qscan.services.git_platform_service import GitPlatformService


def get_platform_service(provider: str, access_token: str) -> GitPlatformService:
    """provider에 맞는 서비스 인스턴스를 반환한다.

    Args:
        provider: github / gitlab / bitbucket
        access_token: 복호화된 평문 토큰

    Returns:
        플랫폼에 맞는 GitPlatformService 구현체

    Raises:
        ValueError: 지원하지 않는 provider인 경우
    """
    match provider:
        case "github":
            from qscan.services.github_platform_service import GitHubPlatformService
            return GitHubPlatformService(access_token=access_token)
        case "gitlab":
            from qscan.services.gitlab_platform_service import GitLabPlatformService
            return GitLabPlatformService(access_token=access_token)
        case "bitbucket":
            from qscan.services.bitbucket_platform_service import BitbucketPlatformService
            return BitbucketPlatformService(access_token=access_token)
        case _:
            raise ValueError(f"지원하지 않는 provider: {provider}")
