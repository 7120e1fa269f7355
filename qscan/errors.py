"""도메인 예외 계층 — 서비스 계층에서 발생시키고 main.py 핸들러가 HTTP 응답으로 변환한다"""


class AppError(Exception):
    """모든 애플리케이션 예외의 기반 클래스.

    Attributes:
        message: 사용자에게 노출되는 메시지
        details: 진단용 부가 정보 (제어 흐름에 사용하지 않는다)
    """

    status_code: int = 500
    error_code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, details: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(AppError):
    """잘못된 입력 (필수 필드 누락, URL 형식 오류, 미지원 포맷)"""

    status_code = 400
    error_code = "VALIDATION_ERROR"


class NotFoundError(AppError):
    """참조한 엔티티가 존재하지 않음"""

    status_code = 404
    error_code = "NOT_FOUND"


class ForbiddenError(AppError):
    """외부 provider가 접근을 거부함"""

    status_code = 403
    error_code = "FORBIDDEN"


class InvalidStateError(AppError):
    """스캔 상태 머신에서 허용되지 않는 전이"""

    status_code = 409
    error_code = "INVALID_STATE"


class UpstreamError(AppError):
    """외부 provider 호출의 예기치 않은 실패"""

    status_code = 500
    error_code = "UPSTREAM_ERROR"


class CredentialsRejectedError(UpstreamError):
    """provider가 첨부한 자격증명을 거부함 (401)"""


class StoreUnavailableError(AppError):
    """영속 저장소 연결 실패"""

    status_code = 503
    error_code = "STORE_UNAVAILABLE"
