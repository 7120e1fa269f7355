"""토큰 암호화/복호화 유틸리티

Provider 토큰(PAT / App Password / OAuth 토큰)을 Fernet 대칭 암호화로 저장한다.
"""

import logging
from functools import lru_cache

from cryptography.fernet import Fernet, InvalidToken

from qscan.config import get_settings

logger = logging.getLogger(__name__)


@lru_cache
def _get_fernet() -> Fernet:
    """설정의 TOKEN_ENCRYPTION_KEY로 Fernet 인스턴스를 만든다.

    키가 설정되지 않은 경우(개발 환경) 프로세스 단위 임시 키를 생성한다.
    이 경우 프로세스가 재시작되면 기존 암호문은 복호화할 수 없다.

    Returns:
        Fernet 인스턴스

    Raises:
        ValueError: 키 형식이 잘못된 경우 (32바이트 base64url 아님)
    """
    key = get_settings().TOKEN_ENCRYPTION_KEY
    if not key:
        logger.warning("[TokenCrypto] TOKEN_ENCRYPTION_KEY 미설정 — 임시 키 사용")
        return Fernet(Fernet.generate_key())
    return Fernet(key.encode())


def encrypt_token(plain_token: str) -> str:
    """평문 토큰을 Fernet 대칭 암호화하여 base64 문자열로 반환한다.

    Args:
        plain_token: 암호화할 평문 토큰

    Returns:
        암호화된 토큰 문자열
    """
    return _get_fernet().encrypt(plain_token.encode()).decode()


def decrypt_token(encrypted_token: str) -> str:
    """암호화된 토큰을 복호화하여 평문으로 반환한다.

    복호화 실패(키 변경, 손상된 데이터) 시 빈 문자열을 반환한다.

    Args:
        encrypted_token: 암호화된 토큰 문자열

    Returns:
        복호화된 평문 토큰. 실패 시 빈 문자열.
    """
    try:
        return _get_fernet().decrypt(encrypted_token.encode()).decode()
    except InvalidToken:
        logger.warning("[TokenCrypto] 토큰 복호화 실패 (키 불일치 또는 손상된 데이터)")
        return ""
