"""토큰 암호화 유틸리티 단위 테스트"""

import pytest
from cryptography.fernet import Fernet

from qscan.services import token_crypto
from qscan.services.token_crypto import decrypt_token, encrypt_token


@pytest.fixture(autouse=True)
def reset_fernet_cache():
    token_crypto._get_fernet.cache_clear()
    yield
    token_crypto._get_fernet.cache_clear()


def test_encrypt_then_decrypt_returns_plain_token():
    encrypted = encrypt_token("ghp_abc123")

    assert encrypted != "ghp_abc123"
    assert decrypt_token(encrypted) == "ghp_abc123"


def test_decrypt_with_different_key_returns_empty_string(monkeypatch):
    """키가 바뀌면 기존 암호문은 복호화되지 않고 빈 문자열을 반환한다."""
    # Arrange
    encrypted = encrypt_token("ghp_abc123")
    monkeypatch.setenv("TOKEN_ENCRYPTION_KEY", Fernet.generate_key().decode())
    from qscan.config import get_settings

    get_settings.cache_clear()
    token_crypto._get_fernet.cache_clear()

    # Act
    result = decrypt_token(encrypted)

    # Assert
    assert result == ""


def test_missing_key_falls_back_to_ephemeral_key(monkeypatch):
    monkeypatch.setenv("TOKEN_ENCRYPTION_KEY", "")
    from qscan.config import get_settings

    get_settings.cache_clear()

    encrypted = encrypt_token("glpat-xyz")

    assert decrypt_token(encrypted) == "glpat-xyz"
