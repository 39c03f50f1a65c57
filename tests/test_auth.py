"""
JWT 인증 테스트
"""
import time

import jwt
import pytest

from auth import extract_user_id_from_token, get_current_user_id, require_auth
from repair_analyzer.config import Settings, configure_settings
from repair_analyzer.errors import AuthError

from conftest import JWT_SECRET, TEST_USER_ID, make_token


class TestExtractUserId:
    """토큰 검증 테스트"""

    def test_valid_token(self, settings):
        assert extract_user_id_from_token(f"Bearer {make_token()}") == TEST_USER_ID

    @pytest.mark.parametrize("header", [None, "", "Token abc", "Bearer ", "bearer abc"])
    def test_malformed_header(self, settings, header):
        with pytest.raises(AuthError) as exc_info:
            extract_user_id_from_token(header)
        assert exc_info.value.status_code == 401

    def test_expired_token(self, settings):
        with pytest.raises(AuthError, match="expired"):
            extract_user_id_from_token(f"Bearer {make_token(expires_in=-60)}")

    def test_wrong_secret(self, settings):
        token = make_token(secret="another-secret-that-is-also-32-bytes-long")
        with pytest.raises(AuthError, match="Invalid token"):
            extract_user_id_from_token(f"Bearer {token}")

    def test_wrong_audience(self, settings):
        with pytest.raises(AuthError):
            extract_user_id_from_token(f"Bearer {make_token(audience='anon')}")

    def test_missing_subject(self, settings):
        token = jwt.encode(
            {"aud": "authenticated", "exp": int(time.time()) + 60},
            JWT_SECRET,
            algorithm="HS256",
        )
        with pytest.raises(AuthError):
            extract_user_id_from_token(f"Bearer {token}")

    def test_unsigned_token_rejected(self, settings):
        token = jwt.encode({"sub": TEST_USER_ID, "aud": "authenticated", "exp": int(time.time()) + 60},
                           key=None, algorithm="none")
        with pytest.raises(AuthError):
            extract_user_id_from_token(f"Bearer {token}")

    def test_no_secret_rejects_everything(self, settings):
        configure_settings(Settings(supabase_jwt_secret=None))
        with pytest.raises(AuthError):
            extract_user_id_from_token(f"Bearer {make_token()}")


class TestAuthDependencies:
    """FastAPI 의존성 테스트"""

    @pytest.mark.asyncio
    async def test_require_auth(self, settings):
        assert await require_auth(f"Bearer {make_token()}") == TEST_USER_ID
        with pytest.raises(AuthError):
            await require_auth(None)

    @pytest.mark.asyncio
    async def test_optional_user(self, settings):
        assert await get_current_user_id(f"Bearer {make_token()}") == TEST_USER_ID
        assert await get_current_user_id(None) is None
        assert await get_current_user_id("Bearer not-a-jwt") is None
