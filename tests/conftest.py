"""
공통 테스트 픽스처

모델 호출은 FakeListChatModel 또는 예외를 던지는 스텁으로 대체하고,
Supabase 는 체이닝 API 를 흉내 내는 가짜 클라이언트로 대체한다.
"""
import asyncio
import json
import time
from typing import Any, Dict, List, Optional

import httpx
import jwt
import pytest
from langchain_core.language_models.fake_chat_models import FakeListChatModel
from langchain_core.messages import AIMessage

from repair_analyzer import config
from repair_analyzer.config import Settings, configure_settings

JWT_SECRET = "test-jwt-secret-with-at-least-32-bytes!!"
TEST_USER_ID = "11111111-2222-3333-4444-555555555555"


# ============================================================
# Model Stubs
# ============================================================
class RaisingChatModel:
    """항상 실패하는 모델 (네트워크 / 프로바이더 에러)"""

    def __init__(self, error: Optional[Exception] = None):
        self.error = error or RuntimeError("model unavailable")
        self.calls = 0

    async def ainvoke(self, *args: Any, **kwargs: Any):
        self.calls += 1
        raise self.error


class SlowChatModel:
    """제한 시간보다 늦게 응답하는 모델"""

    def __init__(self, delay: float = 1.0):
        self.delay = delay

    async def ainvoke(self, *args: Any, **kwargs: Any):
        await asyncio.sleep(self.delay)
        raise AssertionError("should have timed out")


class RecordingChatModel:
    """받은 메시지를 기록하고 고정 응답을 순서대로 돌려주는 모델"""

    def __init__(self, *responses: str):
        self.responses = list(responses)
        self.messages: List[Any] = []

    async def ainvoke(self, messages: Any, *args: Any, **kwargs: Any) -> AIMessage:
        self.messages.append(messages)
        index = min(len(self.messages), len(self.responses)) - 1
        return AIMessage(content=self.responses[index])

    @property
    def contents(self) -> List[Any]:
        return [m[0].content for m in self.messages]

    @property
    def last_content(self) -> Any:
        return self.messages[-1][0].content


def fake_llm(*responses: Any) -> FakeListChatModel:
    """응답 순서대로 돌려주는 모델 (dict / list 는 JSON 문자열로 변환)"""
    return FakeListChatModel(
        responses=[r if isinstance(r, str) else json.dumps(r) for r in responses]
    )


# ============================================================
# Supabase Stub
# ============================================================
class FakeResponse:
    def __init__(self, data: Any):
        self.data = data


class FakeQuery:
    def __init__(self, client: "FakeSupabase", table: str):
        self.client = client
        self.table_name = table
        self._limit: Optional[int] = None
        self._update: Optional[Dict[str, Any]] = None
        self._filters: List[tuple] = []

    def select(self, *args: Any, **kwargs: Any) -> "FakeQuery":
        return self

    def limit(self, n: int) -> "FakeQuery":
        self._limit = n
        return self

    def update(self, values: Dict[str, Any]) -> "FakeQuery":
        self._update = values
        return self

    def eq(self, column: str, value: Any) -> "FakeQuery":
        self._filters.append((column, value))
        return self

    def execute(self) -> FakeResponse:
        if self.client.fail:
            raise RuntimeError("database unavailable")
        if self._update is not None:
            self.client.updates.append((self.table_name, list(self._filters), dict(self._update)))
            return FakeResponse([{**dict(self._filters), **self._update}])
        rows = list(self.client.tables.get(self.table_name, []))
        for column, value in self._filters:
            rows = [r for r in rows if r.get(column) == value]
        if self._limit is not None:
            rows = rows[: self._limit]
        return FakeResponse(rows)


class FakeRpc:
    def __init__(self, client: "FakeSupabase", name: str, params: Dict[str, Any]):
        self.client = client
        self.name = name
        self.params = params

    def execute(self) -> FakeResponse:
        if self.client.fail:
            raise RuntimeError("database unavailable")
        self.client.rpc_calls.append((self.name, dict(self.params)))
        return FakeResponse(self.client.rpc_result)


class FakeSupabase:
    """supabase.Client 의 table / rpc 체이닝 흉내"""

    def __init__(
        self,
        tables: Optional[Dict[str, List[Dict[str, Any]]]] = None,
        rpc_result: Any = None,
        fail: bool = False,
    ):
        self.tables = tables or {}
        self.rpc_result = rpc_result
        self.fail = fail
        self.updates: List[tuple] = []
        self.rpc_calls: List[tuple] = []

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def rpc(self, name: str, params: Dict[str, Any]) -> FakeRpc:
        return FakeRpc(self, name, params)


# ============================================================
# HTTP Stub
# ============================================================
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + bytes(range(256)) * 4


def image_transport(status: int = 200, body: bytes = PNG_BYTES) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        if status >= 400:
            return httpx.Response(status)
        return httpx.Response(status, content=body, headers={"content-type": "image/png"})
    return httpx.MockTransport(handler)


# ============================================================
# Fixtures
# ============================================================
@pytest.fixture
def settings():
    """테스트용 설정 (전역 설정도 교체 후 복원)"""
    previous = config._settings
    test_settings = configure_settings(Settings(
        supabase_jwt_secret=JWT_SECRET,
        model_timeout_seconds=2.0,
        image_fetch_timeout_seconds=2.0,
        daily_free_scans=3,
    ))
    yield test_settings
    config._settings = previous


def make_token(
    user_id: str = TEST_USER_ID,
    secret: str = JWT_SECRET,
    audience: str = "authenticated",
    expires_in: int = 3600,
) -> str:
    now = int(time.time())
    return jwt.encode(
        {"sub": user_id, "aud": audience, "iat": now, "exp": now + expires_in},
        secret,
        algorithm="HS256",
    )


@pytest.fixture
def auth_headers(settings) -> Dict[str, str]:
    return {"Authorization": f"Bearer {make_token()}"}
