"""
API 클라이언트 재시도 정책 테스트
"""
import json

import httpx
import pytest

from repair_analyzer.api import RepairApiClient
from repair_analyzer.errors import AuthError, InputError, QuotaError, UpstreamModelError


class ScriptedTransport:
    """응답 목록을 순서대로 돌려주는 transport 핸들러"""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def make_client(script: ScriptedTransport, **kwargs) -> RepairApiClient:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(script))
    return RepairApiClient("http://repair.test/", token="token-123", base_delay=0, http_client=http_client, **kwargs)


class TestRetryPolicy:
    """재시도 정책"""

    @pytest.mark.asyncio
    async def test_success_first_try(self):
        script = ScriptedTransport(httpx.Response(200, json={"success": True, "questions": []}))
        client = make_client(script)

        result = await client.generate_device_questions("Laptop", "fan noise")

        assert result["success"] is True
        request = script.requests[0]
        assert str(request.url) == "http://repair.test/api/v1/repair/generate-device-questions"
        assert request.headers["Authorization"] == "Bearer token-123"
        assert json.loads(request.content) == {"deviceName": "Laptop", "description": "fan noise", "language": "en"}

    @pytest.mark.asyncio
    async def test_retries_server_errors(self):
        script = ScriptedTransport(
            httpx.Response(503),
            httpx.ConnectError("connection reset"),
            httpx.Response(200, json={"success": True}),
        )
        client = make_client(script)

        assert await client.post("/translate", {"text": "hi", "toLanguage": "es"}) == {"success": True}
        assert len(script.requests) == 3

    @pytest.mark.asyncio
    async def test_gives_up_after_max_attempts(self):
        script = ScriptedTransport(*[httpx.Response(500) for _ in range(3)])
        client = make_client(script)

        with pytest.raises(UpstreamModelError, match="3 attempts"):
            await client.final_diagnosis("Laptop")
        assert len(script.requests) == 3

    @pytest.mark.asyncio
    async def test_backoff_delays(self, monkeypatch):
        delays = []

        async def fake_sleep(delay):
            delays.append(delay)

        monkeypatch.setattr("repair_analyzer.api.client.asyncio.sleep", fake_sleep)
        script = ScriptedTransport(*[httpx.Response(502) for _ in range(3)])
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(script))
        client = RepairApiClient("http://repair.test", base_delay=1.0, http_client=http_client)

        with pytest.raises(UpstreamModelError):
            await client.post("/diagnose")
        assert delays == [1.0, 2.0]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status,error", [
        (400, InputError),
        (401, AuthError),
        (403, QuotaError),
        (422, InputError),
    ])
    async def test_client_errors_not_retried(self, status, error):
        script = ScriptedTransport(httpx.Response(status, json={"success": False, "error": "nope"}))
        client = make_client(script)

        with pytest.raises(error) as exc_info:
            await client.diagnose("session-1", ["https://cdn.example.com/a.png"])

        assert exc_info.value.message == "nope"
        assert len(script.requests) == 1

    @pytest.mark.asyncio
    async def test_non_json_error_body(self):
        script = ScriptedTransport(httpx.Response(400, text="bad request"))
        client = make_client(script)

        with pytest.raises(InputError, match="bad request"):
            await client.analyze_description("no sound")

    @pytest.mark.asyncio
    async def test_repair_guidance_payload(self):
        script = ScriptedTransport(httpx.Response(200, json={"success": True, "steps": "1. Reflow"}))
        client = make_client(script)

        await client.repair_guidance({"likelyProblems": ["Cold joint"]}, "pcb", symptoms_text="flickers")

        request = script.requests[0]
        assert request.url.path == "/api/v1/repair/repair-guidance"
        assert json.loads(request.content) == {
            "aiAnalysis": {"likelyProblems": ["Cold joint"]},
            "deviceCategory": "pcb",
            "databaseMatches": [],
            "symptomsText": "flickers",
        }


class TestClientLifecycle:
    @pytest.mark.asyncio
    async def test_context_manager_closes_own_client(self):
        async with RepairApiClient("http://repair.test") as client:
            inner = client._client
        assert inner.is_closed

    @pytest.mark.asyncio
    async def test_injected_client_left_open(self):
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(ScriptedTransport()))
        async with RepairApiClient("http://repair.test", http_client=http_client):
            pass
        assert not http_client.is_closed
        await http_client.aclose()
