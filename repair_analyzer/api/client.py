"""
수리 진단 API 클라이언트

스테이지 엔드포인트 호출 + 재시도 정책:
- 최대 3회 시도, 대기 시간 base_delay * 2**attempt
- 4xx 는 재시도하지 않음 (요청 자체가 잘못됨)
- 5xx / 네트워크 에러는 재시도
"""
import asyncio
import logging
from typing import Any, Dict, List, Optional

import httpx

from ..errors import AuthError, InputError, QuotaError, RepairAssistantError, UpstreamModelError

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BASE_DELAY = 1.0
API_PREFIX = "/api/v1/repair"


class RepairApiClient:
    """
    비동기 API 클라이언트

    사용법:
    ```python
    async with RepairApiClient("http://localhost:7000", token=access_token) as client:
        questions = await client.generate_device_questions("Laptop", "fan noise")
    ```
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        base_delay: float = DEFAULT_BASE_DELAY,
        timeout: float = 60.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.max_attempts = max(1, max_attempts)
        self.base_delay = base_delay
        self._own_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=timeout)

    async def __aenter__(self) -> "RepairApiClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._own_client:
            await self._client.aclose()

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    @staticmethod
    def _client_error(response: httpx.Response) -> RepairAssistantError:
        try:
            data = response.json()
        except ValueError:
            data = None
        message = (data.get("error") if isinstance(data, dict) else None) or response.text
        if response.status_code == 401:
            return AuthError(message)
        if response.status_code == 403:
            return QuotaError(message)
        return InputError(message)

    async def post(self, path: str, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        POST + 재시도

        Raises:
            AuthError / QuotaError / InputError: 4xx (재시도 없음)
            UpstreamModelError: 재시도 후에도 5xx 또는 네트워크 에러
        """
        url = f"{self.base_url}{API_PREFIX}{path}"
        last_error: Optional[str] = None

        for attempt in range(self.max_attempts):
            try:
                response = await self._client.post(url, json=payload or {}, headers=self._headers())
            except httpx.TransportError as e:
                last_error = f"{type(e).__name__}: {e}"
            else:
                if response.status_code < 400:
                    return response.json()
                if response.status_code < 500:
                    raise self._client_error(response)
                last_error = f"HTTP {response.status_code}"

            if attempt < self.max_attempts - 1:
                delay = self.base_delay * 2 ** attempt
                logger.warning(f"[ApiClient] {path} failed ({last_error}), retry {attempt + 1} in {delay:.1f}s")
                await asyncio.sleep(delay)

        raise UpstreamModelError(f"{path} failed after {self.max_attempts} attempts: {last_error}")

    # ============================================================
    # Stage helpers
    # ============================================================
    async def analyze_image(
        self,
        device_category: str,
        image_urls: Optional[List[str]] = None,
        images_base64: Optional[List[str]] = None,
        language: str = "en",
    ) -> Dict[str, Any]:
        return await self.post("/analyze-image", {
            "deviceCategory": device_category,
            "imageUrls": image_urls or [],
            "imagesBase64": images_base64 or [],
            "language": language,
        })

    async def analyze_description(self, description: str, device_name: Optional[str] = None, **extra: Any) -> Dict[str, Any]:
        return await self.post("/analyze-description", {"description": description, "deviceName": device_name, **extra})

    async def generate_device_questions(self, device_name: str, description: str, language: str = "en") -> Dict[str, Any]:
        return await self.post("/generate-device-questions", {
            "deviceName": device_name,
            "description": description,
            "language": language,
        })

    async def generate_questions(self, description: str, **extra: Any) -> Dict[str, Any]:
        return await self.post("/generate-questions", {"description": description, **extra})

    async def final_diagnosis(self, device_name: str, **context: Any) -> Dict[str, Any]:
        return await self.post("/final-diagnosis", {"deviceName": device_name, **context})

    async def generate_alternatives(
        self,
        device_name: str,
        problem: str,
        steps: List[str],
        feedback: Optional[str] = None,
        **context: Any,
    ) -> Dict[str, Any]:
        return await self.post("/generate-alternatives", {
            "deviceName": device_name,
            "currentSolution": {"problem": problem, "steps": steps},
            "feedback": feedback,
            **context,
        })

    async def diagnose(
        self,
        session_id: str,
        image_urls: List[str],
        symptoms_text: str = "",
        device_category: str = "device",
    ) -> Dict[str, Any]:
        return await self.post("/diagnose", {
            "sessionId": session_id,
            "imageUrls": image_urls,
            "symptomsText": symptoms_text,
            "deviceCategory": device_category,
        })

    async def translate(self, text: str, to_language: str, from_language: str = "en") -> Dict[str, Any]:
        return await self.post("/translate", {"text": text, "fromLanguage": from_language, "toLanguage": to_language})

    async def repair_guidance(
        self,
        ai_analysis: Dict[str, Any],
        device_category: str,
        database_matches: Optional[List[Dict[str, Any]]] = None,
        symptoms_text: Optional[str] = None,
    ) -> Dict[str, Any]:
        return await self.post("/repair-guidance", {
            "aiAnalysis": ai_analysis,
            "deviceCategory": device_category,
            "databaseMatches": database_matches or [],
            "symptomsText": symptoms_text,
        })

    async def identify_components(
        self,
        image_base64: Optional[str] = None,
        image_url: Optional[str] = None,
        device_name: Optional[str] = None,
    ) -> Dict[str, Any]:
        return await self.post("/identify-components", {
            "imageBase64": image_base64,
            "imageUrl": image_url,
            "deviceName": device_name,
        })
