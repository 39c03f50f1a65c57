"""
웹 검색기 - 수리 정보 검색 (백업 경로)

검색 우선순위:
1. Google Custom Search API - GOOGLE_SEARCH_API_KEY + GOOGLE_CSE_ID 필요
2. 카테고리별 고정 결과 (키가 없거나 API 실패 시, 항상 같은 결과)

선택적으로 검색 결과를 근거로 모델이 수리 방법을 요약한다.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

import httpx

from ..errors import UpstreamModelError
from .base import BaseStage, StageResult
from .models import WebSearchResult
from .prompts import SEARCH_SOLUTION_PROMPT

logger = logging.getLogger(__name__)

GOOGLE_SEARCH_URL = "https://www.googleapis.com/customsearch/v1"

MAX_QUERY_LENGTH = 100
MAX_RESULTS = 5

SOURCE_GOOGLE = "google_search_api"
SOURCE_NO_API = "no_api_fallback"
SOURCE_API_ERROR = "api_error_fallback"

DEFAULT_SOLUTION = (
    "We couldn't generate a solution from web results right now. "
    "Disconnect power, inspect for visible damage and loose connections, "
    "and consult a professional technician if the problem persists."
)


def build_search_query(
    device_category: str,
    ai_analysis: Optional[Mapping[str, Any]] = None,
    symptoms_text: Optional[str] = None,
) -> str:
    """
    분석 결과로 검색어 구성 (최대 100자)

    deviceType / 브랜드 / 모델 / 보이는 문제 2개 + 'repair fix troubleshooting'
    """
    analysis = ai_analysis or {}
    specs = analysis.get("specifications") or {}
    issues = analysis.get("visibleIssues") or []
    if not issues and isinstance(analysis.get("problems"), list):
        issues = [p.get("label") for p in analysis["problems"] if isinstance(p, dict)]
    if not issues and symptoms_text:
        issues = [symptoms_text]

    terms = [
        analysis.get("deviceType") or device_category or "",
        specs.get("brand") if isinstance(specs, dict) else None,
        specs.get("model") if isinstance(specs, dict) else None,
        *[i for i in issues[:2] if isinstance(i, str)],
        "repair", "fix", "troubleshooting",
    ]
    query = " ".join(t.strip() for t in terms if isinstance(t, str) and t.strip())
    return query[:MAX_QUERY_LENGTH]


def _mock_result(title: str, path: str, snippet: str) -> Dict[str, str]:
    link = f"https://example.com/{path}"
    return {
        "title": title,
        "link": link,
        "snippet": snippet,
        "displayLink": "example.com",
        "formattedUrl": link,
    }


def mock_results(device_category: str) -> List[Dict[str, str]]:
    """카테고리별 고정 검색 결과 (검색 키가 없는 환경용)"""
    category = (device_category or "device").strip()
    slug = category.lower()

    by_category = {
        "instrument": [
            _mock_result(
                f"{category} Calibration and Repair Manual",
                f"instrument-repair/{slug}",
                "Professional repair guide for measuring instruments. Covers calibration procedures, "
                "component testing, and accuracy verification.",
            )
        ],
        "component": [
            _mock_result(
                "Electronic Component Testing and Replacement Guide",
                f"component-repair/{slug}",
                "How to test and replace electronic components. Use multimeter, oscilloscope, "
                "and component tester for accurate diagnosis.",
            )
        ],
        "pcb": [
            _mock_result(
                "PCB Repair Techniques and Circuit Board Troubleshooting",
                f"pcb-repair/{slug}",
                "Professional PCB repair methods. Trace repair, component replacement, "
                "solder joint inspection, and circuit analysis techniques.",
            )
        ],
        "board": [
            _mock_result(
                "Development Board Troubleshooting and Repair Guide",
                f"board-repair/{slug}",
                "Comprehensive guide for development board issues. Programming problems, "
                "power supply issues, and component failures.",
            )
        ],
    }
    if slug in by_category:
        return by_category[slug]

    return [
        _mock_result(
            f"{category} Troubleshooting Guide - Step by Step Repair",
            f"repair-guide/{slug}",
            f"Comprehensive troubleshooting guide for {category} devices. Common issues include power failures, "
            "connection problems, and component malfunctions. Follow safety protocols when working with electronics.",
        ),
        _mock_result(
            f"How to Fix Common {category} Problems - Electronics Repair",
            f"troubleshooting/{slug}",
            f"Step-by-step solutions for typical {category} issues. Check power supply, inspect connections, "
            "test components, and replace faulty parts as needed.",
        ),
        _mock_result(
            f"{category} Repair Safety Guidelines and Best Practices",
            f"safety/{slug}",
            f"Essential safety considerations for {category} repair. Always disconnect power, use anti-static "
            "precautions, wear safety equipment, and work in proper lighting.",
        ),
    ]


class WebSearcher(BaseStage):
    """Google Custom Search 기반 웹 검색기 (+ 선택적 요약)"""

    name = "WebSearcher"
    temperature = 0.3

    def __init__(self, *args: Any, http_client: Optional[httpx.AsyncClient] = None, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.http_client = http_client

    async def _google_search(self, query: str) -> Dict[str, Any]:
        params = {
            "key": self.settings.google_search_api_key,
            "cx": self.settings.google_cse_id,
            "q": query,
            "num": 10,
            "safe": "active",
        }
        timeout = self.settings.search_timeout_seconds

        if self.http_client is not None:
            response = await self.http_client.get(GOOGLE_SEARCH_URL, params=params, timeout=timeout)
        else:
            async with httpx.AsyncClient() as client:
                response = await client.get(GOOGLE_SEARCH_URL, params=params, timeout=timeout)

        response.raise_for_status()
        data = response.json()
        if not isinstance(data, dict):
            raise ValueError(f"Unexpected search response body: {type(data).__name__}")
        return data

    async def search(
        self,
        query: str,
        device_category: str,
        allow_mock: bool = True,
    ) -> Optional[WebSearchResult]:
        """
        검색 실행

        Args:
            allow_mock: False 면 실제 검색 결과가 없을 때 None 반환

        Returns:
            WebSearchResult (source: google_search_api | no_api_fallback | api_error_fallback)
        """
        if not self.settings.search_configured:
            logger.warning("[Search] GOOGLE_SEARCH_API_KEY / GOOGLE_CSE_ID not configured, using fallback results")
            if not allow_mock:
                return None
            return WebSearchResult(query=query, source=SOURCE_NO_API, results=mock_results(device_category))

        try:
            data = await self._google_search(query)
            items = data.get("items")
            items = [item for item in items if isinstance(item, dict)] if isinstance(items, list) else []
            if not items:
                raise ValueError("No search results found")

            results = [
                {
                    "title": item.get("title", ""),
                    "link": item.get("link", ""),
                    "snippet": item.get("snippet", ""),
                    "displayLink": item.get("displayLink", ""),
                    "formattedUrl": item.get("formattedUrl", ""),
                }
                for item in items[:MAX_RESULTS]
            ]
            total = (data.get("searchInformation") or {}).get("totalResults", "0")
            logger.info(f"[Search] Google search completed: {len(results)} results")
            return WebSearchResult(
                query=query,
                source=SOURCE_GOOGLE,
                results=results,
                total_results=int(total) if str(total).isdigit() else 0,
            )
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"[Search] Google Search API failed, using fallback results: {e}")
            if not allow_mock:
                return None
            return WebSearchResult(
                query=query,
                source=SOURCE_API_ERROR,
                results=mock_results(device_category),
                error=str(e),
            )

    async def summarize(self, search: WebSearchResult, device: str, analysis: str) -> str:
        """
        검색 결과를 근거로 수리 방법 요약

        Raises:
            UpstreamModelError: 모델 호출 실패
        """
        search_content = "\n".join(
            f"- {r.title}: {r.snippet} ({r.link})" for r in search.results
        ) or "(no results)"
        prompt = SEARCH_SOLUTION_PROMPT.format(
            device=device,
            analysis=analysis or "not available",
            search_content=search_content,
            language_instruction=self.language_instruction(),
        )
        return (await self._invoke(prompt)).strip()

    async def run(
        self,
        device_category: str,
        ai_analysis: Optional[Mapping[str, Any]] = None,
        symptoms_text: Optional[str] = None,
        summarize: bool = False,
    ) -> StageResult:
        """검색 (+ 요약) 스테이지 실행"""
        query = build_search_query(device_category, ai_analysis, symptoms_text)
        result = await self.search(query, device_category)

        used_fallback = result.source != SOURCE_GOOGLE
        repaired = ["results"] if used_fallback else []

        if summarize:
            device = (ai_analysis or {}).get("deviceType") or device_category
            analysis = (symptoms_text or "")[:200]
            result.search_query = f"How to repair {device} {analysis} step by step guide".replace("  ", " ")
            try:
                result.solution = await self.summarize(result, device, analysis) or DEFAULT_SOLUTION
            except UpstreamModelError as e:
                logger.warning(f"[{self.name}] {e} - using default solution")
                result.solution = DEFAULT_SOLUTION
                used_fallback = True
                repaired.append("solution")

        # 응답에 분석 컨텍스트 / 시각 포함
        extras = {
            "analysisContext": {
                "deviceCategory": device_category,
                "detectedIssues": list((ai_analysis or {}).get("visibleIssues") or []),
                "deviceType": (ai_analysis or {}).get("deviceType") or "",
                "symptomsText": symptoms_text or "",
            },
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        document = WebSearchResult.model_validate({**result.to_response(), **extras})
        return StageResult(document=document, used_fallback=used_fallback, repaired_fields=repaired)
