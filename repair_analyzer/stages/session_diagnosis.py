"""
세션 진단 스테이지 (오케스트레이터 전용)

개별 스테이지와 달리 실패 시 fallback 문서를 만들지 않고 None 을 반환한다.
오케스트레이터가 None 을 보고 다음 경로로 넘어간다.
"""
import logging
from typing import Any, Mapping, Optional, Sequence

from pydantic import ValidationError

from ..errors import UpstreamModelError
from ..image_fetcher import FetchedImage
from .base import BaseStage
from .models import DiagnosisAnalysis
from .normalizer import extract_json_object, repair_diagnosis_analysis
from .prompts import SEARCH_DIAGNOSIS_PROMPT, VISION_DIAGNOSIS_PROMPT

logger = logging.getLogger(__name__)


class SessionDiagnosisStage(BaseStage):
    """분석 결과(visualAnalysis / likelyProblems / confidence / confirmationQuestions) 생성 공통"""

    name = "SessionDiagnosis"
    temperature = 0.1
    max_output_tokens = 1024

    async def _diagnose(self, content: Any, device_category: str) -> Optional[DiagnosisAnalysis]:
        try:
            text = await self._invoke(content)
        except UpstreamModelError as e:
            logger.warning(f"[{self.name}] {e}")
            return None

        raw = extract_json_object(text)
        if raw is None:
            logger.warning(f"[{self.name}] response had no JSON object")
            return None

        try:
            analysis, repaired = repair_diagnosis_analysis(raw, device_category)
        except ValidationError as e:
            logger.warning(f"[{self.name}] invalid analysis: {e.error_count()} errors")
            return None

        if repaired:
            logger.info(f"[{self.name}] repaired fields: {', '.join(repaired)}")
        return analysis


class VisionDiagnosis(SessionDiagnosisStage):
    """이미지 + 증상 기반 분석"""

    name = "VisionDiagnosis"

    async def analyze(
        self,
        images: Sequence[FetchedImage],
        device_category: str,
        symptoms: str = "",
    ) -> Optional[DiagnosisAnalysis]:
        prompt = VISION_DIAGNOSIS_PROMPT.format(
            device_category=device_category,
            symptoms=symptoms or "not described",
            language_instruction=self.language_instruction(),
        )
        return await self._diagnose(self.build_content(prompt, images), device_category)


class SearchDiagnosis(SessionDiagnosisStage):
    """웹 검색 결과 + 증상 기반 분석"""

    name = "SearchDiagnosis"

    async def analyze(
        self,
        search_results: Sequence[Mapping[str, Any]],
        device_category: str,
        symptoms: str = "",
    ) -> Optional[DiagnosisAnalysis]:
        search_content = "\n".join(
            f"{r.get('title', '')}: {r.get('snippet', '')}" for r in search_results
        )
        prompt = SEARCH_DIAGNOSIS_PROMPT.format(
            device_category=device_category,
            search_content=search_content,
            symptoms=symptoms or "not described",
            language_instruction=self.language_instruction(),
        )
        return await self._diagnose(prompt, device_category)
