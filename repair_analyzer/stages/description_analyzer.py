"""
증상 설명 분석기

사용자의 자유 텍스트(+ 이미지 분석 결과)로 문제 우선순위와 핵심 키워드를 뽑는다.
"""
import json
from typing import Any, Dict, Optional

from .base import BaseStage, StageResult
from .defaults import FALLBACK_DESCRIPTION_ANALYSIS
from .normalizer import repair_description_analysis
from .prompts import DESCRIPTION_ANALYSIS_PROMPT


class DescriptionAnalyzer(BaseStage):
    """증상 설명 분석기"""

    name = "DescriptionAnalyzer"

    async def analyze(
        self,
        description: str,
        device_name: Optional[str] = None,
        device_category: Optional[str] = None,
        image_analysis: Optional[Dict[str, Any]] = None,
    ) -> StageResult:
        image_section = ""
        if image_analysis:
            image_section = (
                "\nImage analysis findings:\n"
                f"{json.dumps(image_analysis, ensure_ascii=False, indent=2)}\n"
            )

        prompt = DESCRIPTION_ANALYSIS_PROMPT.format(
            device=device_name or device_category or "device",
            description=description,
            image_section=image_section,
            language_instruction=self.language_instruction(),
        )
        return await self._run(prompt, repair_description_analysis, fallback=FALLBACK_DESCRIPTION_ANALYSIS)
