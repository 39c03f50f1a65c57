"""
수리 안내 생성기

Vision / 검색 분석 결과와 참조 DB 매칭을 받아 수리 안내
(steps / tools / estimatedCost / difficulty)를 만든다.
모델 실패 시 호출자가 넘긴 경로별 기본 안내로 대체된다.
"""
import json
from functools import partial
from typing import Any, Dict, Mapping, Optional, Sequence

from .base import BaseStage, StageResult
from .defaults import FALLBACK_GUIDANCE
from .normalizer import repair_repair_guidance
from .prompts import REPAIR_GUIDANCE_PROMPT

# 프롬프트에 넣는 DB 매칭 최대 개수
MAX_PROMPT_MATCHES = 3


def format_database_matches(matches: Optional[Sequence[Mapping[str, Any]]]) -> str:
    if not matches:
        return ""
    lines = ["", "Database matches found:"]
    for i, match in enumerate(matches[:MAX_PROMPT_MATCHES], 1):
        lines.append(f"Match {i} (confidence: {match.get('confidence', 0)}):")
        lines.append(json.dumps(match.get("record", {}), indent=2, ensure_ascii=False))
    return "\n".join(lines) + "\n"


class RepairGuidanceGenerator(BaseStage):
    """수리 안내 생성기"""

    name = "RepairGuidanceGenerator"
    temperature = 0.1
    max_output_tokens = 3000

    async def generate(
        self,
        ai_analysis: Mapping[str, Any],
        device_category: str,
        symptoms_text: Optional[str] = None,
        database_matches: Optional[Sequence[Mapping[str, Any]]] = None,
        defaults: Optional[Dict[str, str]] = None,
    ) -> StageResult:
        """
        Args:
            ai_analysis: 분석 결과 (visualAnalysis / likelyProblems ...)
            database_matches: 참조 DB 매칭 ({record, confidence, ...})
            defaults: 필드 / 전체 fallback 값 (기본: FALLBACK_GUIDANCE)

        Returns:
            StageResult[RepairGuidance]
        """
        prompt = REPAIR_GUIDANCE_PROMPT.format(
            device_category=device_category or "device",
            analysis=json.dumps(dict(ai_analysis), indent=2, ensure_ascii=False),
            symptoms_section=f"\nUser reported symptoms: {symptoms_text}\n" if symptoms_text else "",
            database_section=format_database_matches(database_matches),
            language_instruction=self.language_instruction(),
        )
        return await self._run(prompt, partial(repair_repair_guidance, defaults=defaults or FALLBACK_GUIDANCE))
