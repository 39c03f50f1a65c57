"""
부품 식별기 - 부품 사진 한 장에서 이름 / 기능 / 용도 식별

모델이 JSON 대신 마크다운 요약("• Name: ...")만 돌려주면
요약 전체를 overallSuggestion 으로, Name 줄을 부품 목록으로 사용한다.
"""
import re
from typing import Any, Optional, Sequence

from ..image_fetcher import FetchedImage
from .base import BaseStage, StageResult
from .defaults import FALLBACK_COMPONENT_IDENTIFICATION
from .normalizer import extract_json_object, repair_component_identification, strip_code_fences
from .prompts import COMPONENT_IDENTIFICATION_PROMPT

_NAME_LINE = re.compile(r"•\s*Name:\s*([^\n]+)")


def _parse_identification(text: str) -> Any:
    parsed = extract_json_object(text)
    if parsed is not None:
        return parsed
    summary = strip_code_fences(text or "").strip()
    if not summary:
        return None
    return {
        "overallSuggestion": summary,
        "components": [{"name": m.strip()} for m in _NAME_LINE.findall(summary)],
    }


class ComponentIdentifier(BaseStage):
    """부품 사진 식별기"""

    name = "ComponentIdentifier"
    temperature = 0.2
    max_output_tokens = 1024

    async def identify(
        self,
        images: Sequence[FetchedImage],
        device_name: Optional[str] = None,
    ) -> StageResult:
        prompt = COMPONENT_IDENTIFICATION_PROMPT.format(
            device_name=device_name or "electronic component",
            language_instruction=self.language_instruction(),
        )
        return await self._run(
            self.build_content(prompt, images[:1]),
            repair_component_identification,
            fallback=FALLBACK_COMPONENT_IDENTIFICATION,
            parse=_parse_identification,
        )
