"""
번역기 - 사용자 입력 / AI 응답을 지원 언어 사이에서 번역

- 같은 언어면 모델을 호출하지 않고 원문 반환
- 실패한 항목은 원문 그대로 반환 (일괄 번역에서 다른 항목에 영향 없음)
"""
import logging
from typing import Any, List, Optional, Sequence

from ..concurrency import map_bounded
from ..llm.client import get_alternate_provider
from ..llm.language import LANGUAGE_NAMES, validate_language
from .base import BaseStage, StageResult
from .models import TranslationResult
from .prompts import CONTEXT_LABELS, TRANSLATION_PROMPT

logger = logging.getLogger(__name__)


class Translator(BaseStage):
    """번역기 (대체 프로바이더 사용)"""

    name = "Translator"
    temperature = 0.1
    max_output_tokens = 1024

    def __init__(self, *args: Any, **kwargs: Any):
        super().__init__(*args, **kwargs)
        if self.provider is None:
            self.provider = get_alternate_provider(self.settings)

    async def translate(
        self,
        text: str,
        from_language: str,
        to_language: str,
        context: str = "ai_response",
    ) -> str:
        """
        단건 번역

        Raises:
            UpstreamModelError: 모델 호출 실패
        """
        source = validate_language(from_language)
        target = validate_language(to_language)
        if source == target or not text.strip():
            return text

        prompt = TRANSLATION_PROMPT.format(
            context_label=CONTEXT_LABELS.get(context, "text"),
            from_language=LANGUAGE_NAMES[source],
            to_language=LANGUAGE_NAMES[target],
            text=text,
        )
        translated = (await self._invoke(prompt)).strip()
        return translated or text

    async def run(
        self,
        from_language: str,
        to_language: str,
        text: Optional[str] = None,
        texts: Sequence[str] = (),
        context: str = "ai_response",
    ) -> StageResult:
        """
        단건 / 일괄 번역

        일괄 번역은 동시 실행 수를 제한해 병렬로 처리하고,
        실패한 항목은 원문으로 채운다.
        """
        items: List[str] = ([text] if text is not None else []) + list(texts)

        async def translate_one(item: str) -> str:
            return await self.translate(item, from_language, to_language, context)

        results = await map_bounded(translate_one, items, self.settings.max_concurrency)

        translated: List[str] = []
        failures = 0
        for original, result in zip(items, results):
            if isinstance(result, BaseException):
                failures += 1
                logger.warning(f"[{self.name}] item failed, returning original text: {result}")
                translated.append(original)
            else:
                translated.append(result)

        single = translated.pop(0) if text is not None else None
        document = TranslationResult(
            translated_text=single,
            translations=translated,
            from_language=validate_language(from_language),
            to_language=validate_language(to_language),
        )
        return StageResult(
            document=document,
            used_fallback=failures > 0,
            repaired_fields=["translations"] if failures else [],
        )
