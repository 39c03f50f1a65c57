"""
질문 생성기

- DeviceQuestionGenerator: 기기 이름 + 증상 (+ 사진) → 질문 정확히 5개
- FollowUpQuestionGenerator: 이미지/설명 분석 결과 → 추가 질문 3-6개

질문 카테고리는 고정 enum (Power/Performance/Physical/Audio/Display/Connection/Usage/Environment)
"""
import json
from functools import partial
from typing import Any, Dict, Optional

from ..image_fetcher import clean_base64
from .base import BaseStage, StageResult
from .defaults import DEFAULT_DEVICE_QUESTIONS, DEFAULT_FOLLOW_UP_QUESTIONS
from .models import QuestionCategory
from .normalizer import repair_questions
from .prompts import DEVICE_QUESTIONS_PROMPT, FOLLOW_UP_QUESTIONS_PROMPT

DEVICE_QUESTION_COUNT = 5
FOLLOW_UP_MIN_QUESTIONS = 3
FOLLOW_UP_MAX_QUESTIONS = 6

CATEGORY_LIST = ", ".join(c.value for c in QuestionCategory)


class DeviceQuestionGenerator(BaseStage):
    """기기 기반 질문 생성기 (5개 고정)"""

    name = "DeviceQuestionGenerator"

    async def generate(
        self,
        device_name: str,
        description: str,
        image_base64: Optional[str] = None,
    ) -> StageResult:
        images = [clean_base64(image_base64)] if image_base64 and image_base64.strip() else None
        photo_section = "A photo of the device is attached.\n" if images else ""

        prompt = DEVICE_QUESTIONS_PROMPT.format(
            device_name=device_name,
            description=description,
            photo_section=photo_section,
            categories=CATEGORY_LIST,
            language_instruction=self.language_instruction(),
        )

        repair = partial(
            repair_questions,
            defaults=DEFAULT_DEVICE_QUESTIONS,
            min_items=DEVICE_QUESTION_COUNT,
            max_items=DEVICE_QUESTION_COUNT,
        )
        return await self._run(self.build_content(prompt, images), repair)


class FollowUpQuestionGenerator(BaseStage):
    """분석 결과 기반 추가 질문 생성기 (3-6개)"""

    name = "FollowUpQuestionGenerator"

    async def generate(
        self,
        description: str,
        device_name: Optional[str] = None,
        device_category: Optional[str] = None,
        image_analysis: Optional[Dict[str, Any]] = None,
        description_analysis: Optional[Dict[str, Any]] = None,
    ) -> StageResult:
        context_parts = []
        if image_analysis:
            context_parts.append(f"Photo analysis:\n{json.dumps(image_analysis, ensure_ascii=False, indent=2)}")
        if description_analysis:
            context_parts.append(
                f"Description analysis:\n{json.dumps(description_analysis, ensure_ascii=False, indent=2)}"
            )
        context_section = ("\n" + "\n\n".join(context_parts) + "\n") if context_parts else ""

        prompt = FOLLOW_UP_QUESTIONS_PROMPT.format(
            device=device_name or device_category or "device",
            description=description,
            context_section=context_section,
            categories=CATEGORY_LIST,
            language_instruction=self.language_instruction(),
        )

        repair = partial(
            repair_questions,
            defaults=DEFAULT_FOLLOW_UP_QUESTIONS,
            min_items=FOLLOW_UP_MIN_QUESTIONS,
            max_items=FOLLOW_UP_MAX_QUESTIONS,
        )
        return await self._run(prompt, repair)
