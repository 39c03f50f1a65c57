"""
대안 해결책 생성기

수리 가이드가 효과가 없었을 때, 같은 컨텍스트 + 거절된 해결책으로
순위가 매겨진 대안 가설을 만든다.
"""
from typing import Any, List, Optional

from .context import format_answers, format_session_context
from .base import BaseStage, StageResult
from .normalizer import repair_alternatives
from .prompts import ALTERNATIVES_PROMPT


class AlternativeSolutionGenerator(BaseStage):
    """대안 해결책 생성기"""

    name = "AlternativeSolutionGenerator"
    temperature = 0.5

    async def generate(
        self,
        device_name: str,
        rejected_problem: str,
        rejected_steps: List[str],
        feedback: Optional[str] = None,
        **context: Any,
    ) -> StageResult:
        questions = context.pop("questions", None) or []
        answers = context.pop("answers", None) or {}

        session_context = format_session_context(device_name=device_name, **context)
        if answers:
            session_context += "\n\nUser Answers to Questions:\n" + format_answers(questions, answers)

        steps_text = "\n".join(f"- {s}" for s in rejected_steps) if rejected_steps else "- (no steps recorded)"
        feedback_section = f"\nUser feedback: {feedback}\n" if feedback else ""

        prompt = ALTERNATIVES_PROMPT.format(
            device_name=device_name,
            context=session_context,
            rejected_problem=rejected_problem,
            rejected_steps=steps_text,
            feedback_section=feedback_section,
            language_instruction=self.language_instruction(),
        )
        return await self._run(prompt, repair_alternatives)
