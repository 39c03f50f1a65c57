"""
최종 진단 생성기

누적된 세션 컨텍스트(기기, 이미지 분석, 설명 분석, 질문/답변)로 수리 가이드를 만든다.

- FinalDiagnosisGenerator: {problem, detailedRepairSteps, safetyTips} (기본 형태)
- RepairReportGenerator: {problemWithReason, repairStepsWithSafety, toolsNeeded} (구 형태, deprecated)
"""
from typing import Any, Dict, List, Mapping, Optional

from .base import BaseStage, StageResult
from .context import format_answers, format_session_context
from .normalizer import repair_final_diagnosis, repair_repair_report
from .prompts import FINAL_DIAGNOSIS_PROMPT, REPAIR_REPORT_PROMPT


class _DiagnosisContextStage(BaseStage):
    """세션 컨텍스트를 프롬프트로 넣는 스테이지 공통"""

    prompt_template = ""

    def build_prompt(
        self,
        device_name: str,
        device_category: Optional[str] = None,
        description: Optional[str] = None,
        image_analysis: Optional[Dict[str, Any]] = None,
        description_analysis: Optional[Dict[str, Any]] = None,
        questions: Optional[List[Dict[str, Any]]] = None,
        answers: Optional[Mapping[str, str]] = None,
    ) -> str:
        context = format_session_context(
            device_name=device_name,
            device_category=device_category,
            description=description,
            image_analysis=image_analysis,
            description_analysis=description_analysis,
        )
        return self.prompt_template.format(
            device_name=device_name,
            context=context,
            answers=format_answers(questions or [], answers or {}),
            language_instruction=self.language_instruction(),
        )


class FinalDiagnosisGenerator(_DiagnosisContextStage):
    """최종 진단 생성기"""

    name = "FinalDiagnosisGenerator"
    prompt_template = FINAL_DIAGNOSIS_PROMPT

    async def generate(self, device_name: str, **context: Any) -> StageResult:
        """
        Args:
            device_name: 기기 이름
            **context: device_category, description, image_analysis,
                description_analysis, questions, answers

        Returns:
            StageResult[FinalDiagnosis] - 수리 단계가 3개 미만이면 기본 5단계로 대체
        """
        prompt = self.build_prompt(device_name, **context)
        return await self._run(prompt, repair_final_diagnosis)


class RepairReportGenerator(_DiagnosisContextStage):
    """수리 리포트 생성기 (구 형태)"""

    name = "RepairReportGenerator"
    prompt_template = REPAIR_REPORT_PROMPT

    async def generate(self, device_name: str, **context: Any) -> StageResult:
        prompt = self.build_prompt(device_name, **context)
        return await self._run(prompt, repair_repair_report)
