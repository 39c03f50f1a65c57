"""
코드 / 회로도 문제 분석기

펌웨어, 회로도 문제 설명을 받아 원인을 좁히기 위한 확인 질문 3-5개를 만든다.
"""
from typing import Any, List, Optional, Sequence

from .base import BaseStage, StageResult
from .normalizer import extract_json_array, extract_json_object, repair_code_questions
from .prompts import CODE_PROBLEM_PROMPT

# 프롬프트에 넣는 파일 내용 최대 길이
MAX_FILE_CHARS = 4000


def _parse_questions(text: str) -> Any:
    return extract_json_array(text) or extract_json_object(text)


class CodeProblemAnalyzer(BaseStage):
    """코드 / 회로도 문제 분석기"""

    name = "CodeProblemAnalyzer"

    async def analyze(self, description: str, files: Optional[Sequence[Any]] = None) -> StageResult:
        """
        Args:
            description: 문제 설명
            files: name / content 속성을 가진 파일 목록 (선택)
        """
        parts: List[str] = []
        for f in files or []:
            content = (getattr(f, "content", "") or "")[:MAX_FILE_CHARS]
            if content.strip():
                parts.append(f"--- {getattr(f, 'name', 'snippet')} ---\n{content}")
        files_section = ("\nAttached files:\n" + "\n\n".join(parts) + "\n") if parts else ""

        prompt = CODE_PROBLEM_PROMPT.format(
            description=description,
            files_section=files_section,
            language_instruction=self.language_instruction(),
        )
        return await self._run(prompt, repair_code_questions, parse=_parse_questions)
