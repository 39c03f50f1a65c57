"""
진단 스테이지 프롬프트 모듈
"""
from .image_analysis import IMAGE_ANALYSIS_PROMPT
from .description import DESCRIPTION_ANALYSIS_PROMPT
from .questions import DEVICE_QUESTIONS_PROMPT, FOLLOW_UP_QUESTIONS_PROMPT
from .diagnosis import FINAL_DIAGNOSIS_PROMPT, REPAIR_REPORT_PROMPT
from .alternatives import ALTERNATIVES_PROMPT
from .search import SEARCH_SOLUTION_PROMPT, SEARCH_DIAGNOSIS_PROMPT, VISION_DIAGNOSIS_PROMPT
from .code_problem import CODE_PROBLEM_PROMPT
from .translation import TRANSLATION_PROMPT, CONTEXT_LABELS
from .guidance import REPAIR_GUIDANCE_PROMPT, COMPONENT_IDENTIFICATION_PROMPT

__all__ = [
    'IMAGE_ANALYSIS_PROMPT',
    'DESCRIPTION_ANALYSIS_PROMPT',
    'DEVICE_QUESTIONS_PROMPT',
    'FOLLOW_UP_QUESTIONS_PROMPT',
    'FINAL_DIAGNOSIS_PROMPT',
    'REPAIR_REPORT_PROMPT',
    'ALTERNATIVES_PROMPT',
    'SEARCH_SOLUTION_PROMPT',
    'SEARCH_DIAGNOSIS_PROMPT',
    'VISION_DIAGNOSIS_PROMPT',
    'CODE_PROBLEM_PROMPT',
    'TRANSLATION_PROMPT',
    'CONTEXT_LABELS',
    'REPAIR_GUIDANCE_PROMPT',
    'COMPONENT_IDENTIFICATION_PROMPT',
]
