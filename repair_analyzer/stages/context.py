"""
세션 컨텍스트 → 프롬프트 텍스트 변환

앞 단계 출력(이미지 분석, 설명 분석, 질문/답변)을 다음 단계 프롬프트에 넣기 위한 헬퍼
"""
import json
from typing import Any, Dict, List, Mapping, Optional


def _format_value(value: Any) -> str:
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False, indent=2)
    return str(value)


def format_session_context(
    device_name: Optional[str] = None,
    device_category: Optional[str] = None,
    description: Optional[str] = None,
    image_analysis: Optional[Mapping[str, Any]] = None,
    description_analysis: Optional[Mapping[str, Any]] = None,
) -> str:
    """누적된 분석 결과를 섹션별 텍스트로"""
    sections: List[str] = []
    if device_name:
        sections.append(f"Device: {device_name}")
    if device_category:
        sections.append(f"Device category: {device_category}")
    if description:
        sections.append(f"User description: {description}")
    if image_analysis:
        sections.append(f"Image analysis:\n{_format_value(dict(image_analysis))}")
    if description_analysis:
        sections.append(f"Description analysis:\n{_format_value(dict(description_analysis))}")
    return "\n\n".join(sections) if sections else "No prior analysis available."


def format_answers(questions: List[Dict[str, Any]], answers: Mapping[str, str]) -> str:
    """
    질문 id -> 답변 맵을 Q/A 텍스트로

    질문 목록에 없는 id 의 답변도 버리지 않는다.
    """
    if not answers:
        return "No answers provided."

    lines: List[str] = []
    asked = set()
    for question in questions:
        qid = str(question.get("id", ""))
        if qid in answers:
            asked.add(qid)
            lines.append(f"Q: {question.get('question', qid)}\nA: {answers[qid]}")
    for qid, answer in answers.items():
        if qid not in asked:
            lines.append(f"Q ({qid})\nA: {answer}")
    return "\n\n".join(lines)
