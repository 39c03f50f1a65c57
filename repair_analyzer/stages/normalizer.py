"""
응답 정규화 - LLM 출력(신뢰할 수 없는 텍스트)을 항상 유효한 문서로 변환

1. JSON 추출: 코드 펜스 제거 후 첫 '{' ~ 마지막 '}' 구간 파싱
2. 필드 단위 복구: 누락 / 타입 불일치 / 최소 개수 미달 필드만 스테이지별 기본값으로 대체
3. 스키마에 맞는 응답은 아무것도 바꾸지 않음

모든 repair_* 함수는 네트워크와 무관한 순수 함수이며 (문서, 복구된 필드 목록)을 반환한다.
"""
import json
import re
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from .defaults import (
    ALTERNATIVE_STEP_PLACEHOLDER,
    ASSESSMENT_PENDING,
    DEFAULT_ALTERNATIVES,
    DEFAULT_ANALYSIS_NOTES,
    DEFAULT_CODE_QUESTIONS,
    DEFAULT_COMPONENT_SUGGESTION,
    DEFAULT_CONFIRMATION_QUESTIONS,
    DEFAULT_IMAGE_PROBLEM,
    DEFAULT_IMAGE_QUESTIONS,
    DEFAULT_LIKELY_PROBLEMS,
    DEFAULT_MATCHED_KEYWORDS,
    DEFAULT_PRIORITIZED_PROBLEMS,
    DEFAULT_PROBLEM,
    DEFAULT_REPAIR_STEPS,
    DEFAULT_REPORT_PROBLEM,
    DEFAULT_REPORT_REASON,
    DEFAULT_REPORT_STEPS,
    DEFAULT_REPORT_TOOLS,
    DEFAULT_SAFETY_TIPS,
    DEFAULT_SEEK_PROFESSIONAL,
    FALLBACK_GUIDANCE,
    GUIDANCE_FIELDS,
    default_visual_observations,
)
from .models import (
    AlternativesResult,
    CodeProblemQuestions,
    ComponentIdentification,
    Confidence,
    DescriptionAnalysisResult,
    DiagnosisAnalysis,
    FinalDiagnosis,
    ImageAnalysisResult,
    QuestionCategory,
    QuestionSet,
    RepairGuidance,
    RepairReport,
)

Repaired = List[str]

_FENCE_PATTERN = re.compile(r"```(?:json|JSON)?")

CONFIDENCE_VALUES = {c.value for c in Confidence}
CATEGORY_BY_LOWER = {c.value.lower(): c.value for c in QuestionCategory}

# 카테고리가 없거나 알 수 없을 때 질문 문장으로 추정
_CATEGORY_KEYWORDS: Sequence[Tuple[str, Sequence[str]]] = (
    ("Power", ("power", "battery", "charg", "turn on", "boot", "plug")),
    ("Audio", ("sound", "audio", "speaker", "noise", "microphone", "volume")),
    ("Display", ("screen", "display", "pixel", "monitor", "brightness")),
    ("Connection", ("wifi", "wi-fi", "bluetooth", "connect", "cable", "port", "network")),
    ("Physical", ("drop", "damage", "crack", "water", "liquid", "physical", "broken")),
    ("Performance", ("slow", "lag", "freez", "crash", "performance", "overheat", "hot")),
    ("Environment", ("environment", "temperature", "humid", "where", "dust")),
)


# ============================================================
# JSON Extraction
# ============================================================
def strip_code_fences(text: str) -> str:
    """```json / ``` 마커 제거"""
    return _FENCE_PATTERN.sub("", text)


def extract_json_object(text: Any) -> Optional[Dict[str, Any]]:
    """
    모델 출력에서 JSON 객체 추출

    모델이 JSON 을 설명문이나 코드 펜스로 감싸는 경우가 많아
    엄격한 파서 대신 첫 '{' 부터 마지막 '}' 까지를 잘라 파싱한다.

    Returns:
        파싱된 dict, 실패 시 None
    """
    if not isinstance(text, str) or not text:
        return None

    cleaned = strip_code_fences(text)
    start = cleaned.find("{")
    end = cleaned.rfind("}")
    if start == -1 or end <= start:
        return None

    try:
        parsed = json.loads(cleaned[start:end + 1])
    except json.JSONDecodeError:
        return None
    return parsed if isinstance(parsed, dict) else None


def extract_json_array(text: Any) -> Optional[List[Any]]:
    """모델 출력에서 JSON 배열 추출 (첫 '[' ~ 마지막 ']')"""
    if not isinstance(text, str) or not text:
        return None

    cleaned = strip_code_fences(text)
    start = cleaned.find("[")
    end = cleaned.rfind("]")
    if start == -1 or end <= start:
        return None

    try:
        parsed = json.loads(cleaned[start:end + 1])
    except json.JSONDecodeError:
        return None
    return parsed if isinstance(parsed, list) else None


# ============================================================
# Field Helpers
# ============================================================
def _as_dict(raw: Any) -> Dict[str, Any]:
    return dict(raw) if isinstance(raw, dict) else {}


def _is_text(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _coerce_text(item: Any, keys: Sequence[str] = ("text", "label", "problem", "question", "step", "description")) -> Optional[str]:
    """문자열 항목, 또는 대표 텍스트 키를 가진 객체 항목을 문자열로"""
    if _is_text(item):
        return item
    if isinstance(item, dict):
        for key in keys:
            if _is_text(item.get(key)):
                return item[key]
    return None


def repair_text(data: Dict[str, Any], key: str, default: str, repaired: Repaired) -> None:
    """비어 있거나 문자열이 아닌 필드를 기본값으로"""
    if not _is_text(data.get(key)):
        data[key] = default
        repaired.append(key)


def repair_text_list(
    data: Dict[str, Any],
    key: str,
    defaults: Sequence[str],
    repaired: Repaired,
    min_items: int = 1,
    max_items: Optional[int] = None,
    pad: bool = True,
) -> None:
    """
    문자열 배열 필드 복구

    Args:
        min_items: 최소 개수. 미달이면 pad=True 일 때 기본값으로 채우고, 아니면 기본값 전체로 교체
        max_items: 최대 개수. 초과분은 잘라냄
    """
    value = data.get(key)
    if not isinstance(value, list):
        data[key] = list(defaults)
        repaired.append(key)
        return

    items = [_coerce_text(v) for v in value]
    items = [v for v in items if v is not None]
    changed = len(items) != len(value) or any(a is not b for a, b in zip(items, value))

    if len(items) < min_items:
        changed = True
        if pad:
            seen = {i.strip().lower() for i in items}
            for candidate in defaults:
                if len(items) >= min_items:
                    break
                if candidate.strip().lower() not in seen:
                    items.append(candidate)
                    seen.add(candidate.strip().lower())
        else:
            items = list(defaults)

    if max_items is not None and len(items) > max_items:
        items = items[:max_items]
        changed = True

    if changed:
        data[key] = items
        repaired.append(key)


def coerce_confidence(value: Any, default: str = Confidence.MEDIUM.value) -> str:
    if isinstance(value, str) and value.strip().lower() in CONFIDENCE_VALUES:
        return value.strip().lower()
    return default


def infer_category(question: str) -> str:
    """질문 문장의 키워드로 카테고리 추정 (기본 Usage)"""
    lowered = question.lower()
    for category, keywords in _CATEGORY_KEYWORDS:
        if any(k in lowered for k in keywords):
            return category
    return QuestionCategory.USAGE.value


def coerce_category(value: Any, question: str) -> str:
    if isinstance(value, str) and value.strip().lower() in CATEGORY_BY_LOWER:
        return CATEGORY_BY_LOWER[value.strip().lower()]
    return infer_category(question)


# ============================================================
# Stage Repairs
# ============================================================
def repair_image_analysis(raw: Any, device_category: str = "device") -> Tuple[ImageAnalysisResult, Repaired]:
    """이미지 분석: problems >= 1, clarifyingQuestions == 5"""
    data = _as_dict(raw)
    repaired: Repaired = []

    problems = data.get("problems")
    if isinstance(problems, list):
        fixed = []
        for item in problems:
            if _is_text(item):
                fixed.append({"label": item, "reasoning": ASSESSMENT_PENDING, "confidence": Confidence.MEDIUM.value})
                continue
            if not isinstance(item, dict) or not _is_text(item.get("label")):
                continue
            entry = dict(item)
            if not _is_text(entry.get("reasoning")):
                entry["reasoning"] = ASSESSMENT_PENDING
            entry["confidence"] = coerce_confidence(entry.get("confidence"))
            fixed.append(entry)
        if fixed != problems or not fixed:
            repaired.append("problems")
        data["problems"] = fixed or [dict(DEFAULT_IMAGE_PROBLEM)]
    else:
        data["problems"] = [dict(DEFAULT_IMAGE_PROBLEM)]
        repaired.append("problems")

    repair_text(data, "visualObservations", default_visual_observations(device_category), repaired)
    repair_text_list(data, "clarifyingQuestions", DEFAULT_IMAGE_QUESTIONS, repaired, min_items=5, max_items=5)

    return ImageAnalysisResult.model_validate(data), repaired


def repair_description_analysis(raw: Any) -> Tuple[DescriptionAnalysisResult, Repaired]:
    """증상 설명 분석: prioritizedProblems >= 1, matchedKeywords >= 1"""
    data = _as_dict(raw)
    repaired: Repaired = []

    repair_text_list(data, "prioritizedProblems", DEFAULT_PRIORITIZED_PROBLEMS, repaired, min_items=1, pad=False)
    repair_text_list(data, "matchedKeywords", DEFAULT_MATCHED_KEYWORDS, repaired, min_items=1, pad=False)
    repair_text(data, "analysisNotes", DEFAULT_ANALYSIS_NOTES, repaired)

    return DescriptionAnalysisResult.model_validate(data), repaired


def repair_questions(
    raw: Any,
    defaults: Sequence[Dict[str, str]],
    min_items: int,
    max_items: int,
) -> Tuple[QuestionSet, Repaired]:
    """
    질문 목록: 각 항목은 id / 카테고리(고정 enum) / 질문 문장

    raw 는 {"questions": [...]} 또는 배열 자체를 허용한다.
    """
    if isinstance(raw, list):
        raw = {"questions": raw}
    data = _as_dict(raw)
    repaired: Repaired = []

    value = data.get("questions")
    items: List[Dict[str, Any]] = []
    changed = not isinstance(value, list)

    for index, item in enumerate(value if isinstance(value, list) else []):
        if _is_text(item):
            items.append({"id": f"q{index + 1}", "category": infer_category(item), "question": item})
            changed = True
            continue
        text = _coerce_text(item, ("question", "text")) if isinstance(item, dict) else None
        if text is None:
            changed = True
            continue
        entry = dict(item)
        entry["question"] = text
        if not _is_text(entry.get("id")):
            entry["id"] = f"q{index + 1}"
        entry["category"] = coerce_category(entry.get("category"), text)
        if entry != item:
            changed = True
        items.append(entry)

    if len(items) < min_items:
        changed = True
        seen = {i["question"].strip().lower() for i in items}
        for candidate in defaults:
            if len(items) >= min_items:
                break
            if candidate["question"].strip().lower() not in seen:
                items.append(dict(candidate))
                seen.add(candidate["question"].strip().lower())

    if len(items) > max_items:
        items = items[:max_items]
        changed = True

    # id 중복 제거
    seen_ids = set()
    for index, entry in enumerate(items):
        if entry["id"] in seen_ids:
            entry["id"] = f"q{index + 1}"
            while entry["id"] in seen_ids:
                entry["id"] = f"{entry['id']}_{index + 1}"
            changed = True
        seen_ids.add(entry["id"])

    data["questions"] = items
    if changed:
        repaired.append("questions")

    return QuestionSet.model_validate(data), repaired


def repair_final_diagnosis(raw: Any) -> Tuple[FinalDiagnosis, Repaired]:
    """최종 진단: detailedRepairSteps >= 3 (미달이면 기본 5단계), safetyTips >= 3"""
    data = _as_dict(raw)
    repaired: Repaired = []

    repair_text(data, "problem", DEFAULT_PROBLEM, repaired)
    repair_text_list(data, "detailedRepairSteps", DEFAULT_REPAIR_STEPS, repaired, min_items=3, pad=False)
    repair_text_list(data, "safetyTips", DEFAULT_SAFETY_TIPS, repaired, min_items=3)

    return FinalDiagnosis.model_validate(data), repaired


def repair_repair_report(raw: Any) -> Tuple[RepairReport, Repaired]:
    """수리 리포트: repairStepsWithSafety >= 1, toolsNeeded >= 1"""
    data = _as_dict(raw)
    repaired: Repaired = []

    pwr = data.get("problemWithReason")
    if isinstance(pwr, dict):
        pwr = dict(pwr)
        field_repairs: Repaired = []
        repair_text(pwr, "problem", DEFAULT_REPORT_PROBLEM, field_repairs)
        repair_text(pwr, "reason", DEFAULT_REPORT_REASON, field_repairs)
        repaired.extend(f"problemWithReason.{f}" for f in field_repairs)
    else:
        pwr = {"problem": DEFAULT_REPORT_PROBLEM, "reason": DEFAULT_REPORT_REASON}
        repaired.append("problemWithReason")
    data["problemWithReason"] = pwr

    repair_text_list(data, "repairStepsWithSafety", DEFAULT_REPORT_STEPS, repaired, min_items=1, pad=False)
    repair_text_list(data, "toolsNeeded", DEFAULT_REPORT_TOOLS, repaired, min_items=1, pad=False)

    return RepairReport.model_validate(data), repaired


def repair_alternatives(raw: Any) -> Tuple[AlternativesResult, Repaired]:
    """대안 해결책: alternatives >= 1, 순서대로 rank 1..n"""
    data = _as_dict(raw)
    repaired: Repaired = []

    value = data.get("alternatives")
    items: List[Dict[str, Any]] = []
    changed = not isinstance(value, list)

    for item in value if isinstance(value, list) else []:
        if not isinstance(item, dict):
            changed = True
            continue
        cause = _coerce_text(item, ("cause", "problem", "label", "title"))
        if cause is None:
            changed = True
            continue
        entry = dict(item)
        entry["cause"] = cause
        entry_repairs: Repaired = []
        repair_text(entry, "reasoning", ASSESSMENT_PENDING, entry_repairs)
        repair_text_list(entry, "steps", [ALTERNATIVE_STEP_PLACEHOLDER], entry_repairs, min_items=1, pad=False)
        if not isinstance(entry.get("toolsNeeded"), list):
            entry["toolsNeeded"] = []
            entry_repairs.append("toolsNeeded")
        else:
            entry["toolsNeeded"] = [t for t in entry["toolsNeeded"] if _is_text(t)]
        if entry_repairs or entry != item:
            changed = True
        items.append(entry)

    if all(isinstance(i.get("rank"), int) for i in items):
        items.sort(key=lambda i: i["rank"])
    for index, entry in enumerate(items):
        if entry.get("rank") != index + 1:
            entry["rank"] = index + 1
            changed = True

    if not items:
        items = [dict(a, steps=list(a["steps"]), toolsNeeded=list(a["toolsNeeded"])) for a in DEFAULT_ALTERNATIVES]
        changed = True

    data["alternatives"] = items
    if changed:
        repaired.append("alternatives")
    repair_text(data, "whenToSeekProfessional", DEFAULT_SEEK_PROFESSIONAL, repaired)

    return AlternativesResult.model_validate(data), repaired


def repair_code_questions(raw: Any) -> Tuple[CodeProblemQuestions, Repaired]:
    """코드 문제 질문: 3-5개 문자열"""
    if isinstance(raw, list):
        raw = {"questions": raw}
    data = _as_dict(raw)
    repaired: Repaired = []

    repair_text_list(data, "questions", DEFAULT_CODE_QUESTIONS, repaired, min_items=3, max_items=5)

    return CodeProblemQuestions.model_validate(data), repaired


def repair_diagnosis_analysis(raw: Any, device_category: str = "device") -> Tuple[DiagnosisAnalysis, Repaired]:
    """오케스트레이터 분석: likelyProblems 1-3, confirmationQuestions >= 3"""
    data = _as_dict(raw)
    repaired: Repaired = []

    repair_text(
        data,
        "visualAnalysis",
        f"I've analyzed your {device_category} and can help identify the issue.",
        repaired,
    )
    repair_text_list(data, "likelyProblems", DEFAULT_LIKELY_PROBLEMS, repaired, min_items=1, max_items=3, pad=False)
    confidence = coerce_confidence(data.get("confidence"))
    if confidence != data.get("confidence"):
        data["confidence"] = confidence
        repaired.append("confidence")
    repair_text_list(data, "confirmationQuestions", DEFAULT_CONFIRMATION_QUESTIONS, repaired, min_items=3)

    return DiagnosisAnalysis.model_validate(data), repaired


def repair_repair_guidance(
    raw: Any,
    defaults: Mapping[str, str] = FALLBACK_GUIDANCE,
) -> Tuple[RepairGuidance, Repaired]:
    """
    수리 안내: steps / tools / estimatedCost / difficulty 문자열

    steps / tools 가 배열로 오면 번호 목록 / 쉼표 목록 문자열로 합친다.
    diagnosis, safetyWarnings 등 나머지 필드는 그대로 보존.
    """
    data = _as_dict(raw)
    repaired: Repaired = []

    steps = data.get("steps")
    if isinstance(steps, list):
        items = [_coerce_text(s, ("description", "title", "step", "text")) for s in steps]
        items = [s for s in items if s is not None]
        if items:
            data["steps"] = "\n".join(f"{i}. {s}" for i, s in enumerate(items, 1))
            repaired.append("steps")

    tools = data.get("tools")
    if isinstance(tools, list):
        names = [t for t in tools if _is_text(t)]
        if names:
            data["tools"] = ", ".join(names)
            repaired.append("tools")

    for key in GUIDANCE_FIELDS:
        if not _is_text(data.get(key)):
            data[key] = defaults[key]
            if key not in repaired:
                repaired.append(key)

    return RepairGuidance.model_validate(data), repaired


def repair_component_identification(raw: Any) -> Tuple[ComponentIdentification, Repaired]:
    """부품 식별: overallSuggestion 필수, components 는 name 을 가진 항목만 (빈 배열 허용)"""
    data = _as_dict(raw)
    repaired: Repaired = []

    repair_text(data, "overallSuggestion", DEFAULT_COMPONENT_SUGGESTION, repaired)

    value = data.get("components")
    components: List[Dict[str, Any]] = []
    for item in value if isinstance(value, list) else []:
        name = _coerce_text(item, ("name", "component", "label"))
        if name is None:
            continue
        components.append({**item, "name": name} if isinstance(item, dict) else {"name": name})
    if not isinstance(value, list) or len(components) != len(value) or components != value:
        repaired.append("components")
    data["components"] = components

    return ComponentIdentification.model_validate(data), repaired
