"""
참조 DB 매처 - 추출된 키워드로 참조 레코드 점수 계산

알고리즘:
- 레코드의 검색 필드마다, 검색어마다, 소문자 필드 값이 소문자 검색어를 포함하면 필드 가중치를 더함
- 점수 / 10 을 [0, 1] 로 자른 값이 confidence
- confidence 내림차순 상위 5개

퍼지 매칭, 어간 추출 없이 부분 문자열 포함만 본다.
"""
import asyncio
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .stages.models import DatabaseMatch

logger = logging.getLogger(__name__)

TOP_N = 5
SCORE_SCALE = 10.0
MIN_TERM_LENGTH = 3

# 카테고리 -> 테이블
CATEGORY_TABLES: Dict[str, str] = {
    "device": "devices",
    "instrument": "instruments",
    "component": "components",
    "pcb": "pcbs",
    "board": "boards",
}
DEFAULT_TABLE = "devices"

# 테이블 -> 표준 필드 -> 원본 컬럼 별칭 (앞쪽 우선)
TABLE_FIELD_ALIASES: Dict[str, Dict[str, Tuple[str, ...]]] = {
    "devices": {
        "device": ("DEVICE", "device"),
        "symptoms": ("SYMPTOMS", "symptoms"),
        "reason": ("REASON", "reason"),
        "diagnosis": ("PROBLEM DIAGNOSIS", "diagnosis"),
        "tools": ("TOOLS NEEDED", "tools"),
    },
    "instruments": {
        "device": ("Device", "device"),
        "symptoms": ("Symptoms", "symptoms"),
        "reasons": ("Reasons", "reasons"),
        "diagnosis": ("Problem Diagnosis", "diagnosis"),
        "tools": ("Tools Needed", "tools"),
    },
    "components": {
        "name": ("Component Name", "name"),
        "uses": ("Uses", "uses"),
        "identify": ("How to Identify", "identify"),
        "safety": ("Safety Tips", "safety"),
    },
    "pcbs": {
        "problem": ("Problem", "problem"),
        "solution": ("Solution", "solution"),
        "explanation": ("Explanation", "explanation"),
        "tools": ("Tools", "tools"),
    },
    "boards": {
        "name": ("Board Name", "name"),
        "info": ("Info", "info"),
        "uses": ("Uses (how and where)", "uses"),
        "language": ("Coding Language", "language"),
    },
}

# 표준 필드 가중치 (없으면 DEFAULT_WEIGHT)
FIELD_WEIGHTS: Dict[str, float] = {
    "device": 3,
    "name": 3,
    "problem": 2,
    "symptoms": 2,
    "diagnosis": 2,
    "solution": 2,
    "reason": 1.5,
    # instruments 의 reasons 는 목록에 없으므로 DEFAULT_WEIGHT
    "tools": 1,
    "uses": 1,
    "info": 0.5,
}
DEFAULT_WEIGHT = 1.0

# 레코드 표시 이름 / 수리 안내용 컬럼
DISPLAY_FIELD: Dict[str, str] = {
    "devices": "device",
    "instruments": "device",
    "components": "name",
    "pcbs": "problem",
    "boards": "name",
}
GUIDANCE_ALIASES: Dict[str, Tuple[str, ...]] = {
    "steps": ("FIX STEPS", "Fix Steps", "Solution", "solution", "steps"),
    "tools": ("TOOLS NEEDED", "Tools Needed", "Tools", "tools"),
    "estimatedCost": ("ESTIMATED REPAIR COST", "Estimated Cost", "estimated_cost"),
}


class FieldResolver:
    """
    테이블별 필드 매핑 (로드 시 한 번 구성)

    레코드에서 표준 필드 -> 문자열 값을 꺼낸다.
    """

    def __init__(self, table_name: str, aliases: Mapping[str, Sequence[str]]):
        self.table_name = table_name
        self.aliases = {f: tuple(a) for f, a in aliases.items()}
        self.weights = {f: FIELD_WEIGHTS.get(f, DEFAULT_WEIGHT) for f in self.aliases}

    def resolve(self, record: Mapping[str, Any], field: str) -> str:
        for column in self.aliases.get(field, ()):
            value = record.get(column)
            if isinstance(value, str) and value:
                return value
        return ""

    def searchable_fields(self, record: Mapping[str, Any]) -> Dict[str, str]:
        return {f: self.resolve(record, f) for f in self.aliases}


RESOLVERS: Dict[str, FieldResolver] = {
    table: FieldResolver(table, aliases) for table, aliases in TABLE_FIELD_ALIASES.items()
}


def table_for_category(device_category: Optional[str]) -> str:
    return CATEGORY_TABLES.get((device_category or "").strip().lower(), DEFAULT_TABLE)


def extract_search_terms(ai_analysis: Optional[Mapping[str, Any]]) -> List[str]:
    """
    분석 결과에서 검색어 추출 (소문자, 3글자 이상)

    deviceType / specifications.brand / specifications.model / visibleIssues,
    이미지 분석 형태(problems[].label)와 오케스트레이터 형태(likelyProblems)도 허용
    """
    analysis = ai_analysis or {}
    specs = analysis.get("specifications") if isinstance(analysis.get("specifications"), dict) else {}

    candidates: List[Any] = [analysis.get("deviceType"), specs.get("brand"), specs.get("model")]
    for key in ("visibleIssues", "likelyProblems"):
        value = analysis.get(key)
        if isinstance(value, list):
            candidates.extend(value)
    problems = analysis.get("problems")
    if isinstance(problems, list):
        candidates.extend(p.get("label") for p in problems if isinstance(p, dict))

    terms: List[str] = []
    for candidate in candidates:
        if isinstance(candidate, str):
            term = candidate.strip().lower()
            if len(term) >= MIN_TERM_LENGTH and term not in terms:
                terms.append(term)
    return terms


def terms_from_text(text: Optional[str], min_length: int = 4) -> List[str]:
    """자유 텍스트에서 단어 단위 검색어 추출"""
    terms: List[str] = []
    for word in (text or "").lower().split():
        word = word.strip(".,!?;:()\"'")
        if len(word) >= min_length and word not in terms:
            terms.append(word)
    return terms


class DatabaseMatcher:
    """참조 레코드 점수 계산기"""

    def __init__(self, top_n: int = TOP_N):
        self.top_n = top_n

    def score_record(
        self,
        record: Mapping[str, Any],
        resolver: FieldResolver,
        terms: Sequence[str],
    ) -> Tuple[float, List[Dict[str, str]]]:
        score = 0.0
        matched: List[Dict[str, str]] = []
        for field, value in resolver.searchable_fields(record).items():
            if not value:
                continue
            value_lower = value.lower()
            for term in terms:
                if term in value_lower:
                    score += resolver.weights[field]
                    matched.append({"field": field, "term": term})
        return score, matched

    def match(
        self,
        records: Iterable[Mapping[str, Any]],
        terms: Sequence[str],
        table_name: str = DEFAULT_TABLE,
    ) -> List[DatabaseMatch]:
        """
        레코드 점수 계산 후 상위 N개 반환

        Args:
            records: 참조 테이블 행
            terms: 검색어 (내부에서 소문자 변환, 3글자 미만 제외)
            table_name: 필드 매핑에 사용할 테이블
        """
        resolver = RESOLVERS.get(table_name, RESOLVERS[DEFAULT_TABLE])
        terms = [t.lower() for t in terms if isinstance(t, str) and len(t.strip()) >= MIN_TERM_LENGTH]
        terms = [t.strip() for t in terms]
        if not terms:
            return []

        matches: List[DatabaseMatch] = []
        for record in records:
            score, matched = self.score_record(record, resolver, terms)
            if score > 0:
                matches.append(DatabaseMatch(
                    record=dict(record),
                    confidence=min(score / SCORE_SCALE, 1.0),
                    matched_fields=matched,
                    table_name=resolver.table_name,
                ))

        # 안정 정렬: 동점이면 원래 순서 유지
        matches.sort(key=lambda m: m.confidence, reverse=True)
        return matches[: self.top_n]

    async def match_category(
        self,
        device_category: str,
        ai_analysis: Optional[Mapping[str, Any]] = None,
        extra_terms: Sequence[str] = (),
        supabase: Any = None,
    ) -> List[DatabaseMatch]:
        """
        카테고리 테이블을 읽어 매칭

        DB 조회 실패는 로그만 남기고 빈 결과를 반환한다.
        """
        from supabase_db import fetch_reference_records

        table_name = table_for_category(device_category)
        terms = extract_search_terms(ai_analysis) + [t for t in extra_terms if t]
        logger.info(f"[DBMatch] table={table_name} terms={terms}")

        if not terms:
            return []

        loop = asyncio.get_running_loop()
        try:
            records = await loop.run_in_executor(
                None,
                lambda: fetch_reference_records(table_name, supabase=supabase)
            )
        except Exception as e:
            logger.warning(f"[DBMatch] failed to load {table_name}: {e}")
            return []

        matches = self.match(records, terms, table_name)
        logger.info(f"[DBMatch] {len(matches)} matches: {[round(m.confidence, 2) for m in matches]}")
        return matches


def display_name(match: DatabaseMatch) -> str:
    resolver = RESOLVERS.get(match.table_name, RESOLVERS[DEFAULT_TABLE])
    field = DISPLAY_FIELD.get(match.table_name, "device")
    return resolver.resolve(match.record, field) or "Unknown Item"


def guidance_value(record: Mapping[str, Any], key: str) -> Optional[str]:
    """레코드에서 수리 안내 컬럼 값"""
    for column in GUIDANCE_ALIASES.get(key, ()):
        value = record.get(column)
        if isinstance(value, str) and value.strip():
            return value
    return None
