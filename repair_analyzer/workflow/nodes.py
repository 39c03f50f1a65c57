"""
LangGraph Workflow Nodes (세션 진단)

각 노드는 하나의 분석 경로를 시도하고, 성공하면 analysis / guidance / source 를 채운다.
1. database_node: 참조 DB 키워드 매칭
2. vision_node: 이미지 + 증상 Vision 분석 → 수리 안내 생성
3. web_search_node: 웹 검색 (결과만 수집)
4. search_openai_node: 검색 결과 → OpenAI 분석 → 수리 안내 생성
5. search_gemini_node: 검색 결과 → Gemini 분석 → 수리 안내 생성
6. fallback_node: 카테고리별 고정 분석 (항상 성공)
7. persist_node: 세션 completed 기록 (실패해도 결과 반환)

노드는 자신의 에러를 잡아서 "실패" 로 기록할 뿐 예외를 올리지 않는다.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

import httpx
from langchain_core.language_models.chat_models import BaseChatModel

from ..config import Settings, get_settings
from ..db_matcher import DatabaseMatcher, display_name, guidance_value, terms_from_text
from ..errors import PersistenceError
from ..image_fetcher import fetch_images
from ..sessions import SessionStore, get_session_store
from ..stages.defaults import (
    DATABASE_CONFIRMATION_QUESTIONS,
    DATABASE_GUIDANCE,
    SEARCH_GUIDANCE,
    VISION_GUIDANCE,
    guaranteed_fallback,
)
from ..stages.models import DiagnosisAnalysis, SessionStatus
from ..stages.repair_guidance import RepairGuidanceGenerator
from ..stages.session_diagnosis import SearchDiagnosis, VisionDiagnosis
from ..stages.web_searcher import WebSearcher, build_search_query
from .state import DiagnosisState

logger = logging.getLogger(__name__)

SOURCE_DATABASE = "database"
SOURCE_VISION = "gemini_vision"
SOURCE_SEARCH_OPENAI = "search_openai"
SOURCE_SEARCH_GEMINI = "search_gemini"
SOURCE_FALLBACK = "guaranteed_fallback"

# DB 매칭 채택 기준
DATABASE_MIN_CONFIDENCE = 0.3


@dataclass
class DiagnosisDependencies:
    """노드가 사용하는 협력 객체"""
    settings: Settings
    matcher: DatabaseMatcher
    searcher: WebSearcher
    vision: VisionDiagnosis
    search_openai: SearchDiagnosis
    search_gemini: SearchDiagnosis
    guidance: RepairGuidanceGenerator
    sessions: SessionStore
    http_client: Optional[httpx.AsyncClient] = None
    supabase: Any = None


def build_dependencies(
    language: str = "en",
    settings: Optional[Settings] = None,
    llm: Optional[BaseChatModel] = None,
    llms: Optional[Mapping[str, BaseChatModel]] = None,
    sessions: Optional[SessionStore] = None,
    http_client: Optional[httpx.AsyncClient] = None,
    supabase: Any = None,
) -> DiagnosisDependencies:
    """
    기본 의존성 구성

    Args:
        llm: 모든 분석 노드에 공통으로 주입할 모델
        llms: 노드별 모델 ("vision" / "search_openai" / "search_gemini" / "guidance")

    주입하지 않으면 search_openai 는 OpenAI, search_gemini 는 Gemini,
    나머지는 설정된 기본 프로바이더로 생성된다.
    """
    settings = settings or get_settings()
    llms = llms or {}
    return DiagnosisDependencies(
        settings=settings,
        matcher=DatabaseMatcher(),
        searcher=WebSearcher(language=language, settings=settings, llm=llm, http_client=http_client),
        vision=VisionDiagnosis(language=language, settings=settings, llm=llms.get("vision", llm)),
        search_openai=SearchDiagnosis(
            language=language, settings=settings, llm=llms.get("search_openai", llm), provider="openai",
        ),
        search_gemini=SearchDiagnosis(
            language=language, settings=settings, llm=llms.get("search_gemini", llm), provider="gemini",
        ),
        guidance=RepairGuidanceGenerator(language=language, settings=settings, llm=llms.get("guidance", llm)),
        sessions=sessions or get_session_store(),
        http_client=http_client,
        supabase=supabase,
    )


def add_timeline(state: Mapping[str, Any], label: str, status: str = "done") -> List[dict]:
    """타임라인에 시도 기록 추가"""
    timeline = list(state.get("timeline") or [])
    timeline.append({
        "step": len(timeline) + 1,
        "label": label,
        "status": status,
        "timestamp": datetime.now().isoformat()
    })
    return timeline


def _analysis_result(
    state: DiagnosisState,
    source: str,
    analysis: DiagnosisAnalysis,
    guidance: Dict[str, str],
) -> Dict[str, Any]:
    return {
        "analysis": analysis.to_response(),
        "guidance": dict(guidance),
        "source": source,
        "timeline": add_timeline(state, source),
    }


# ============================================================
# 수리 안내 (Vision / 검색 경로 공통)
# ============================================================
async def generate_guidance(
    state: DiagnosisState,
    deps: DiagnosisDependencies,
    analysis: DiagnosisAnalysis,
    defaults: Dict[str, str],
) -> Dict[str, Any]:
    """분석 결과 + DB 매칭으로 수리 안내 생성 (실패 시 경로별 기본 안내)"""
    try:
        result = await deps.guidance.generate(
            analysis.to_response(),
            state["device_category"],
            symptoms_text=state.get("symptoms_text", ""),
            database_matches=state.get("database_matches") or [],
            defaults=defaults,
        )
    except Exception as e:
        logger.warning(f"[Diagnose] repair guidance failed: {e}")
        return dict(defaults)
    return result.document.to_response()


# ============================================================
# Node 1: 참조 DB
# ============================================================
async def database_node(state: DiagnosisState, deps: DiagnosisDependencies) -> Dict[str, Any]:
    terms = terms_from_text(state.get("symptoms_text"))
    if not terms:
        return {"timeline": add_timeline(state, SOURCE_DATABASE, "skipped")}

    try:
        matches = await deps.matcher.match_category(
            state["device_category"],
            extra_terms=terms,
            supabase=deps.supabase,
        )
    except Exception as e:
        logger.warning(f"[Diagnose] database check failed: {e}")
        return {"timeline": add_timeline(state, SOURCE_DATABASE, "failed")}

    best = matches[0] if matches else None
    if best is None or best.confidence < DATABASE_MIN_CONFIDENCE:
        # 약한 매칭도 수리 안내 프롬프트 참고 자료로 전달
        return {
            "database_matches": [m.to_response() for m in matches],
            "timeline": add_timeline(state, SOURCE_DATABASE, "no_match"),
        }

    record = best.record
    symptom = record.get("SYMPTOMS") or record.get("Symptoms") or record.get("Problem") or display_name(best)
    analysis = DiagnosisAnalysis(
        visual_analysis="Based on your symptoms and our database, I found a matching issue.",
        likely_problems=[symptom, "Component malfunction", "Connection problem"],
        confidence="medium",
        confirmation_questions=list(DATABASE_CONFIRMATION_QUESTIONS),
    )
    guidance = {
        key: guidance_value(record, key) or default
        for key, default in DATABASE_GUIDANCE.items()
    }
    logger.info(f"[Diagnose] database match confidence={best.confidence:.2f}")
    return _analysis_result(state, SOURCE_DATABASE, analysis, guidance)


# ============================================================
# Node 2: Vision 분석
# ============================================================
async def vision_node(state: DiagnosisState, deps: DiagnosisDependencies) -> Dict[str, Any]:
    try:
        # 이미지가 없어도 증상만으로 분석은 계속
        images = await fetch_images(
            state.get("image_urls") or [],
            deps.settings,
            client=deps.http_client,
            require_any=False,
        )
        analysis = await deps.vision.analyze(images, state["device_category"], state.get("symptoms_text", ""))
    except Exception as e:
        logger.warning(f"[Diagnose] vision analysis failed: {e}")
        analysis = None

    if analysis is None:
        return {"timeline": add_timeline(state, SOURCE_VISION, "failed")}
    guidance = await generate_guidance(state, deps, analysis, VISION_GUIDANCE)
    return _analysis_result(state, SOURCE_VISION, analysis, guidance)


# ============================================================
# Node 3: 웹 검색
# ============================================================
async def web_search_node(state: DiagnosisState, deps: DiagnosisDependencies) -> Dict[str, Any]:
    query = build_search_query(state["device_category"], None, state.get("symptoms_text"))
    try:
        search = await deps.searcher.search(query, state["device_category"], allow_mock=False)
    except Exception as e:
        logger.warning(f"[Diagnose] web search failed: {e}")
        search = None

    if search is None or not search.results:
        return {"search_results": [], "timeline": add_timeline(state, "web_search", "no_results")}

    return {
        "search_results": [r.to_response() for r in search.results],
        "timeline": add_timeline(state, "web_search"),
    }


# ============================================================
# Node 4-5: 검색 결과 기반 합성
# ============================================================
async def _search_synthesis(
    state: DiagnosisState,
    deps: DiagnosisDependencies,
    stage: SearchDiagnosis,
    source: str,
) -> Dict[str, Any]:
    try:
        analysis = await stage.analyze(
            state.get("search_results") or [],
            state["device_category"],
            state.get("symptoms_text", ""),
        )
    except Exception as e:
        logger.warning(f"[Diagnose] {source} failed: {e}")
        analysis = None

    if analysis is None:
        return {"timeline": add_timeline(state, source, "failed")}
    guidance = await generate_guidance(state, deps, analysis, SEARCH_GUIDANCE)
    return _analysis_result(state, source, analysis, guidance)


async def search_openai_node(state: DiagnosisState, deps: DiagnosisDependencies) -> Dict[str, Any]:
    return await _search_synthesis(state, deps, deps.search_openai, SOURCE_SEARCH_OPENAI)


async def search_gemini_node(state: DiagnosisState, deps: DiagnosisDependencies) -> Dict[str, Any]:
    return await _search_synthesis(state, deps, deps.search_gemini, SOURCE_SEARCH_GEMINI)


# ============================================================
# Node 6: 고정 fallback
# ============================================================
def fallback_node(state: DiagnosisState) -> Dict[str, Any]:
    logger.info("[Diagnose] all methods failed, using guaranteed fallback")
    fallback = guaranteed_fallback(state.get("device_category") or "device")
    return {
        "analysis": fallback["analysis"],
        "guidance": fallback["guidance"],
        "source": SOURCE_FALLBACK,
        "timeline": add_timeline(state, SOURCE_FALLBACK),
    }


# ============================================================
# Node 7: 저장
# ============================================================
async def persist_node(state: DiagnosisState, deps: DiagnosisDependencies) -> Dict[str, Any]:
    persisted = await persist_session(deps.sessions, state["session_id"], state["analysis"], state["guidance"])
    return {
        "persisted": persisted,
        "status": SessionStatus.COMPLETED.value,
        "timeline": add_timeline(state, "persist", "done" if persisted else "failed"),
    }


async def persist_session(
    sessions: SessionStore,
    session_id: str,
    analysis: Dict[str, Any],
    guidance: Dict[str, Any],
) -> bool:
    """세션 기록 (실패는 로그만 남기고 결과는 그대로 반환)"""
    try:
        await sessions.complete(session_id, analysis, guidance)
        return True
    except PersistenceError as e:
        logger.error(f"[Diagnose] session {session_id} write-back failed: {e.message}")
    except Exception as e:
        logger.exception(f"[Diagnose] unexpected error writing session {session_id}: {e}")
    return False
