"""
LangGraph Workflow Graph Definition (세션 진단)
"""
import logging
from typing import Any, Dict, List, Optional

from langgraph.graph import StateGraph, END

from ..stages.defaults import guaranteed_fallback
from ..stages.models import SessionStatus
from .nodes import (
    SOURCE_FALLBACK,
    DiagnosisDependencies,
    add_timeline,
    database_node,
    vision_node,
    web_search_node,
    search_openai_node,
    search_gemini_node,
    fallback_node,
    persist_node,
    persist_session,
)
from .state import DiagnosisState

logger = logging.getLogger(__name__)


def create_diagnosis_workflow(deps: DiagnosisDependencies) -> StateGraph:
    """
    세션 진단 워크플로우 생성

    Flow:
    database ─(match)→ persist
        └→ vision ─(ok)→ persist
             └→ web_search ─(no results)→ fallback
                  └→ search_openai ─(ok)→ persist
                       └→ search_gemini ─(ok)→ persist
                            └→ fallback → persist → END
    """
    workflow = StateGraph(DiagnosisState)

    async def run_database(state):
        return await database_node(state, deps)

    async def run_vision(state):
        return await vision_node(state, deps)

    async def run_web_search(state):
        return await web_search_node(state, deps)

    async def run_search_openai(state):
        return await search_openai_node(state, deps)

    async def run_search_gemini(state):
        return await search_gemini_node(state, deps)

    async def run_persist(state):
        return await persist_node(state, deps)

    # 노드 추가
    workflow.add_node("database", run_database)
    workflow.add_node("vision", run_vision)
    workflow.add_node("web_search", run_web_search)
    workflow.add_node("search_openai", run_search_openai)
    workflow.add_node("search_gemini", run_search_gemini)
    workflow.add_node("fallback", fallback_node)
    workflow.add_node("persist", run_persist)

    workflow.set_entry_point("database")

    # 분기: 분석 결과가 있으면 저장, 없으면 다음 경로
    def next_or_persist(next_node: str):
        def route(state: DiagnosisState) -> str:
            if state.get("analysis") and state.get("guidance"):
                return "persist"
            return next_node
        return route

    workflow.add_conditional_edges(
        "database",
        next_or_persist("vision"),
        {"persist": "persist", "vision": "vision"}
    )
    workflow.add_conditional_edges(
        "vision",
        next_or_persist("web_search"),
        {"persist": "persist", "web_search": "web_search"}
    )

    def check_search_results(state: DiagnosisState) -> str:
        if state.get("search_results"):
            return "search_openai"
        return "fallback"

    workflow.add_conditional_edges(
        "web_search",
        check_search_results,
        {"search_openai": "search_openai", "fallback": "fallback"}
    )
    workflow.add_conditional_edges(
        "search_openai",
        next_or_persist("search_gemini"),
        {"persist": "persist", "search_gemini": "search_gemini"}
    )
    workflow.add_conditional_edges(
        "search_gemini",
        next_or_persist("fallback"),
        {"persist": "persist", "fallback": "fallback"}
    )

    workflow.add_edge("fallback", "persist")
    workflow.add_edge("persist", END)

    return workflow


def compile_workflow(deps: DiagnosisDependencies):
    workflow = create_diagnosis_workflow(deps)
    return workflow.compile()


def initial_state(
    session_id: str,
    image_urls: List[str],
    symptoms_text: str = "",
    device_category: str = "device",
    user_id: Optional[str] = None,
    language: str = "en",
) -> DiagnosisState:
    return {
        "session_id": session_id,
        "user_id": user_id,
        "image_urls": list(image_urls),
        "symptoms_text": symptoms_text or "",
        "device_category": device_category or "device",
        "language": language,
        "search_results": [],
        "database_matches": [],
        "analysis": None,
        "guidance": None,
        "source": None,
        "persisted": False,
        "status": SessionStatus.PENDING.value,
        "timeline": [],
    }


async def run_diagnosis(
    deps: DiagnosisDependencies,
    session_id: str,
    image_urls: List[str],
    symptoms_text: str = "",
    device_category: str = "device",
    user_id: Optional[str] = None,
    language: str = "en",
) -> Dict[str, Any]:
    """
    세션 진단 실행

    어떤 단계가 실패해도 status=completed 와 비어 있지 않은 분석을 반환한다.

    Returns:
        {sessionId, analysis, guidance, source, status, persisted, timeline}
    """
    state = initial_state(session_id, image_urls, symptoms_text, device_category, user_id, language)

    try:
        app = compile_workflow(deps)
        final_state = await app.ainvoke(state)
    except Exception as e:
        logger.error(f"[Diagnose] workflow error for session {session_id}: {type(e).__name__}: {e}")
        fallback = guaranteed_fallback(state["device_category"])
        persisted = await persist_session(deps.sessions, session_id, fallback["analysis"], fallback["guidance"])
        final_state = {
            **state,
            "analysis": fallback["analysis"],
            "guidance": fallback["guidance"],
            "source": SOURCE_FALLBACK,
            "persisted": persisted,
            "status": SessionStatus.COMPLETED.value,
            "timeline": add_timeline(state, SOURCE_FALLBACK, "error"),
        }

    logger.info(
        f"[Diagnose] session {session_id} completed via {final_state['source']} "
        f"(persisted={final_state['persisted']})"
    )
    return {
        "sessionId": session_id,
        "analysis": final_state["analysis"],
        "guidance": final_state["guidance"],
        "source": final_state["source"],
        "status": SessionStatus.COMPLETED.value,
        "persisted": final_state["persisted"],
        "timeline": final_state["timeline"],
    }
