"""
LangGraph Workflow State Definition (세션 진단)
"""
from typing import TypedDict, List, Dict, Any, Optional


class DiagnosisState(TypedDict):
    """워크플로우 상태"""
    # 입력
    session_id: str
    user_id: Optional[str]
    image_urls: List[str]
    symptoms_text: str
    device_category: str

    # 결과 언어
    language: str

    # 웹 검색 결과 (search 노드 → 합성 노드)
    search_results: List[Dict[str, Any]]

    # 기준 미달 DB 매칭 (수리 안내 프롬프트 참고용)
    database_matches: List[Dict[str, Any]]

    # 결과 (analysis / guidance 가 채워지면 persist 로 이동)
    analysis: Optional[Dict[str, Any]]
    guidance: Optional[Dict[str, Any]]
    source: Optional[str]

    # 저장 결과
    persisted: bool
    status: str

    # 시도 기록
    timeline: List[Dict[str, Any]]
