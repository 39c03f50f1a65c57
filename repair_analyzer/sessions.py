"""
진단 세션 저장소

오케스트레이터가 완료된 세션(분석 + 수리 안내)을 기록한다.
Supabase 가 없으면 인메모리 저장소를 사용한다 (로컬 실행 / 테스트).
"""
import asyncio
import logging
from typing import Any, Dict, Optional

from .stages.models import SessionStatus

logger = logging.getLogger(__name__)


class SessionStore:
    """세션 저장소 인터페이스"""

    async def complete(self, session_id: str, analysis: Dict[str, Any], guidance: Dict[str, Any]) -> None:
        """
        세션을 completed 로 기록

        Raises:
            PersistenceError: 쓰기 실패
        """
        raise NotImplementedError


class MemorySessionStore(SessionStore):
    """인메모리 세션 저장소"""

    def __init__(self):
        self.sessions: Dict[str, Dict[str, Any]] = {}

    def create(self, session_id: str, **fields: Any) -> Dict[str, Any]:
        self.sessions[session_id] = {"id": session_id, "status": SessionStatus.PENDING.value, **fields}
        return self.sessions[session_id]

    def get(self, session_id: str) -> Optional[Dict[str, Any]]:
        return self.sessions.get(session_id)

    async def complete(self, session_id: str, analysis: Dict[str, Any], guidance: Dict[str, Any]) -> None:
        session = self.sessions.setdefault(session_id, {"id": session_id})
        session.update({
            "ai_analysis": analysis,
            "repair_guidance": guidance,
            "status": SessionStatus.COMPLETED.value,
        })


class SupabaseSessionStore(SessionStore):
    """diagnostic_sessions 테이블 저장소"""

    def __init__(self, client: Any):
        self.client = client

    async def complete(self, session_id: str, analysis: Dict[str, Any], guidance: Dict[str, Any]) -> None:
        from supabase_db import complete_diagnostic_session

        loop = asyncio.get_running_loop()
        await loop.run_in_executor(
            None,
            lambda: complete_diagnostic_session(session_id, analysis, guidance, supabase=self.client)
        )


# 전역 인스턴스
_session_store: Optional[SessionStore] = None


def get_session_store() -> SessionStore:
    """전역 세션 저장소 반환"""
    global _session_store
    if _session_store is None:
        from supabase_client import get_supabase_client

        client = get_supabase_client()
        if client is not None:
            _session_store = SupabaseSessionStore(client)
        else:
            logger.warning("[Session] Supabase not configured - using in-memory session store")
            _session_store = MemorySessionStore()
    return _session_store


def configure_session_store(store: SessionStore) -> SessionStore:
    """세션 저장소 교체 및 반환"""
    global _session_store
    _session_store = store
    return _session_store
