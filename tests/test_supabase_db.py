"""
Supabase 헬퍼 + 세션 저장소 테스트
"""
import pytest

import supabase_client
from repair_analyzer.errors import PersistenceError
from repair_analyzer.sessions import (
    MemorySessionStore,
    SupabaseSessionStore,
    configure_session_store,
    get_session_store,
)
from supabase_db import (
    SESSIONS_TABLE,
    complete_diagnostic_session,
    fetch_reference_records,
    get_diagnostic_session,
)

from conftest import FakeSupabase


class TestSupabaseDb:
    """DB 헬퍼 테스트"""

    def test_complete_session(self):
        client = FakeSupabase()
        complete_diagnostic_session("session-1", {"confidence": "low"}, {"steps": "s"}, supabase=client)

        table, filters, values = client.updates[0]
        assert table == SESSIONS_TABLE
        assert filters == [("id", "session-1")]
        assert values == {
            "ai_analysis": {"confidence": "low"},
            "repair_guidance": {"steps": "s"},
            "status": "completed",
        }

    def test_write_failure(self):
        with pytest.raises(PersistenceError):
            complete_diagnostic_session("session-1", {}, {}, supabase=FakeSupabase(fail=True))

    def test_get_session(self):
        client = FakeSupabase(tables={SESSIONS_TABLE: [{"id": "a", "status": "pending"}]})
        assert get_diagnostic_session("a", supabase=client)["status"] == "pending"
        assert get_diagnostic_session("b", supabase=client) is None

    def test_fetch_reference_records(self):
        client = FakeSupabase(tables={"boards": [{"Board Name": f"Board {i}"} for i in range(5)]})
        assert len(fetch_reference_records("boards", supabase=client)) == 5
        assert len(fetch_reference_records("boards", limit=2, supabase=client)) == 2

    def test_unknown_table(self):
        with pytest.raises(ValueError):
            fetch_reference_records("profiles", supabase=FakeSupabase())

    def test_not_configured(self, settings):
        supabase_client.reset_supabase_client()
        try:
            with pytest.raises(PersistenceError):
                fetch_reference_records("devices")
        finally:
            supabase_client.reset_supabase_client()


class TestSessionStores:
    """세션 저장소 테스트"""

    @pytest.mark.asyncio
    async def test_memory_store(self):
        store = MemorySessionStore()
        store.create("s1", device_category="pcb")
        assert store.get("s1")["status"] == "pending"

        await store.complete("s1", {"likelyProblems": ["x"]}, {"steps": "y"})

        session = store.get("s1")
        assert session["status"] == "completed"
        assert session["device_category"] == "pcb"
        assert session["repair_guidance"] == {"steps": "y"}

    @pytest.mark.asyncio
    async def test_supabase_store(self):
        client = FakeSupabase()
        await SupabaseSessionStore(client).complete("s2", {"a": 1}, {"b": 2})

        assert client.updates[0][2]["status"] == "completed"

    @pytest.mark.asyncio
    async def test_supabase_store_failure(self):
        with pytest.raises(PersistenceError):
            await SupabaseSessionStore(FakeSupabase(fail=True)).complete("s3", {}, {})

    def test_configure_session_store(self):
        store = MemorySessionStore()
        assert configure_session_store(store) is store
        assert get_session_store() is store
