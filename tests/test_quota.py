"""
Scan Quota Gate 테스트
"""
import asyncio
from datetime import date, timedelta

import pytest

from repair_analyzer.errors import PersistenceError, QuotaError, UPGRADE_MESSAGE
from repair_analyzer.quota import (
    QUOTA_RPC,
    UNLIMITED,
    MemoryScanStore,
    ScanProfile,
    ScanQuotaGate,
    SupabaseScanStore,
    configure_quota_gate,
    get_quota_gate,
)

from conftest import FakeSupabase


class FakeClock:
    """날짜를 수동으로 넘길 수 있는 시계"""

    def __init__(self, today: date):
        self.today = today

    def __call__(self) -> date:
        return self.today


class TestMemoryScanStore:
    """인메모리 저장소 테스트"""

    @pytest.fixture
    def clock(self):
        return FakeClock(date(2026, 10, 19))

    @pytest.fixture
    def gate(self, clock):
        return ScanQuotaGate(MemoryScanStore(today=clock), daily_limit=3)

    @pytest.mark.asyncio
    async def test_new_user_gets_daily_limit(self, gate):
        """처음 보는 사용자는 한도에서 1회 차감"""
        decision = await gate.consume("user-a")
        assert decision.allowed is True
        assert decision.remaining == 2

    @pytest.mark.asyncio
    async def test_limit_exceeded(self, gate):
        """한도 초과 시 QuotaError + 카운터 변화 없음"""
        for _ in range(3):
            await gate.consume("user-b")

        with pytest.raises(QuotaError) as exc_info:
            await gate.consume("user-b")

        assert exc_info.value.message == UPGRADE_MESSAGE
        assert exc_info.value.status_code == 403
        assert gate.store.get_profile("user-b").remaining_scans == 0
        assert gate.get_stats() == {"allowed": 3, "denied": 1}

    @pytest.mark.asyncio
    async def test_concurrent_requests_with_one_scan_left(self, gate):
        """남은 횟수 1 에서 동시 요청 2개 → 정확히 1개만 허용"""
        gate.store.seed(ScanProfile(
            user_id="user-c",
            remaining_scans=1,
            last_scan_reset=date(2026, 10, 19),
        ))

        results = await asyncio.gather(
            gate.consume("user-c"),
            gate.consume("user-c"),
            return_exceptions=True,
        )

        allowed = [r for r in results if not isinstance(r, Exception)]
        denied = [r for r in results if isinstance(r, QuotaError)]
        assert len(allowed) == 1
        assert len(denied) == 1
        assert gate.store.get_profile("user-c").remaining_scans == 0

    @pytest.mark.asyncio
    async def test_reset_on_new_day(self, gate, clock):
        """날짜가 바뀌면 한도 리셋 (하루 한 번)"""
        for _ in range(3):
            await gate.consume("user-d")

        clock.today = clock.today + timedelta(days=1)
        decision = await gate.consume("user-d")

        assert decision.remaining == 2
        assert gate.store.get_profile("user-d").last_scan_reset == clock.today

        # 같은 날 두 번째 요청은 리셋하지 않음
        decision = await gate.consume("user-d")
        assert decision.remaining == 1

    @pytest.mark.asyncio
    async def test_premium_is_unlimited(self, gate):
        """프리미엄 사용자는 카운터 변화 없음"""
        gate.store.seed(ScanProfile(user_id="premium", remaining_scans=0, is_premium=True))

        for _ in range(10):
            decision = await gate.consume("premium")
            assert decision.allowed is True
            assert decision.remaining == UNLIMITED
            assert decision.is_premium is True

        assert gate.store.get_profile("premium").remaining_scans == 0

    @pytest.mark.asyncio
    async def test_status_does_not_consume(self, gate, clock):
        """상태 조회는 차감하지 않음"""
        unknown = await gate.status("nobody")
        assert unknown.allowed is True
        assert unknown.remaining == 3

        await gate.consume("user-e")
        before = await gate.status("user-e")
        after = await gate.status("user-e")
        assert before.remaining == after.remaining == 2

        # 아직 리셋 전이지만 다음 날 기준 값으로 보고
        clock.today = clock.today + timedelta(days=1)
        assert (await gate.status("user-e")).remaining == 3


class TestSupabaseScanStore:
    """RPC 저장소 테스트"""

    @pytest.mark.asyncio
    async def test_consume_calls_rpc(self):
        client = FakeSupabase(rpc_result={"success": True, "remaining": 2, "error": None})
        gate = ScanQuotaGate(SupabaseScanStore(client), daily_limit=3)

        decision = await gate.consume("user-1")

        assert decision.allowed is True
        assert decision.remaining == 2
        assert client.rpc_calls == [
            (QUOTA_RPC, {"p_user_id": "user-1", "p_check": False, "p_daily_limit": 3})
        ]

    @pytest.mark.asyncio
    async def test_denied_by_rpc(self):
        client = FakeSupabase(rpc_result={"success": False, "remaining": 0, "error": "Scan limit exceeded"})
        gate = ScanQuotaGate(SupabaseScanStore(client), daily_limit=3)

        with pytest.raises(QuotaError):
            await gate.consume("user-2")

    @pytest.mark.asyncio
    async def test_peek_uses_check_flag_and_list_payload(self):
        client = FakeSupabase(rpc_result=[{"success": True, "remaining": -1}])
        store = SupabaseScanStore(client)

        decision = await store.peek("user-3", 3)

        assert decision.is_premium is True
        assert client.rpc_calls[0][1]["p_check"] is True

    @pytest.mark.asyncio
    async def test_rpc_failure_raises_persistence_error(self):
        gate = ScanQuotaGate(SupabaseScanStore(FakeSupabase(fail=True)), daily_limit=3)

        with pytest.raises(PersistenceError):
            await gate.consume("user-4")


class TestGlobalQuotaGate:
    """전역 인스턴스 테스트"""

    def test_configure_quota_gate(self):
        gate = ScanQuotaGate(MemoryScanStore(), daily_limit=5)
        configured = configure_quota_gate(gate)

        assert configured is gate
        assert get_quota_gate() is gate
        assert get_quota_gate().daily_limit == 5
