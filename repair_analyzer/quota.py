"""
Scan Quota Gate - 일일 무료 스캔 한도 관리

기능:
1. 무료 사용자: 하루 N회 (기본 3회), 날짜가 바뀌면 하루에 한 번만 리셋
2. 프리미엄 사용자: 무제한, 카운터 변경 없음
3. 확인 + 차감은 하나의 원자적 연산 (DB 에서는 조건부 UPDATE 를 수행하는 RPC)

거부되면 외부 호출도, 상태 변경도 하지 않는다.
"""
import asyncio
import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Dict, Optional

from .config import get_settings
from .errors import PersistenceError, QuotaError, UPGRADE_MESSAGE

logger = logging.getLogger(__name__)

QUOTA_RPC = "increment_scan_if_allowed"

# RPC 가 프리미엄 사용자의 남은 횟수로 돌려주는 값
UNLIMITED = -1


@dataclass
class ScanProfile:
    """사용자별 스캔 정보 (profiles 테이블 행)"""
    user_id: str
    remaining_scans: int = 3
    last_scan_reset: Optional[date] = None
    is_premium: bool = False


@dataclass
class QuotaDecision:
    """스캔 허용 여부"""
    allowed: bool
    remaining: int                      # 프리미엄이면 UNLIMITED
    error: Optional[str] = None

    @property
    def is_premium(self) -> bool:
        return self.remaining == UNLIMITED


class ScanStore:
    """스캔 카운터 저장소 인터페이스"""

    async def consume(self, user_id: str, daily_limit: int) -> QuotaDecision:
        """한도 확인 + 차감 (원자적)"""
        raise NotImplementedError

    async def peek(self, user_id: str, daily_limit: int) -> QuotaDecision:
        """차감 없이 현재 상태만 확인"""
        raise NotImplementedError


class MemoryScanStore(ScanStore):
    """
    인메모리 저장소 (로컬 개발 / 테스트용)

    확인과 차감이 같은 lock 구간 안에서 실행되므로
    같은 사용자의 동시 요청도 한도를 넘지 못한다.
    """

    def __init__(self, today: Optional[Callable[[], date]] = None):
        self._today = today or date.today
        self._profiles: Dict[str, ScanProfile] = {}
        self._lock = asyncio.Lock()

    def seed(self, profile: ScanProfile) -> None:
        self._profiles[profile.user_id] = profile

    def get_profile(self, user_id: str) -> Optional[ScanProfile]:
        return self._profiles.get(user_id)

    def _load(self, user_id: str, daily_limit: int) -> ScanProfile:
        profile = self._profiles.get(user_id)
        if profile is None:
            profile = ScanProfile(user_id=user_id, remaining_scans=daily_limit, last_scan_reset=self._today())
            self._profiles[user_id] = profile
        return profile

    def _reset_if_needed(self, profile: ScanProfile, daily_limit: int) -> None:
        today = self._today()
        if profile.last_scan_reset is None or profile.last_scan_reset < today:
            profile.remaining_scans = daily_limit
            profile.last_scan_reset = today

    async def consume(self, user_id: str, daily_limit: int) -> QuotaDecision:
        async with self._lock:
            profile = self._load(user_id, daily_limit)
            if profile.is_premium:
                return QuotaDecision(allowed=True, remaining=UNLIMITED)

            self._reset_if_needed(profile, daily_limit)

            if profile.remaining_scans <= 0:
                return QuotaDecision(allowed=False, remaining=0, error=UPGRADE_MESSAGE)

            profile.remaining_scans -= 1
            return QuotaDecision(allowed=True, remaining=profile.remaining_scans)

    async def peek(self, user_id: str, daily_limit: int) -> QuotaDecision:
        async with self._lock:
            profile = self._profiles.get(user_id)
            if profile is None:
                return QuotaDecision(allowed=daily_limit > 0, remaining=daily_limit)
            if profile.is_premium:
                return QuotaDecision(allowed=True, remaining=UNLIMITED)

            remaining = profile.remaining_scans
            if profile.last_scan_reset is None or profile.last_scan_reset < self._today():
                remaining = daily_limit
            return QuotaDecision(allowed=remaining > 0, remaining=remaining)


class SupabaseScanStore(ScanStore):
    """
    Supabase RPC 저장소

    increment_scan_if_allowed 함수가 리셋 / 확인 / 차감을 조건부 UPDATE 로 처리한다.
    (supabase/migrations 참고)
    """

    def __init__(self, client: Any):
        self.client = client

    async def _call(self, user_id: str, daily_limit: int, check_only: bool) -> QuotaDecision:
        params = {"p_user_id": user_id, "p_check": check_only, "p_daily_limit": daily_limit}
        loop = asyncio.get_running_loop()
        try:
            response = await loop.run_in_executor(
                None,
                lambda: self.client.rpc(QUOTA_RPC, params).execute()
            )
        except Exception as e:
            logger.error(f"[Quota] RPC {QUOTA_RPC} failed: {e}")
            raise PersistenceError("Failed to check scan permissions") from e

        data = response.data
        if isinstance(data, list):
            data = data[0] if data else {}
        data = data or {}

        remaining = data.get("remaining")
        return QuotaDecision(
            allowed=bool(data.get("success")),
            remaining=int(remaining) if remaining is not None else 0,
            error=data.get("error"),
        )

    async def consume(self, user_id: str, daily_limit: int) -> QuotaDecision:
        return await self._call(user_id, daily_limit, check_only=False)

    async def peek(self, user_id: str, daily_limit: int) -> QuotaDecision:
        return await self._call(user_id, daily_limit, check_only=True)


class ScanQuotaGate:
    """
    과금되는 모델 호출 전에 스캔 한도를 확인하는 게이트

    사용법:
    ```python
    gate = ScanQuotaGate(MemoryScanStore(), daily_limit=3)
    decision = await gate.consume(user_id)   # 한도 초과 시 QuotaError
    ```
    """

    def __init__(self, store: ScanStore, daily_limit: Optional[int] = None):
        self.store = store
        self.daily_limit = daily_limit if daily_limit is not None else get_settings().daily_free_scans
        self._stats = {"allowed": 0, "denied": 0}

    async def consume(self, user_id: str) -> QuotaDecision:
        """
        스캔 1회 차감

        Raises:
            QuotaError: 한도 초과 (업그레이드 안내 메시지)
        """
        decision = await self.store.consume(user_id, self.daily_limit)

        if not decision.allowed:
            self._stats["denied"] += 1
            if decision.error and decision.error != UPGRADE_MESSAGE:
                logger.warning(f"[Quota] store reported: {decision.error}")
            logger.info(f"[Quota] denied user={user_id[:8]}...")
            raise QuotaError(UPGRADE_MESSAGE, remaining=0)

        self._stats["allowed"] += 1
        logger.info(
            f"[Quota] allowed user={user_id[:8]}... "
            f"remaining={'unlimited' if decision.is_premium else decision.remaining}"
        )
        return decision

    async def status(self, user_id: str) -> QuotaDecision:
        return await self.store.peek(user_id, self.daily_limit)

    def get_stats(self) -> Dict[str, int]:
        """통계 반환"""
        return dict(self._stats)


# 전역 인스턴스
_quota_gate: Optional[ScanQuotaGate] = None


def get_quota_gate() -> ScanQuotaGate:
    """
    전역 Quota Gate 반환

    Supabase 가 설정되어 있으면 RPC 저장소, 아니면 인메모리 저장소를 사용한다.
    """
    global _quota_gate
    if _quota_gate is None:
        from supabase_client import get_supabase_client

        client = get_supabase_client()
        if client is not None:
            store: ScanStore = SupabaseScanStore(client)
        else:
            logger.warning("[Quota] Supabase not configured - using in-memory scan store")
            store = MemoryScanStore()
        _quota_gate = ScanQuotaGate(store)
    return _quota_gate


def configure_quota_gate(gate: ScanQuotaGate) -> ScanQuotaGate:
    """Quota Gate 교체 및 반환"""
    global _quota_gate
    _quota_gate = gate
    return _quota_gate
