"""
Repair Analyzer - 기기 고장 진단 파이프라인

이미지 분석 → 설명 분석 → 질문 생성 → 최종 진단 → 대안 해결책
각 스테이지는 독립적으로 호출 가능하며 모델 실패 시 fallback 으로 대체된다.
"""
__version__ = "0.1.0"

from .config import Settings, get_settings, configure_settings
from .errors import (
    RepairAssistantError,
    InputError,
    AuthError,
    QuotaError,
    ImageFetchError,
    UpstreamModelError,
    PersistenceError,
)

__all__ = [
    "__version__",
    "Settings",
    "get_settings",
    "configure_settings",
    "RepairAssistantError",
    "InputError",
    "AuthError",
    "QuotaError",
    "ImageFetchError",
    "UpstreamModelError",
    "PersistenceError",
]
