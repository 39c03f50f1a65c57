"""
Repair Analyzer Configuration
환경 변수 기반 설정 (하드코딩 제거)
"""
import os
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()


class Settings(BaseModel):
    """서비스 설정"""
    # LLM 프로바이더
    gemini_api_key: Optional[str] = None
    openai_api_key: Optional[str] = None
    llm_provider: str = "gemini"

    # 웹 검색 (Google Custom Search)
    google_search_api_key: Optional[str] = None
    google_cse_id: Optional[str] = None

    # Supabase
    supabase_url: Optional[str] = None
    supabase_service_role_key: Optional[str] = None
    supabase_jwt_secret: Optional[str] = None
    jwt_audience: str = "authenticated"

    # 타임아웃 (초) - 모든 모델 호출은 하나의 제한 시간 사용
    model_timeout_seconds: float = 30.0
    image_fetch_timeout_seconds: float = 15.0
    search_timeout_seconds: float = 15.0

    # 사용량 제한
    daily_free_scans: int = 3

    # 이미지 / 병렬 처리
    max_images: int = 5
    max_image_bytes: int = 10 * 1024 * 1024
    max_concurrency: int = 4

    allowed_origins: List[str] = ["*"]

    @property
    def search_configured(self) -> bool:
        return bool(self.google_search_api_key and self.google_cse_id)

    @property
    def supabase_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_service_role_key)


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def load_settings() -> Settings:
    """환경 변수에서 설정 로드"""
    origins_raw = os.getenv("ALLOWED_ORIGINS", "*")
    origins = [o.strip() for o in origins_raw.split(",") if o.strip()] or ["*"]

    return Settings(
        gemini_api_key=(
            os.getenv("GEMINI_API_KEY")
            or os.getenv("VITE_GEMINI_API_KEY")
            or os.getenv("GOOGLE_API_KEY")
        ),
        openai_api_key=os.getenv("OPENAI_API_KEY"),
        llm_provider=os.getenv("LLM_PROVIDER", "gemini").lower(),
        google_search_api_key=os.getenv("GOOGLE_SEARCH_API_KEY"),
        google_cse_id=os.getenv("GOOGLE_CSE_ID"),
        supabase_url=os.getenv("SUPABASE_URL"),
        supabase_service_role_key=os.getenv("SUPABASE_SERVICE_ROLE_KEY"),
        supabase_jwt_secret=os.getenv("SUPABASE_JWT_SECRET"),
        jwt_audience=os.getenv("JWT_AUDIENCE", "authenticated"),
        model_timeout_seconds=_env_float("MODEL_TIMEOUT_SECONDS", 30.0),
        image_fetch_timeout_seconds=_env_float("IMAGE_FETCH_TIMEOUT_SECONDS", 15.0),
        search_timeout_seconds=_env_float("SEARCH_TIMEOUT_SECONDS", 15.0),
        daily_free_scans=_env_int("DAILY_FREE_SCANS", 3),
        max_images=_env_int("MAX_IMAGES", 5),
        max_concurrency=_env_int("MAX_CONCURRENCY", 4),
        allowed_origins=origins,
    )


# 전역 인스턴스
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """전역 설정 인스턴스 반환"""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def configure_settings(settings: Settings) -> Settings:
    """설정 교체 (테스트 / 로컬 실행용)"""
    global _settings
    _settings = settings
    return _settings
