"""
LLM Client - Multi-Provider Support (Gemini, OpenAI)
"""
from typing import Literal, Optional

from langchain_core.language_models.chat_models import BaseChatModel

from ..config import Settings, get_settings

# Provider 타입
LLMProvider = Literal["gemini", "openai"]


# 기본 모델 설정
MODELS = {
    "gemini": "gemini-2.5-flash",      # 이미지 / 텍스트 분석용
    "openai": "gpt-4o-mini",           # 대체 프로바이더 (검색 기반 합성, 번역)
}


def get_provider(settings: Optional[Settings] = None) -> LLMProvider:
    """설정에서 LLM 프로바이더 가져오기"""
    provider = (settings or get_settings()).llm_provider
    if provider not in ["gemini", "openai"]:
        provider = "gemini"
    return provider


def get_alternate_provider(settings: Optional[Settings] = None) -> LLMProvider:
    """기본 프로바이더의 반대편"""
    return "openai" if get_provider(settings) == "gemini" else "gemini"


def get_gemini_api_key(settings: Optional[Settings] = None) -> str:
    """Gemini API 키 가져오기"""
    api_key = (settings or get_settings()).gemini_api_key
    if not api_key:
        raise ValueError("GEMINI_API_KEY (or GOOGLE_API_KEY) not found in environment.")
    return api_key


def get_openai_api_key(settings: Optional[Settings] = None) -> str:
    """OpenAI API 키 가져오기"""
    api_key = (settings or get_settings()).openai_api_key
    if not api_key:
        raise ValueError("OPENAI_API_KEY not found in environment.")
    return api_key


def get_llm_client(
    temperature: float = 0.3,
    max_output_tokens: int = 2048,
    provider: Optional[LLMProvider] = None,
    settings: Optional[Settings] = None,
) -> BaseChatModel:
    """
    Get the configured LLM Chat Client.

    Args:
        temperature: 온도
        max_output_tokens: 최대 출력 토큰
        provider: LLM 프로바이더 ("gemini" | "openai"). None이면 설정값 사용.
        settings: 설정 (None이면 전역 설정)

    Returns:
        LangChain BaseChatModel
    """
    settings = settings or get_settings()
    if provider is None:
        provider = get_provider(settings)

    model_name = MODELS["openai"] if provider == "openai" else MODELS["gemini"]
    return get_llm_by_model(model_name, temperature, max_output_tokens, settings=settings)


def get_llm_by_model(
    model_name: str,
    temperature: float = 0.3,
    max_output_tokens: int = 2048,
    settings: Optional[Settings] = None,
) -> BaseChatModel:
    """
    특정 모델명으로 LLM 클라이언트 생성

    Args:
        model_name: 모델명 (예: "gemini-2.5-flash", "gpt-4o-mini")
        temperature: 온도
        max_output_tokens: 최대 출력 토큰
        settings: 설정 (None이면 전역 설정)

    Returns:
        LangChain BaseChatModel
    """
    settings = settings or get_settings()
    timeout = settings.model_timeout_seconds

    if "gpt" in model_name.lower():
        from langchain_openai import ChatOpenAI

        return ChatOpenAI(
            model=model_name,
            api_key=get_openai_api_key(settings),
            temperature=temperature,
            max_tokens=max_output_tokens,
            timeout=timeout,
            max_retries=0,
        )

    # 기본값: Gemini
    from langchain_google_genai import ChatGoogleGenerativeAI

    return ChatGoogleGenerativeAI(
        model=model_name if "gemini" in model_name.lower() else MODELS["gemini"],
        google_api_key=get_gemini_api_key(settings),
        temperature=temperature,
        max_output_tokens=max_output_tokens,
        timeout=timeout,
        max_retries=0,
    )
