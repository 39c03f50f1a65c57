"""
언어 설정 유틸리티
"""
from typing import Dict

DEFAULT_LANGUAGE = "en"

# 지원되는 언어 (ISO-639-1)
SUPPORTED_LANGUAGES = ["en", "es", "fr", "de", "it", "pt", "ru", "ja", "ko", "zh", "ar", "hi"]

# 언어별 이름 (프롬프트용)
LANGUAGE_NAMES: Dict[str, str] = {
    "en": "English",
    "es": "Spanish (Español)",
    "fr": "French (Français)",
    "de": "German (Deutsch)",
    "it": "Italian (Italiano)",
    "pt": "Portuguese (Português)",
    "ru": "Russian (Русский)",
    "ja": "Japanese (日本語)",
    "ko": "Korean (한국어)",
    "zh": "Chinese (中文)",
    "ar": "Arabic (العربية)",
    "hi": "Hindi (हिन्दी)",
}


def validate_language(language: str) -> str:
    """
    언어 코드 유효성 검사 및 기본값 반환

    Args:
        language: 언어 코드 (대소문자, 지역 코드 허용: "pt-BR" -> "pt")

    Returns:
        유효한 언어 코드 (지원하지 않으면 "en" 반환)
    """
    if not language or not isinstance(language, str):
        return DEFAULT_LANGUAGE
    code = language.strip().lower().replace("_", "-").split("-")[0]
    if code in SUPPORTED_LANGUAGES:
        return code
    return DEFAULT_LANGUAGE


def get_language_name(language: str) -> str:
    return LANGUAGE_NAMES[validate_language(language)]


def get_language_instruction(language: str) -> str:
    """
    언어 코드에 해당하는 지시문 반환

    JSON 키는 영어로 유지하고 값만 해당 언어로 작성하도록 지시한다.
    """
    name = get_language_name(language)
    return (
        f"IMPORTANT: Respond in {name}. Write every human-readable value in {name}, "
        "but keep all JSON keys and enum values (confidence levels, question categories) in English."
    )
