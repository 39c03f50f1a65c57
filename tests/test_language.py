"""
언어 설정 유틸리티 테스트
"""
import pytest

from repair_analyzer.llm.language import (
    DEFAULT_LANGUAGE,
    SUPPORTED_LANGUAGES,
    get_language_instruction,
    get_language_name,
    validate_language,
)
from repair_analyzer.stages.models import DescriptionAnalysisRequest


class TestValidateLanguage:
    @pytest.mark.parametrize("code,expected", [
        ("ko", "ko"),
        ("KO", "ko"),
        ("pt-BR", "pt"),
        ("zh_CN", "zh"),
        (" es ", "es"),
        ("xx", DEFAULT_LANGUAGE),
        ("", DEFAULT_LANGUAGE),
        (None, DEFAULT_LANGUAGE),
    ])
    def test_validate(self, code, expected):
        assert validate_language(code) == expected

    def test_every_supported_language_has_a_name(self):
        for code in SUPPORTED_LANGUAGES:
            assert get_language_name(code)


class TestLanguageInstruction:
    def test_instruction_keeps_keys_in_english(self):
        instruction = get_language_instruction("ja")
        assert "Japanese" in instruction
        assert "JSON keys" in instruction

    def test_request_language_is_normalized(self):
        request = DescriptionAnalysisRequest.model_validate({"description": "no sound", "language": "DE-at"})
        assert request.language == "de"

        request = DescriptionAnalysisRequest.model_validate({"description": "no sound", "language": 42})
        assert request.language == "en"
