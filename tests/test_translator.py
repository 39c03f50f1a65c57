"""
번역기 테스트
"""
import pytest
from langchain_core.messages import AIMessage

from repair_analyzer.config import Settings
from repair_analyzer.errors import UpstreamModelError
from repair_analyzer.stages import Translator

from conftest import RaisingChatModel, fake_llm


class SelectiveChatModel:
    """'boom' 이 들어간 문장만 실패하는 모델"""

    def __init__(self):
        self.calls = 0

    async def ainvoke(self, messages, *args, **kwargs):
        self.calls += 1
        if "boom" in messages[0].content:
            raise RuntimeError("provider error")
        return AIMessage(content="  traducido  ")


class TestTranslator:
    """번역 테스트"""

    @pytest.mark.asyncio
    async def test_single_translation(self, settings):
        translator = Translator(llm=fake_llm("El ventilador hace ruido"), settings=settings)
        result = await translator.run("en", "es", text="The fan makes noise")

        response = result.to_response()
        assert response["translatedText"] == "El ventilador hace ruido"
        assert response["fromLanguage"] == "en"
        assert response["toLanguage"] == "es"
        assert response["usedFallback"] is False

    @pytest.mark.asyncio
    async def test_same_language_skips_model(self, settings):
        llm = RaisingChatModel()
        result = await Translator(llm=llm, settings=settings).run("en", "EN-us", text="Hello")

        assert llm.calls == 0
        assert result.document.translated_text == "Hello"

    @pytest.mark.asyncio
    async def test_failed_items_keep_original(self, settings):
        llm = SelectiveChatModel()
        result = await Translator(llm=llm, settings=settings).run(
            "en", "es", texts=["first", "boom", "third"]
        )

        assert result.document.translations == ["traducido", "boom", "traducido"]
        assert result.used_fallback is True
        assert llm.calls == 3

    @pytest.mark.asyncio
    async def test_single_and_batch_together(self, settings):
        result = await Translator(llm=SelectiveChatModel(), settings=settings).run(
            "ko", "en", text="boom", texts=["팬 소음"]
        )

        assert result.document.translated_text == "boom"
        assert result.document.translations == ["traducido"]

    @pytest.mark.asyncio
    async def test_translate_raises_upstream_error(self, settings):
        with pytest.raises(UpstreamModelError):
            await Translator(llm=RaisingChatModel(), settings=settings).translate("Hello", "en", "fr")

    @pytest.mark.asyncio
    async def test_unsupported_target_falls_back_to_english(self, settings):
        llm = RaisingChatModel()
        result = await Translator(llm=llm, settings=settings).run("en", "xx", text="Hello")

        assert llm.calls == 0
        assert result.document.to_language == "en"


class TestTranslatorProvider:
    """번역은 기본 프로바이더의 반대편 사용"""

    @pytest.mark.parametrize("primary, expected", [("gemini", "openai"), ("openai", "gemini"), ("unknown", "openai")])
    def test_alternate_provider(self, primary, expected):
        assert Translator(settings=Settings(llm_provider=primary)).provider == expected

    def test_explicit_provider_wins(self):
        assert Translator(settings=Settings(), provider="gemini").provider == "gemini"
