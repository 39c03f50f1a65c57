"""
스테이지 공통 기반

모든 스테이지는 같은 흐름을 따른다:
프롬프트 구성 → 모델 1회 호출 (제한 시간 있음, 재시도 없음) → JSON 추출 → 필드 단위 복구

모델 호출 실패(UpstreamModelError)는 호출자에게 전달하지 않고 fallback 문서로 대체한다.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Generic, List, Optional, Sequence, Tuple, TypeVar, Union

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import HumanMessage
from pydantic import ValidationError

from ..config import Settings, get_settings
from ..errors import UpstreamModelError
from ..image_fetcher import FetchedImage
from ..llm.client import LLMProvider, get_llm_by_model, get_llm_client
from ..llm.language import get_language_instruction, validate_language
from .models import StageDocument
from .normalizer import extract_json_object

logger = logging.getLogger(__name__)

D = TypeVar("D", bound=StageDocument)

RepairFn = Callable[[Any], Tuple[D, List[str]]]
ParseFn = Callable[[str], Any]

WHOLE_RESPONSE = "*"


@dataclass
class StageResult(Generic[D]):
    """스테이지 결과"""
    document: D
    used_fallback: bool = False
    repaired_fields: List[str] = field(default_factory=list)

    def to_response(self) -> Dict[str, Any]:
        """HTTP 응답 본문: {success, ...문서, usedFallback}"""
        return {"success": True, **self.document.to_response(), "usedFallback": self.used_fallback}


def response_text(response: Any) -> str:
    """
    AIMessage.content 를 문자열로

    Gemini 는 content 를 파트 리스트로 돌려주는 경우가 있다.
    """
    content = getattr(response, "content", response)
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and isinstance(part.get("text"), str):
                parts.append(part["text"])
        return "".join(parts)
    return "" if content is None else str(content)


class BaseStage:
    """
    스테이지 기반 클래스

    Args:
        language: 응답 언어 (미지원 코드는 en)
        llm: 주입할 LangChain 채팅 모델 (None 이면 첫 호출 때 설정값으로 생성)
        model_name: 특정 모델 사용 (예: "gpt-4o-mini")
        provider: 프로바이더 고정 ("gemini" | "openai", None 이면 클래스 기본값 또는 설정값)
        settings: 설정 (None 이면 전역 설정)
    """

    name = "Stage"
    temperature = 0.3
    max_output_tokens = 2048
    provider: Optional[LLMProvider] = None

    def __init__(
        self,
        language: str = "en",
        llm: Optional[BaseChatModel] = None,
        model_name: Optional[str] = None,
        settings: Optional[Settings] = None,
        provider: Optional[LLMProvider] = None,
    ):
        self.language = validate_language(language)
        self.model_name = model_name
        if provider is not None:
            self.provider = provider
        self.settings = settings or get_settings()
        self._llm = llm

    @property
    def llm(self) -> BaseChatModel:
        # API 키가 없으면 여기서 ValueError -> _invoke 에서 UpstreamModelError 로 변환
        if self._llm is None:
            if self.model_name:
                self._llm = get_llm_by_model(
                    self.model_name,
                    temperature=self.temperature,
                    max_output_tokens=self.max_output_tokens,
                    settings=self.settings,
                )
            else:
                self._llm = get_llm_client(
                    temperature=self.temperature,
                    max_output_tokens=self.max_output_tokens,
                    provider=self.provider,
                    settings=self.settings,
                )
        return self._llm

    def language_instruction(self) -> str:
        return get_language_instruction(self.language)

    @staticmethod
    def build_content(prompt: str, images: Optional[Sequence[FetchedImage]] = None) -> Union[str, List[Dict[str, Any]]]:
        """멀티모달 메시지 구성"""
        if not images:
            return prompt
        content: List[Dict[str, Any]] = [{"type": "text", "text": prompt}]
        for image in images:
            content.append({
                "type": "image_url",
                "image_url": {"url": image.data_url}
            })
        return content

    async def _invoke(self, content: Union[str, List[Dict[str, Any]]]) -> str:
        """
        모델 1회 호출

        Raises:
            UpstreamModelError: 타임아웃, 네트워크 / 프로바이더 에러, API 키 누락
        """
        timeout = self.settings.model_timeout_seconds
        try:
            response = await asyncio.wait_for(
                self.llm.ainvoke([HumanMessage(content=content)]),
                timeout=timeout,
            )
        except asyncio.TimeoutError as e:
            raise UpstreamModelError(f"{self.name} timed out after {timeout:.0f}s") from e
        except Exception as e:
            raise UpstreamModelError(f"{self.name} model call failed: {type(e).__name__}: {e}") from e
        return response_text(response)

    async def _run(
        self,
        content: Union[str, List[Dict[str, Any]]],
        repair: RepairFn,
        fallback: Any = None,
        parse: ParseFn = extract_json_object,
    ) -> StageResult:
        """
        호출 + 파싱 + 복구

        Args:
            content: 프롬프트 (또는 멀티모달 content)
            repair: 순수 복구 함수 (raw -> (문서, 복구된 필드))
            fallback: 모델 호출 실패 시 repair 에 넘길 전체 대체 문서
            parse: 텍스트 -> raw JSON
        """
        try:
            text = await self._invoke(content)
        except UpstreamModelError as e:
            logger.warning(f"[{self.name}] {e} - using fallback response")
            return self._fallback_result(repair, fallback)

        raw = parse(text)
        if raw is None:
            logger.warning(f"[{self.name}] could not extract JSON from model output ({len(text)} chars)")

        try:
            document, repaired = repair(raw)
        except ValidationError as e:
            logger.warning(f"[{self.name}] repaired document still invalid: {e.error_count()} errors")
            return self._fallback_result(repair, fallback)

        if repaired:
            logger.info(f"[{self.name}] repaired fields: {', '.join(repaired)}")
        return StageResult(document=document, used_fallback=bool(repaired), repaired_fields=repaired)

    def _fallback_result(self, repair: RepairFn, fallback: Any) -> StageResult:
        document, _ = repair(fallback)
        return StageResult(document=document, used_fallback=True, repaired_fields=[WHOLE_RESPONSE])
