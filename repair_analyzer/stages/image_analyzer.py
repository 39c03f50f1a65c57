"""
이미지 분석기 - Vision LLM 으로 고장난 기기 사진 분석

주요 기능:
1. 사진에서 후보 문제 감지 (problems: label / reasoning / confidence)
2. 눈에 보이는 관찰 내용 정리 (visualObservations)
3. 확인 질문 5개 생성 (clarifyingQuestions)
"""
import logging
from functools import partial
from typing import List, Optional, Sequence

import httpx

from ..config import Settings, get_settings
from ..errors import ImageFetchError
from ..image_fetcher import FetchedImage, clean_base64, fetch_images
from .base import BaseStage, StageResult
from .defaults import FALLBACK_IMAGE_ANALYSIS
from .normalizer import repair_image_analysis
from .prompts import IMAGE_ANALYSIS_PROMPT

logger = logging.getLogger(__name__)


class ImageAnalyzer(BaseStage):
    """Vision LLM 기반 기기 이미지 분석기"""

    name = "ImageAnalyzer"
    temperature = 0.1

    async def analyze(
        self,
        images: Sequence[FetchedImage],
        device_category: str,
        symptoms: Optional[str] = None,
    ) -> StageResult:
        """
        이미지 분석 실행

        Args:
            images: 인코딩된 이미지 (최대 max_images 장)
            device_category: 기기 카테고리
            symptoms: 사용자가 입력한 증상 (선택)

        Returns:
            StageResult[ImageAnalysisResult]
        """
        symptoms_section = f"\nThe owner describes the problem as: \"{symptoms}\"\n" if symptoms else ""
        prompt = IMAGE_ANALYSIS_PROMPT.format(
            device_category=device_category,
            symptoms_section=symptoms_section,
            language_instruction=self.language_instruction(),
        )

        content = self.build_content(prompt, list(images)[: self.settings.max_images])
        return await self._run(
            content,
            partial(repair_image_analysis, device_category=device_category),
            fallback=FALLBACK_IMAGE_ANALYSIS,
        )


async def load_request_images(
    image_urls: Sequence[str] = (),
    images_base64: Sequence[str] = (),
    settings: Optional[Settings] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> List[FetchedImage]:
    """
    요청 이미지 준비

    base64 이미지는 그대로 사용하고 URL 은 병렬로 내려받는다.

    Raises:
        ImageFetchError: 사용할 수 있는 이미지가 하나도 없을 때
    """
    settings = settings or get_settings()
    images: List[FetchedImage] = [clean_base64(b) for b in images_base64 if b and b.strip()]
    urls = [u for u in image_urls if u and u.strip()]
    if urls:
        images.extend(
            await fetch_images(urls, settings, client=http_client, require_any=not images)
        )

    if not images:
        raise ImageFetchError("Failed to process any images")
    return images[: settings.max_images]

