"""
이미지 다운로드 + base64 인코딩

큰 이미지도 한 번에 버퍼에 올리지 않도록 스트리밍으로 받으면서
3바이트 단위로 잘라 인코딩한다.
"""
import base64
import logging
from dataclasses import dataclass
from typing import List, Optional

import httpx

from .concurrency import gather_bounded
from .config import Settings, get_settings
from .errors import ImageFetchError

logger = logging.getLogger(__name__)

IMAGE_CHUNK_SIZE = 8192


@dataclass
class FetchedImage:
    """인코딩된 이미지"""
    data: str                   # base64 (data URL prefix 없음)
    mime_type: str = "image/jpeg"
    source: Optional[str] = None
    size: int = 0

    @property
    def data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.data}"


class ChunkedBase64Encoder:
    """바이트 스트림을 조각 단위로 base64 인코딩"""

    def __init__(self):
        self._pending = b""
        self._parts: List[str] = []
        self.total_bytes = 0

    def feed(self, data: bytes) -> None:
        self.total_bytes += len(data)
        data = self._pending + data
        # 3바이트 배수만 인코딩해야 조각을 이어 붙여도 패딩이 중간에 끼지 않는다
        usable = len(data) - (len(data) % 3)
        if usable:
            self._parts.append(base64.b64encode(data[:usable]).decode("ascii"))
        self._pending = data[usable:]

    def finish(self) -> str:
        if self._pending:
            self._parts.append(base64.b64encode(self._pending).decode("ascii"))
            self._pending = b""
        return "".join(self._parts)


def encode_bytes_chunked(data: bytes, chunk_size: int = IMAGE_CHUNK_SIZE) -> str:
    """메모리에 있는 바이트를 조각 단위로 인코딩"""
    encoder = ChunkedBase64Encoder()
    for start in range(0, len(data), chunk_size):
        encoder.feed(data[start:start + chunk_size])
    return encoder.finish()


def clean_base64(img_base64: str) -> FetchedImage:
    """data URL prefix 제거 (data:image/png;base64,...)"""
    mime_type = "image/jpeg"
    data = img_base64.strip()
    if data.startswith("data:") and "," in data:
        header, data = data.split(",", 1)
        mime_type = header[5:].split(";")[0] or mime_type
    return FetchedImage(data=data, mime_type=mime_type, size=len(data) * 3 // 4)


async def fetch_image(
    client: httpx.AsyncClient,
    url: str,
    timeout: float = 15.0,
    max_bytes: int = 10 * 1024 * 1024,
) -> FetchedImage:
    """
    URL 에서 이미지를 스트리밍으로 받아 base64 로 인코딩

    Raises:
        ImageFetchError: HTTP 에러, 타임아웃, 크기 초과
    """
    try:
        async with client.stream("GET", url, timeout=timeout) as response:
            if response.status_code >= 400:
                raise ImageFetchError(f"Failed to fetch image: HTTP {response.status_code}")

            mime_type = response.headers.get("content-type", "image/jpeg").split(";")[0].strip()
            if not mime_type.startswith("image/"):
                mime_type = "image/jpeg"

            encoder = ChunkedBase64Encoder()
            async for chunk in response.aiter_bytes(IMAGE_CHUNK_SIZE):
                encoder.feed(chunk)
                if encoder.total_bytes > max_bytes:
                    raise ImageFetchError(f"Image exceeds {max_bytes} bytes")

            if encoder.total_bytes == 0:
                raise ImageFetchError("Image response was empty")

            return FetchedImage(
                data=encoder.finish(),
                mime_type=mime_type,
                source=url,
                size=encoder.total_bytes,
            )
    except httpx.HTTPError as e:
        raise ImageFetchError(f"Failed to fetch image: {type(e).__name__}") from e


async def fetch_images(
    urls: List[str],
    settings: Optional[Settings] = None,
    client: Optional[httpx.AsyncClient] = None,
    require_any: bool = True,
) -> List[FetchedImage]:
    """
    여러 이미지를 병렬로 가져오기 (실패한 이미지는 건너뜀)

    Args:
        urls: 이미지 URL 목록 (max_images 개까지만 사용)
        require_any: True 면 하나도 못 가져왔을 때 ImageFetchError

    Returns:
        성공한 이미지 목록 (요청 순서 유지)
    """
    settings = settings or get_settings()
    urls = [u for u in urls if u][: settings.max_images]

    own_client = client is None
    if own_client:
        client = httpx.AsyncClient(follow_redirects=True)

    try:
        async def fetch_one(url: str) -> FetchedImage:
            return await fetch_image(
                client,
                url,
                timeout=settings.image_fetch_timeout_seconds,
                max_bytes=settings.max_image_bytes,
            )

        images = await gather_bounded(fetch_one, urls, settings.max_concurrency)
    finally:
        if own_client:
            await client.aclose()

    logger.info(f"[ImageFetch] {len(images)}/{len(urls)} images fetched")

    if require_any and not images:
        raise ImageFetchError("Failed to process any images")
    return images
