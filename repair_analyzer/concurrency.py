"""
병렬 처리 유틸리티

동시 실행 수를 제한한 parallel-map. 한 항목의 실패가 나머지를 취소하지 않으며,
모든 항목이 끝난 뒤 실패한 항목만 걸러낸다.
"""
import asyncio
import logging
from typing import Awaitable, Callable, List, Sequence, TypeVar, Union

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


async def map_bounded(
    func: Callable[[T], Awaitable[R]],
    items: Sequence[T],
    limit: int = 4,
) -> List[Union[R, BaseException]]:
    """
    items 각각에 func 적용 (최대 limit 개 동시 실행)

    Returns:
        items 순서와 같은 결과 리스트. 실패한 항목 자리에는 예외 객체가 들어간다.
    """
    if not items:
        return []

    semaphore = asyncio.Semaphore(max(1, limit))

    async def run(item: T) -> R:
        async with semaphore:
            return await func(item)

    return await asyncio.gather(*(run(item) for item in items), return_exceptions=True)


async def gather_bounded(
    func: Callable[[T], Awaitable[R]],
    items: Sequence[T],
    limit: int = 4,
) -> List[R]:
    """map_bounded 결과에서 성공한 값만 반환"""
    results = await map_bounded(func, items, limit)

    succeeded: List[R] = []
    for index, result in enumerate(results):
        if isinstance(result, BaseException):
            logger.warning(f"[Parallel] item {index} failed: {type(result).__name__}: {result}")
            continue
        succeeded.append(result)
    return succeeded
