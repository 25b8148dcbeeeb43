"""提取流水线：URL -> 适配器 -> 章节列表 -> 逐章抓取/拼接/清洗 -> 元数据

这是打包阶段唯一需要调用的入口。
"""
from __future__ import annotations

import asyncio
from typing import AsyncIterator, Callable, Dict, List, Optional, Tuple

from .errors import ExtractionCancelledError, WebToEpubError
from .models import (
    Book,
    CancellationToken,
    ChapterReference,
    ChapterResult,
    ExtractionConfig,
    Resolution,
)
from .modules.fetcher import FetchClient
from .modules.metadata import extract_metadata
from .modules.utils import gather_or_cancel
from .registry import AdapterRegistry
from .utils import debug_print, safe_print

__all__ = [
    'ExtractionPipeline',
    'ChapterProgress',
    'packaging_payload',
]

ChapterProgress = Callable[[int, int, ChapterResult], None]


class ExtractionPipeline:
    """把注册表、抓取客户端和配置组合在一起的提取器"""

    def __init__(
        self,
        registry: AdapterRegistry,
        fetch_client: FetchClient,
        config: Optional[ExtractionConfig] = None,
    ):
        self.registry = registry
        self.fetch_client = fetch_client
        self.config = config or ExtractionConfig()

    def resolve(self, url: str, adapter_name: Optional[str] = None) -> Resolution:
        if adapter_name:
            return Resolution(adapter=self.registry.manual_select(adapter_name))
        return self.registry.resolve(url)

    async def load_book(
        self,
        url: str,
        adapter_name: Optional[str] = None,
        cancel_token: Optional[CancellationToken] = None,
        toc_progress: Optional[Callable[[int, int], None]] = None,
    ) -> Book:
        """解析目录页：得到适配器、章节列表和书籍元数据"""
        resolution = self.resolve(url, adapter_name)
        if resolution.is_dead_site:
            safe_print(f"⚠️ [yellow]{url} 属于已失效站点，提取可能失败。[/yellow]")

        adapter = resolution.adapter.bind(self.fetch_client, self.config, cancel_token)
        adapter.toc_progress = toc_progress
        debug_print(f"🧩 使用适配器: {adapter.name}")

        doc = await adapter.fetch_document(url)
        chapters = await adapter.get_chapter_urls(doc)
        # 目录解析之后再取元数据：有的适配器在目录解析时才拿到作品主页
        metadata = extract_metadata(adapter, adapter.metadata_document(doc))

        return Book(
            adapter=adapter,
            source_url=url,
            metadata=metadata,
            chapters=chapters,
            is_dead_site=resolution.is_dead_site,
        )

    def _chapter_delay(self, delay: Optional[float], book: Book) -> float:
        delay = self.config.delay if delay is None else delay
        return max(delay, book.adapter.minimum_throttle)

    def _selected(self, book: Book, chapters: Optional[List[ChapterReference]]) -> List[ChapterReference]:
        chapters = book.chapters if chapters is None else chapters
        return [c for c in chapters if c.is_includeable]

    async def iter_chapters(
        self,
        book: Book,
        cancel_token: Optional[CancellationToken] = None,
        delay: Optional[float] = None,
        skip_failed: Optional[bool] = None,
        chapters: Optional[List[ChapterReference]] = None,
    ) -> AsyncIterator[ChapterResult]:
        """按阅读顺序逐章抓取。未勾选的章节跳过；每章开始前检查取消"""
        adapter = book.adapter
        if cancel_token is not None:
            adapter.cancel_token = cancel_token
        skip_failed = self.config.skip_failed if skip_failed is None else skip_failed
        delay = self._chapter_delay(delay, book)

        for index, reference in enumerate(self._selected(book, chapters)):
            adapter.check_cancelled()
            if index and delay:
                await asyncio.sleep(delay)
            try:
                fragment = await adapter.fetch_chapter(reference.source_url)
            except ExtractionCancelledError:
                raise
            except WebToEpubError as e:
                if not skip_failed:
                    raise
                debug_print(f"❌ 跳过章节 '{reference.title}': {e}")
                yield ChapterResult(reference, error=e)
                continue
            yield ChapterResult(reference, fragment=fragment)

    async def extract_chapters(
        self,
        book: Book,
        workers: Optional[int] = None,
        cancel_token: Optional[CancellationToken] = None,
        skip_failed: Optional[bool] = None,
        chapters: Optional[List[ChapterReference]] = None,
        progress: Optional[ChapterProgress] = None,
        delay: Optional[float] = None,
    ) -> List[ChapterResult]:
        """
        并发抓取章节（并发数受 workers 限制），结果按阅读顺序返回。
        skip_failed 为 False 时，第一个失败之后不再开始新的章节，
        抛出的是按阅读顺序第一个失败章节的异常。
        """
        adapter = book.adapter
        if cancel_token is not None:
            adapter.cancel_token = cancel_token
        workers = max(1, self.config.workers if workers is None else workers)
        skip_failed = self.config.skip_failed if skip_failed is None else skip_failed
        delay = self._chapter_delay(delay, book)
        selected = self._selected(book, chapters)

        semaphore = asyncio.Semaphore(workers)
        results: List[Optional[ChapterResult]] = [None] * len(selected)
        completed = 0
        aborted = False

        async def fetch_one(index: int, reference: ChapterReference) -> None:
            nonlocal completed, aborted
            async with semaphore:
                # 取消或出现致命错误之后不再开始新的章节
                if aborted:
                    return
                try:
                    adapter.check_cancelled()
                    result = ChapterResult(reference, fragment=await adapter.fetch_chapter(reference.source_url))
                except WebToEpubError as e:
                    result = ChapterResult(reference, error=e)
                    if not skip_failed or isinstance(e, ExtractionCancelledError):
                        aborted = True
                if delay and not aborted:
                    await asyncio.sleep(delay)
            results[index] = result
            completed += 1
            if progress:
                progress(completed, len(selected), result)

        await gather_or_cancel(fetch_one(i, ref) for i, ref in enumerate(selected))

        ordered = [r for r in results if r is not None]
        for result in ordered:
            if isinstance(result.error, ExtractionCancelledError):
                raise result.error
        if not skip_failed:
            for result in ordered:
                if result.error is not None:
                    raise result.error
        return ordered

    async def extract(
        self,
        url: str,
        adapter_name: Optional[str] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> Tuple[Book, List[ChapterResult]]:
        """端到端提取一本书"""
        book = await self.load_book(url, adapter_name, cancel_token)
        results = await self.extract_chapters(book, cancel_token=cancel_token)
        return book, results


def packaging_payload(book: Book, results: Optional[List[ChapterResult]] = None) -> Dict[str, object]:
    """交给打包阶段的数据：元数据、章节列表、（可选）正文 HTML"""
    payload: Dict[str, object] = {
        'sourceUrl': book.source_url,
        'adapter': book.adapter.name,
        'deadSite': book.is_dead_site,
        'metadata': book.metadata.to_dict(),
        'chapters': [c.to_dict() for c in book.chapters],
    }
    if results is not None:
        payload['content'] = [
            {
                'url': r.reference.source_url,
                'title': r.reference.title,
                'chapterTitle': r.fragment.chapter_title if r.fragment else None,
                'html': r.fragment.to_html() if r.fragment else None,
                'error': str(r.error) if r.error else None,
            }
            for r in results
        ]
    return payload
