"""适配器契约

每个站点是一份 ``AdapterDescriptor``：一组能力函数，没有提供的能力由
``DEFAULT_DESCRIPTOR`` 补齐。``Adapter`` 是描述符加上运行期依赖
（抓取客户端、配置、取消标记、站点私有状态）后的实例。
"""
from __future__ import annotations

import dataclasses
from dataclasses import dataclass, fields
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from bs4 import Tag

from ..errors import ExtractionError
from ..models import (
    CancellationToken,
    ChapterReference,
    ContentFragment,
    ExtractionConfig,
    FetchOptions,
    RawDocument,
)
from ..modules.catalog import extract_generic_chapter_list, find_next_toc_page, walk_toc_pages
from ..modules.fetcher import FetchClient
from ..modules.metadata import (
    default_author,
    default_cover_url,
    default_description,
    default_language,
    extract_novel_title,
    fallback,
)
from ..modules.sanitizer import ContentSanitizer, SanitizerRule
from ..registry import SourceRule

__all__ = [
    'AdapterDescriptor',
    'DEFAULT_DESCRIPTOR',
    'Adapter',
    'factory_for',
    'host',
    'dead_site',
    'url_rule',
    'manual',
]

DocCapability = Callable[['Adapter', RawDocument], Any]


@dataclass(frozen=True)
class AdapterDescriptor:
    name: str
    get_chapter_urls: Optional[Callable[['Adapter', RawDocument], Awaitable[List[ChapterReference]]]] = None
    find_content: Optional[Callable[['Adapter', RawDocument], Optional[Tag]]] = None
    preprocess_raw_dom: Optional[Callable[['Adapter', RawDocument], None]] = None
    removal_rules: Optional[Tuple[SanitizerRule, ...]] = None
    transform_content: Optional[Callable[['Adapter', Tag], None]] = None
    extract_title: Optional[DocCapability] = None
    extract_author: Optional[DocCapability] = None
    extract_language: Optional[DocCapability] = None
    extract_description: Optional[DocCapability] = None
    extract_subject: Optional[DocCapability] = None
    find_chapter_title: Optional[DocCapability] = None
    find_cover_image_url: Optional[DocCapability] = None
    fetch_chapter: Optional[Callable[['Adapter', str], Awaitable[RawDocument]]] = None
    metadata_document: Optional[Callable[['Adapter', RawDocument], RawDocument]] = None
    make_state: Optional[Callable[[], Dict[str, Any]]] = None
    minimum_throttle: Optional[float] = None
    text_encoding: Optional[str] = None

    def extend(self, **overrides) -> 'AdapterDescriptor':
        """基于当前描述符派生新站点（站点家族共用一套能力）"""
        return dataclasses.replace(self, **overrides)


async def _default_get_chapter_urls(adapter: 'Adapter', doc: RawDocument) -> List[ChapterReference]:
    return await walk_toc_pages(
        adapter,
        doc,
        extract_generic_chapter_list,
        lambda page, chapters, last: find_next_toc_page(page),
        adapter.toc_progress,
    )


CONTENT_SELECTORS = [
    '#content',
    '#chaptercontent',
    '.chapter-content',
    '.content',
    'div.entry-content',
    '#booktext',
    'article',
]


def _default_find_content(adapter: 'Adapter', doc: RawDocument) -> Optional[Tag]:
    for selector in CONTENT_SELECTORS:
        element = doc.select_one(selector)
        if element is not None and element.get_text(strip=True):
            return element
    return None


def _default_find_chapter_title(adapter: 'Adapter', doc: RawDocument):
    return doc.select_one('h1') or doc.soup.title


async def _default_fetch_chapter(adapter: 'Adapter', url: str) -> RawDocument:
    return await adapter.fetch_document(url, adapter.chapter_fetch_options())


DEFAULT_DESCRIPTOR = AdapterDescriptor(
    name='default',
    get_chapter_urls=_default_get_chapter_urls,
    find_content=_default_find_content,
    preprocess_raw_dom=lambda adapter, doc: None,
    removal_rules=(),
    transform_content=lambda adapter, content: None,
    extract_title=lambda adapter, doc: extract_novel_title(doc),
    extract_author=lambda adapter, doc: default_author(doc),
    extract_language=lambda adapter, doc: default_language(doc),
    extract_description=lambda adapter, doc: default_description(doc),
    extract_subject=lambda adapter, doc: None,
    find_chapter_title=_default_find_chapter_title,
    find_cover_image_url=lambda adapter, doc: default_cover_url(doc),
    fetch_chapter=_default_fetch_chapter,
    metadata_document=lambda adapter, doc: doc,
    make_state=dict,
    minimum_throttle=0.0,
    text_encoding=None,
)


def merge_descriptor(site: AdapterDescriptor) -> AdapterDescriptor:
    """站点未提供的能力用默认描述符补齐"""
    merged = {
        f.name: getattr(DEFAULT_DESCRIPTOR, f.name)
        for f in fields(AdapterDescriptor)
        if getattr(site, f.name) is None
    }
    return dataclasses.replace(site, **merged)


class Adapter:
    """一个站点适配器实例，每次提取一本书时创建"""

    def __init__(
        self,
        descriptor: AdapterDescriptor,
        fetch_client: Optional[FetchClient] = None,
        config: Optional[ExtractionConfig] = None,
    ):
        self.descriptor = merge_descriptor(descriptor)
        self.name = descriptor.name
        self.fetch_client = fetch_client
        self.config = config or ExtractionConfig()
        self.cancel_token: Optional[CancellationToken] = None
        self.toc_progress: Optional[Callable[[int, int], None]] = None
        self.sanitizer = ContentSanitizer(self.descriptor.removal_rules)
        # 站点私有状态（解码表、缓存的信息页等），构造时建立
        self.state: Dict[str, Any] = self.descriptor.make_state()

    def __repr__(self) -> str:
        return f"<Adapter {self.name}>"

    def bind(
        self,
        fetch_client: FetchClient,
        config: Optional[ExtractionConfig] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> 'Adapter':
        self.fetch_client = fetch_client
        if config is not None:
            self.config = config
        self.cancel_token = cancel_token
        return self

    @property
    def minimum_throttle(self) -> float:
        return self.descriptor.minimum_throttle

    def check_cancelled(self) -> None:
        if self.cancel_token is not None:
            self.cancel_token.raise_if_cancelled()

    def chapter_fetch_options(self) -> FetchOptions:
        return FetchOptions(encoding=self.config.encoding or self.descriptor.text_encoding)

    async def fetch_document(self, url: str, options: Optional[FetchOptions] = None) -> RawDocument:
        if self.fetch_client is None:
            raise RuntimeError(f"adapter {self.name} is not bound to a fetch client")
        if options is None and self.config.encoding:
            options = FetchOptions(encoding=self.config.encoding)
        return await self.fetch_client.fetch_document(url, options)

    async def fetch_json(self, url: str, options: Optional[FetchOptions] = None):
        if self.fetch_client is None:
            raise RuntimeError(f"adapter {self.name} is not bound to a fetch client")
        return await self.fetch_client.fetch_json(url, options)

    # --- 能力接口 ---

    async def get_chapter_urls(self, doc: RawDocument) -> List[ChapterReference]:
        return await self.descriptor.get_chapter_urls(self, doc)

    def find_content(self, doc: RawDocument) -> Optional[Tag]:
        return self.descriptor.find_content(self, doc)

    def preprocess_raw_dom(self, doc: RawDocument) -> None:
        self.descriptor.preprocess_raw_dom(self, doc)

    def remove_unwanted_elements_from_content_element(self, element: Tag, page_url: str) -> Tag:
        return self.sanitizer.apply(element, page_url)

    def transform_content(self, element: Tag) -> None:
        self.descriptor.transform_content(self, element)

    def metadata_document(self, doc: RawDocument) -> RawDocument:
        return self.descriptor.metadata_document(self, doc)

    def extract_title(self, doc: RawDocument):
        return self.descriptor.extract_title(self, doc)

    def extract_author(self, doc: RawDocument):
        return self.descriptor.extract_author(self, doc)

    def extract_language(self, doc: RawDocument):
        return self.descriptor.extract_language(self, doc)

    def extract_description(self, doc: RawDocument):
        return self.descriptor.extract_description(self, doc)

    def extract_subject(self, doc: RawDocument):
        return self.descriptor.extract_subject(self, doc)

    def find_chapter_title(self, doc: RawDocument):
        return self.descriptor.find_chapter_title(self, doc)

    def find_cover_image_url(self, doc: RawDocument):
        return self.descriptor.find_cover_image_url(self, doc)

    async def fetch_chapter_document(self, url: str) -> RawDocument:
        return await self.descriptor.fetch_chapter(self, url)

    async def fetch_chapter(self, url: str) -> ContentFragment:
        """抓取（可能跨多页）-> 预处理 -> 定位正文 -> 清洗 -> 变换，返回独立的正文片段"""
        doc = await self.fetch_chapter_document(url)
        self.preprocess_raw_dom(doc)
        content = self.find_content(doc)
        if content is None:
            raise ExtractionError("content element not found", url)
        title = fallback('chapter title', lambda: self.find_chapter_title(doc))
        content = content.extract()
        self.remove_unwanted_elements_from_content_element(content, doc.url)
        self.transform_content(content)
        return ContentFragment(element=content, source_url=url, chapter_title=title)


def factory_for(descriptor: AdapterDescriptor) -> Callable[[], Adapter]:
    def factory() -> Adapter:
        return Adapter(descriptor)
    factory.__name__ = f"{descriptor.name}_factory"
    return factory


def host(hostname: str, descriptor: AdapterDescriptor) -> SourceRule:
    return SourceRule(factory_for(descriptor), hostname=hostname)


def dead_site(hostname: str, descriptor: AdapterDescriptor) -> SourceRule:
    return SourceRule(factory_for(descriptor), hostname=hostname, dead=True)


def url_rule(predicate: Callable[[str], bool], descriptor: AdapterDescriptor) -> SourceRule:
    return SourceRule(factory_for(descriptor), predicate=predicate)


def manual(name: str, descriptor: AdapterDescriptor) -> SourceRule:
    return SourceRule(factory_for(descriptor), manual_name=name)
