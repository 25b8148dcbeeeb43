from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Dict, List, Optional, TYPE_CHECKING
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

if TYPE_CHECKING:
    from .adapters.base import Adapter

UNKNOWN = '<unknown>'

DEFAULT_HEADERS = {
    'User-Agent': 'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36',
    'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,*/*;q=0.8',
    'Accept-Language': 'en-US,en;q=0.9,zh-CN;q=0.8',
}


@dataclass
class ChapterReference:
    """章节引用：地址、标题、是否默认包含"""
    source_url: str
    title: str
    is_includeable: bool = True

    def to_dict(self) -> Dict[str, object]:
        return {
            'url': self.source_url,
            'title': self.title,
            'isIncludeable': self.is_includeable,
        }


@dataclass(frozen=True)
class TransportResponse:
    """网络层的原始响应"""
    status: int
    headers: Dict[str, str]
    body: bytes
    final_url: str

    def header(self, name: str, default: str = '') -> str:
        name = name.lower()
        for key, value in self.headers.items():
            if key.lower() == name:
                return value
        return default


@dataclass(frozen=True)
class RawDocument:
    """解析后的页面，附带重定向后的最终URL和实际使用的编码"""
    soup: BeautifulSoup
    url: str
    encoding: str = 'utf-8'
    status: int = 200

    def select(self, selector: str) -> List[Tag]:
        return self.soup.select(selector)

    def select_one(self, selector: str) -> Optional[Tag]:
        return self.soup.select_one(selector)

    def absolute_url(self, href: str) -> str:
        return urljoin(self.url, href)


@dataclass
class ContentFragment:
    """清洗后的章节正文（已从原文档中分离）"""
    element: Tag
    source_url: str
    chapter_title: Optional[str] = None

    def children(self) -> list:
        return list(self.element.contents)

    def to_html(self) -> str:
        return str(self.element)

    def text(self) -> str:
        return self.element.get_text('\n', strip=True)


@dataclass
class BookMetadata:
    title: str = UNKNOWN
    author: str = UNKNOWN
    language: Optional[str] = None
    description: Optional[str] = None
    cover_url: Optional[str] = None
    subject: Optional[str] = None

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {
            'title': self.title,
            'author': self.author,
            'language': self.language,
            'description': self.description,
            'coverUrl': self.cover_url,
            'subject': self.subject,
        }


@dataclass
class FetchOptions:
    """单次请求的覆盖参数"""
    encoding: Optional[str] = None  # 显式指定编码，优先于响应头声明
    headers: Dict[str, str] = field(default_factory=dict)
    method: str = 'GET'
    data: Optional[Dict[str, str]] = None


@dataclass
class ExtractionConfig:
    timeout: float = 15.0
    headers: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_HEADERS))
    max_toc_pages: int = 200
    max_chapter_pages: int = 20
    workers: int = 1
    delay: float = 0.0
    skip_failed: bool = False
    encoding: Optional[str] = None  # 命令行强制指定的页面编码


@dataclass
class Resolution:
    adapter: 'Adapter'
    is_dead_site: bool = False


class CancellationToken:
    """协作式取消标记：在章节之间、分页之间检查"""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            from .errors import ExtractionCancelledError
            raise ExtractionCancelledError("extraction cancelled")


@dataclass
class ChapterResult:
    reference: ChapterReference
    fragment: Optional[ContentFragment] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.fragment is not None


@dataclass
class Book:
    adapter: 'Adapter'
    source_url: str
    metadata: BookMetadata
    chapters: List[ChapterReference]
    is_dead_site: bool = False

    def includeable_chapters(self) -> List[ChapterReference]:
        return [c for c in self.chapters if c.is_includeable]
