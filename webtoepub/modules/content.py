"""章节正文分页拼接"""
from __future__ import annotations

from typing import Callable, Iterable, Optional, TYPE_CHECKING

from bs4 import Tag

from ..errors import ExtractionError
from ..models import RawDocument
from ..utils import debug_print, safe_print
from .utils import move_child_elements, remove_elements

if TYPE_CHECKING:
    from ..adapters.base import Adapter

__all__ = [
    'DEFAULT_CHROME_SELECTOR',
    'walk_pages_of_chapter',
    'stitch_additional_pages',
]

NextPageUrl = Callable[[RawDocument], Optional[str]]

# 分页导航等需要在拼接前去掉的页面元素
DEFAULT_CHROME_SELECTOR = 'div.page-link, div.pgntn-multipage, .pagination, .page-nav'


def _strip_chrome(doc: RawDocument, chrome_selector: Optional[str]) -> None:
    if chrome_selector:
        remove_elements(doc.select(chrome_selector))


def _require_content(adapter: 'Adapter', doc: RawDocument) -> Tag:
    content = adapter.find_content(doc)
    if content is None:
        raise ExtractionError("content element not found", doc.url)
    return content


async def walk_pages_of_chapter(
    adapter: 'Adapter',
    url: str,
    more_chapter_text_url: NextPageUrl,
    chrome_selector: Optional[str] = DEFAULT_CHROME_SELECTOR,
) -> RawDocument:
    """
    获取单个章节的完整内容，自动处理并拼接章节内的分页。
    后续页的正文子节点按顺序追加到第一页的正文节点中，返回第一页文档。
    """
    first = await adapter.fetch_document(url, adapter.chapter_fetch_options())
    dest = _require_content(adapter, first)
    visited = {url, first.url}
    page_count = 1

    next_page_url = more_chapter_text_url(first)
    _strip_chrome(first, chrome_selector)

    while next_page_url:
        if next_page_url in visited:
            safe_print(f"⚠️ [yellow]检测到章节分页循环，已在 {next_page_url} 停止。[/yellow]")
            break
        if page_count >= adapter.config.max_chapter_pages:
            raise ExtractionError(
                f"chapter exceeds {adapter.config.max_chapter_pages} pages", url
            )
        adapter.check_cancelled()
        visited.add(next_page_url)

        doc = await adapter.fetch_document(next_page_url, adapter.chapter_fetch_options())
        next_page_url = more_chapter_text_url(doc)
        _strip_chrome(doc, chrome_selector)
        move_child_elements(_require_content(adapter, doc), dest)
        page_count += 1

    debug_print(f"📄 {url} 共 {page_count} 页")
    return first


async def stitch_additional_pages(
    adapter: 'Adapter',
    doc: RawDocument,
    extra_page_urls: Iterable[str],
    chrome_selector: Optional[str] = DEFAULT_CHROME_SELECTOR,
) -> RawDocument:
    """后续分页地址已知（通常来自第一页的分页条）时的拼接"""
    dest = _require_content(adapter, doc)
    _strip_chrome(doc, chrome_selector)
    visited = {doc.url}
    page_count = 1
    for url in extra_page_urls:
        if url in visited:
            continue
        if page_count >= adapter.config.max_chapter_pages:
            raise ExtractionError(
                f"chapter exceeds {adapter.config.max_chapter_pages} pages", doc.url
            )
        adapter.check_cancelled()
        visited.add(url)

        page = await adapter.fetch_document(url, adapter.chapter_fetch_options())
        _strip_chrome(page, chrome_selector)
        move_child_elements(_require_content(adapter, page), dest)
        page_count += 1
    return doc
