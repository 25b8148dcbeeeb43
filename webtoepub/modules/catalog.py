"""目录页相关工具/逻辑：多页目录的聚合"""
from __future__ import annotations

import asyncio
import re
from typing import Callable, Iterable, List, Optional, TYPE_CHECKING

from ..errors import ExtractionError
from ..models import ChapterReference, RawDocument
from ..utils import debug_print, safe_print
from .utils import gather_or_cancel, hyperlinks_to_chapter_list

if TYPE_CHECKING:
    from ..adapters.base import Adapter

__all__ = [
    'GENERIC_CATALOG_SELECTORS',
    'find_next_toc_page',
    'extract_generic_chapter_list',
    'get_chapters_from_all_toc_pages',
    'walk_toc_pages',
]

PartialExtractor = Callable[[RawDocument], List[ChapterReference]]
NextTocUrl = Callable[[RawDocument, List[ChapterReference], List[ChapterReference]], Optional[str]]
ProgressCallback = Callable[[int, int], None]

# 通用目录选择器，按顺序尝试
GENERIC_CATALOG_SELECTORS = [
    '#list dd a',
    '.listmain dd a',
    '.chapter-list a',
    '.chapter-item a',
    'ul.chapters a',
    '#chapters a',
    '.catalog a',
    'div.list a',
]


def extract_generic_chapter_list(doc: RawDocument) -> List[ChapterReference]:
    """用通用选择器在目录页中找章节链接"""
    for selector in GENERIC_CATALOG_SELECTORS:
        links = doc.select(selector)
        if links:
            chapters = []
            seen = set()
            for link in links:
                href = link.get('href', '').strip()
                title = link.get_text(' ', strip=True)
                if not href or not title or href.startswith(('javascript:', '#')):
                    continue
                url = doc.absolute_url(href)
                if url in seen:
                    continue
                seen.add(url)
                chapters.append(ChapterReference(source_url=url, title=title))
            if chapters:
                debug_print(f"🎯 目录选择器命中: {selector}")
                return chapters
    return hyperlinks_to_chapter_list(doc.soup.body or doc.soup, doc.url)


def find_next_toc_page(doc: RawDocument) -> Optional[str]:
    """查找目录页的『下一页』链接，支持 <select id="indexselect"> 形式的分页"""
    link = doc.soup.find('a', string=re.compile(r'下一[页頁]|下页|next', re.I))
    if link and link.get('href') and not link['href'].startswith(('javascript:', '#')):
        return doc.absolute_url(link['href'])

    select = doc.soup.find('select', id=re.compile(r'indexselect', re.I))
    if select:
        next_flag = False
        for opt in select.find_all('option'):
            if opt.has_attr('selected'):
                next_flag = True
                continue
            if next_flag and opt.get('value'):
                return doc.absolute_url(opt['value'])
    return None


async def get_chapters_from_all_toc_pages(
    adapter: 'Adapter',
    first_page_chapters: List[ChapterReference],
    extract_partial: PartialExtractor,
    toc_urls: Iterable[str],
    progress: Optional[ProgressCallback] = None,
    workers: int = 1,
    first_page_url: Optional[str] = None,
) -> List[ChapterReference]:
    """
    已知所有后续目录页URL时的聚合：逐页抓取并按页序拼接。
    workers > 1 时并发抓取，但结果按页序号重组，与返回先后无关。
    """
    visited = {first_page_url} if first_page_url else set()
    urls: List[str] = []
    for url in toc_urls:
        if url not in visited:
            visited.add(url)
            urls.append(url)

    total_pages = len(urls) + 1
    if total_pages > adapter.config.max_toc_pages:
        raise ExtractionError(
            f"table of contents has {total_pages} pages, limit is {adapter.config.max_toc_pages}",
            first_page_url,
        )

    pages: List[Optional[List[ChapterReference]]] = [None] * len(urls)
    semaphore = asyncio.Semaphore(max(1, workers))
    completed = 1
    if progress:
        progress(completed, total_pages)

    async def fetch_page(index: int, url: str) -> None:
        nonlocal completed
        async with semaphore:
            adapter.check_cancelled()
            doc = await adapter.fetch_document(url)
        pages[index] = extract_partial(doc)
        completed += 1
        if progress:
            progress(completed, total_pages)

    await gather_or_cancel(fetch_page(i, url) for i, url in enumerate(urls))

    chapters = list(first_page_chapters)
    for page in pages:
        chapters.extend(page or [])
    return chapters


async def walk_toc_pages(
    adapter: 'Adapter',
    first_doc: RawDocument,
    extract_partial: PartialExtractor,
    next_toc_url: NextTocUrl,
    progress: Optional[ProgressCallback] = None,
) -> List[ChapterReference]:
    """
    下一页地址只有看过当前页才能知道时的顺序遍历。
    重复出现的URL视为目录结束；超过页数上限抛 ExtractionError。
    """
    last_fetch = extract_partial(first_doc)
    chapters: List[ChapterReference] = list(last_fetch)
    visited = {first_doc.url}
    page_num = 1
    if progress:
        progress(page_num, 0)

    current_url = next_toc_url(first_doc, chapters, last_fetch)
    while current_url:
        if current_url in visited:
            safe_print(f"⚠️ [yellow]检测到目录页循环，已在 {current_url} 停止。[/yellow]")
            break
        if page_num >= adapter.config.max_toc_pages:
            raise ExtractionError(
                f"table of contents exceeds {adapter.config.max_toc_pages} pages", current_url
            )
        adapter.check_cancelled()
        visited.add(current_url)

        doc = await adapter.fetch_document(current_url)
        last_fetch = extract_partial(doc)
        if not last_fetch:
            safe_print(f"⚠️ [yellow]警告: 在目录页 {current_url} 未找到任何章节链接。[/yellow]")
        chapters.extend(last_fetch)
        page_num += 1
        if progress:
            progress(page_num, 0)

        current_url = next_toc_url(doc, chapters, last_fetch)

    return chapters
