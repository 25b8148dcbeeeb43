"""mznovels.com / empirenovel.com：目录按 ?page=N 分页，最新章节在前"""
from __future__ import annotations

import re
from typing import List
from urllib.parse import parse_qs, urlencode, urlparse, urlunparse

from ..models import ChapterReference, RawDocument
from ..modules.catalog import get_chapters_from_all_toc_pages
from ..modules.metadata import default_author
from ..modules.utils import get_first_img_src, hyperlinks_to_chapter_list
from .base import AdapterDescriptor, host

__all__ = ['MZNOVELS', 'EMPIRENOVEL', 'page_urls_from_pagination', 'RULES']


def _page_number(url: str):
    values = parse_qs(urlparse(url).query).get('page')
    if values and values[0].isdigit():
        return int(values[0])
    return None


def with_page(url: str, page: int) -> str:
    parts = urlparse(url)
    query = parse_qs(parts.query)
    query['page'] = [str(page)]
    return urlunparse(parts._replace(query=urlencode(query, doseq=True)))


def page_urls_from_pagination(doc: RawDocument, selector: str = '.pagination a') -> List[str]:
    """根据分页条里最大的 page 参数生成第 2..N 页的地址"""
    hrefs = [doc.absolute_url(a['href']) for a in doc.select(f'{selector}[href]')]
    pages = [p for p in (_page_number(h) for h in hrefs) if p is not None]
    if not pages:
        return []
    return [with_page(hrefs[0], i) for i in range(2, max(pages) + 1)]


def _collect_reversed(extract_partial):
    async def get_chapter_urls(adapter, doc: RawDocument) -> List[ChapterReference]:
        chapters = await get_chapters_from_all_toc_pages(
            adapter,
            extract_partial(doc),
            extract_partial,
            page_urls_from_pagination(doc),
            adapter.toc_progress,
            workers=adapter.config.workers,
            first_page_url=doc.url,
        )
        chapters.reverse()
        return chapters
    return get_chapter_urls


def mznovels_partial_chapter_list(doc: RawDocument) -> List[ChapterReference]:
    return hyperlinks_to_chapter_list(doc.select_one('.chapter-list'), doc.url)


def _append_author_note(adapter, doc: RawDocument) -> None:
    content = adapter.find_content(doc)
    note = doc.select_one('div.author_note')
    if content is None or note is None:
        return
    for avatar in note.select('.author_note_avatar > img'):
        avatar.decompose()
    content.append(note.extract())


MZNOVELS = AdapterDescriptor(
    name='Mznovels',
    get_chapter_urls=_collect_reversed(mznovels_partial_chapter_list),
    find_content=lambda adapter, doc: doc.select_one('.chapter-content'),
    preprocess_raw_dom=_append_author_note,
    extract_title=lambda adapter, doc: doc.select_one('.novel-title'),
    extract_author=lambda adapter, doc: doc.select_one('.novel-author a') or default_author(doc),
    find_chapter_title=lambda adapter, doc: doc.select_one('h1'),
    find_cover_image_url=lambda adapter, doc: get_first_img_src(doc, '.novel-image-container'),
)


def empirenovel_partial_chapter_list(doc: RawDocument) -> List[ChapterReference]:
    chapters = []
    for link in doc.select('a.chapter_link[href]'):
        # .small 里是发布时间
        for small in link.select('.small'):
            small.decompose()
        chapters.append(ChapterReference(
            source_url=doc.absolute_url(link['href']),
            title=link.get_text(' ', strip=True),
        ))
    return chapters


def empirenovel_subject(adapter, doc: RawDocument):
    tags = [re.sub(r'^#', '', a.get_text(strip=True)) for a in doc.select('div:nth-child(1) > ul a')]
    return ', '.join(t for t in tags if t) or None


EMPIRENOVEL = AdapterDescriptor(
    name='Empirenovel',
    get_chapter_urls=_collect_reversed(empirenovel_partial_chapter_list),
    find_content=lambda adapter, doc: doc.select_one('#read-novel'),
    extract_title=lambda adapter, doc: doc.select_one('h1:not(.show_title)'),
    extract_author=lambda adapter, doc: (
        doc.select_one('div:nth-child(2) > div > span > a') or default_author(doc)
    ),
    extract_subject=empirenovel_subject,
    find_cover_image_url=lambda adapter, doc: get_first_img_src(doc, 'div.cover'),
)

RULES = [
    host('mznovels.com', MZNOVELS),
    host('empirenovel.com', EMPIRENOVEL),
]
