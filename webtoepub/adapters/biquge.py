"""biquge.tw：目录在单独页面，章节按 _2、_3 分页"""
from __future__ import annotations

from typing import List, Optional

from ..errors import ExtractionError
from ..models import ChapterReference, RawDocument
from ..modules.content import walk_pages_of_chapter
from ..modules.metadata import default_author
from ..modules.utils import get_first_img_src, hyperlinks_to_chapter_list
from .base import AdapterDescriptor, host

__all__ = ['BIQUGE', 'more_chapter_text_url', 'RULES']


async def get_chapter_urls(adapter, doc: RawDocument) -> List[ChapterReference]:
    link = doc.select_one('a.chapterlist')
    if link is None or not link.get('href'):
        raise ExtractionError("chapter list link not found", doc.url)
    toc = await adapter.fetch_document(doc.absolute_url(link['href']))
    return hyperlinks_to_chapter_list(toc.select_one('div.booklist ul'), toc.url)


def more_chapter_text_url(doc: RawDocument) -> Optional[str]:
    """同一章的下一页链接带下划线（xxx_2.html），下一章则没有"""
    urls = [
        doc.absolute_url(a['href'])
        for a in doc.select('a#next_url[href]')
        if '_' in a['href']
    ]
    return urls[-1] if urls else None


async def fetch_chapter(adapter, url: str) -> RawDocument:
    return await walk_pages_of_chapter(adapter, url, more_chapter_text_url)


def extract_author(adapter, doc: RawDocument):
    return doc.select_one('.book .right h2 a') or default_author(doc)


BIQUGE = AdapterDescriptor(
    name='Biquge',
    get_chapter_urls=get_chapter_urls,
    find_content=lambda adapter, doc: doc.select_one('#chaptercontent'),
    extract_title=lambda adapter, doc: doc.select_one('.book h1'),
    extract_author=extract_author,
    extract_language=lambda adapter, doc: 'zh',
    find_chapter_title=lambda adapter, doc: doc.select_one('.book h1'),
    find_cover_image_url=lambda adapter, doc: get_first_img_src(doc, '.cover'),
    fetch_chapter=fetch_chapter,
)

RULES = [
    host('biquge.tw', BIQUGE),
]
