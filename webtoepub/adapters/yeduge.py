"""yeduge.com / mimihui.com：同一套模板，正文中夹带 <lock> 占位元素"""
from __future__ import annotations

from typing import List

from ..errors import ExtractionError
from ..models import ChapterReference, RawDocument
from ..modules.metadata import default_author
from ..modules.sanitizer import remove_matching
from ..modules.utils import get_first_img_src, hyperlinks_to_chapter_list
from .base import AdapterDescriptor, host

__all__ = ['YEDUGE', 'MIMIHUI', 'RULES']


async def get_chapter_urls(adapter, doc: RawDocument) -> List[ChapterReference]:
    return hyperlinks_to_chapter_list(doc.select_one('.chapter-list'), doc.url)


def extract_author(adapter, doc: RawDocument):
    label = doc.select_one('.info > p:nth-child(2)')
    if label is None:
        return default_author(doc)
    return label.get_text(strip=True).replace('作者：', '').strip()


YEDUGE = AdapterDescriptor(
    name='Yeduge',
    get_chapter_urls=get_chapter_urls,
    find_content=lambda adapter, doc: doc.select_one('.content'),
    removal_rules=(remove_matching('lock'),),
    find_chapter_title=lambda adapter, doc: doc.select_one('.title'),
    find_cover_image_url=lambda adapter, doc: get_first_img_src(doc, '.cover'),
    extract_title=lambda adapter, doc: doc.select_one('.info > h1'),
    extract_author=extract_author,
    extract_description=lambda adapter, doc: doc.select_one('.desc'),
)


async def _mimihui_chapter_urls(adapter, doc: RawDocument) -> List[ChapterReference]:
    # 书页只列出最新章节，完整目录在 "更多章节" 页
    link = doc.select_one('.chapter-more a[href]')
    if link is None:
        raise ExtractionError("full chapter list link not found", doc.url)
    toc = await adapter.fetch_document(doc.absolute_url(link['href']))
    return hyperlinks_to_chapter_list(toc.select_one('.chapter-list'), toc.url)


MIMIHUI = YEDUGE.extend(
    name='Mimihui',
    get_chapter_urls=_mimihui_chapter_urls,
    extract_author=lambda adapter, doc: (
        doc.select_one('.info > dl:nth-child(2) > dd:nth-child(2)') or default_author(doc)
    ),
)

RULES = [
    host('yeduge.com', YEDUGE),
    host('mimihui.com', MIMIHUI),
]
