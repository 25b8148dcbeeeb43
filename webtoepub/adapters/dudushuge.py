"""www.dudushuge.com：目录分页通过下拉框列出"""
from __future__ import annotations

from typing import List

from ..models import ChapterReference, RawDocument
from ..modules.catalog import get_chapters_from_all_toc_pages
from ..modules.metadata import default_author
from ..modules.utils import get_first_img_src, hyperlink_to_chapter
from .base import AdapterDescriptor, host

__all__ = ['DUDUSHUGE', 'get_urls_of_toc_pages', 'extract_partial_chapter_list', 'RULES']


def get_urls_of_toc_pages(doc: RawDocument) -> List[str]:
    return [
        doc.absolute_url(opt['value'])
        for opt in doc.select('.middle > select:nth-child(1) option')
        if opt.get('value')
    ]


def extract_partial_chapter_list(doc: RawDocument) -> List[ChapterReference]:
    return [
        hyperlink_to_chapter(a, doc.url)
        for a in doc.select('div.section-box:nth-child(4) > ul:nth-child(1) li a')
    ]


async def get_chapter_urls(adapter, doc: RawDocument) -> List[ChapterReference]:
    return await get_chapters_from_all_toc_pages(
        adapter,
        extract_partial_chapter_list(doc),
        extract_partial_chapter_list,
        get_urls_of_toc_pages(doc),
        adapter.toc_progress,
        workers=adapter.config.workers,
        first_page_url=doc.url,
    )


def extract_author(adapter, doc: RawDocument):
    label = doc.select_one('div.fix > p:nth-child(1)')
    if label is None:
        return default_author(doc)
    return label.get_text(strip=True).replace('作者：', '').strip()


DUDUSHUGE = AdapterDescriptor(
    name='Dudushuge',
    get_chapter_urls=get_chapter_urls,
    find_content=lambda adapter, doc: doc.select_one('#content'),
    extract_title=lambda adapter, doc: doc.select_one('.top > h1:nth-child(1)'),
    extract_author=extract_author,
    extract_language=lambda adapter, doc: 'zh-CN',
    extract_description=lambda adapter, doc: doc.select_one('.desc'),
    find_cover_image_url=lambda adapter, doc: get_first_img_src(doc, '.imgbox'),
)

RULES = [
    host('www.dudushuge.com', DUDUSHUGE),
]
