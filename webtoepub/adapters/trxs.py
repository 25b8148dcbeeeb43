"""trxs / 同人社：章节页按 GBK 编码，但 HTTP 头声明有误"""
from __future__ import annotations

from typing import List

from ..models import ChapterReference, RawDocument
from ..modules.metadata import default_author
from ..modules.utils import get_first_img_src, hyperlinks_to_chapter_list
from .base import AdapterDescriptor, dead_site, host

__all__ = ['TRXS', 'RULES']


async def get_chapter_urls(adapter, doc: RawDocument) -> List[ChapterReference]:
    return hyperlinks_to_chapter_list(doc.select_one('.book_list'), doc.url)


TRXS = AdapterDescriptor(
    name='Trxs',
    get_chapter_urls=get_chapter_urls,
    find_content=lambda adapter, doc: doc.select_one('.read_chapterDetail'),
    find_chapter_title=lambda adapter, doc: doc.select_one('.read_chapterName.tc h1'),
    find_cover_image_url=lambda adapter, doc: get_first_img_src(doc, '.pic'),
    extract_language=lambda adapter, doc: 'zh-CN',
    extract_title=lambda adapter, doc: doc.select_one('.infos > h1:nth-child(1)'),
    extract_author=lambda adapter, doc: (
        doc.select_one('.date > span:nth-child(1) > a:nth-child(1)') or default_author(doc)
    ),
    extract_description=lambda adapter, doc: doc.select_one('.infos > p:nth-child(4)'),
    text_encoding='gbk',
)

RULES = [
    dead_site('trxs.me', TRXS),
    host('trxs.cc', TRXS),
    host('tongrenshe.cc', TRXS),
]
