"""novelonlinefree 及其镜像站：目录倒序，章节名在 title 属性里"""
from __future__ import annotations

from typing import List

from ..models import ChapterReference, RawDocument
from ..modules.metadata import default_author
from ..modules.utils import get_first_img_src
from .base import AdapterDescriptor, dead_site, host

__all__ = ['NOVELONLINEFREE', 'RULES']


async def get_chapter_urls(adapter, doc: RawDocument) -> List[ChapterReference]:
    links = doc.select('div.chapter-list a[href]')
    links.reverse()
    return [
        ChapterReference(
            source_url=doc.absolute_url(a['href']),
            title=a.get('title') or a.get_text(' ', strip=True),
        )
        for a in links
    ]


def find_content(adapter, doc: RawDocument):
    return doc.select_one('div.vung_doc') or doc.select_one('div.content-area')


NOVELONLINEFREE = AdapterDescriptor(
    name='NovelOnlineFree',
    get_chapter_urls=get_chapter_urls,
    find_content=find_content,
    extract_title=lambda adapter, doc: doc.select_one('h1'),
    extract_author=lambda adapter, doc: (
        doc.select_one("a[href*='search_author']") or default_author(doc)
    ),
    find_chapter_title=lambda adapter, doc: doc.select_one('h1'),
    find_cover_image_url=lambda adapter, doc: get_first_img_src(doc, 'div.entry-header'),
)

RULES = [
    host('novelonlinefree.com', NOVELONLINEFREE),
    dead_site('novelonlinefree.info', NOVELONLINEFREE),
    host('novelonlinefull.com', NOVELONLINEFREE),
    host('wuxiaworld.online', NOVELONLINEFREE),
    dead_site('chinesewuxia.world', NOVELONLINEFREE),
    host('bestlightnovel.com', NOVELONLINEFREE),
    dead_site('wuxia-world.online', NOVELONLINEFREE),
    host('wuxiaworld.live', NOVELONLINEFREE),
]
