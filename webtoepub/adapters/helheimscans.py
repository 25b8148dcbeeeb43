"""helheimscans / helioscans：漫画站，付费章节带金币图标"""
from __future__ import annotations

from typing import List
from urllib.parse import urljoin

from bs4 import Tag

from ..models import ChapterReference, RawDocument
from ..modules.metadata import get_cover_from_style
from .base import AdapterDescriptor, dead_site, host

__all__ = ['HELHEIMSCANS', 'IMAGE_HOST', 'link_to_chapter', 'RULES']

IMAGE_HOST = 'https://image.meowing.org/uploads/'


def link_to_chapter(link: Tag, base_url: str) -> ChapterReference:
    span = link.find('span')
    title = (span or link).get_text(' ', strip=True)
    return ChapterReference(
        source_url=urljoin(base_url, link.get('href', '')),
        title=title,
        # 有金币图标的章节需要付费，默认不选
        is_includeable=link.find('img') is None,
    )


async def get_chapter_urls(adapter, doc: RawDocument) -> List[ChapterReference]:
    chapters = [link_to_chapter(a, doc.url) for a in doc.select('#chapters_panel a[href]')]
    chapters.reverse()
    return chapters


def preprocess_raw_dom(adapter, doc: RawDocument) -> None:
    for img in doc.select('#pages img.lazy[uid]'):
        img['src'] = f"{IMAGE_HOST}{img['uid']}"


HELHEIMSCANS = AdapterDescriptor(
    name='Helheimscans',
    get_chapter_urls=get_chapter_urls,
    find_content=lambda adapter, doc: doc.select_one('#pages'),
    preprocess_raw_dom=preprocess_raw_dom,
    extract_title=lambda adapter, doc: doc.select_one('h1'),
    find_chapter_title=lambda adapter, doc: doc.soup.title,
    find_cover_image_url=lambda adapter, doc: get_cover_from_style(doc, 'div[style^="--photo"]'),
)

RULES = [
    dead_site('helheimscans.com', HELHEIMSCANS),
    dead_site('helheimscans.org', HELHEIMSCANS),
    host('helioscans.com', HELHEIMSCANS),
]
