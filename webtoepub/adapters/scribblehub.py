"""scribblehub.com：目录通过 ?toc=N 逐页读取，站点要求较慢的抓取节奏"""
from __future__ import annotations

from typing import List, Optional

from ..models import ChapterReference, RawDocument
from ..modules.catalog import walk_toc_pages
from ..modules.metadata import default_author
from ..modules.utils import get_first_img_src, hyperlink_to_chapter
from .base import AdapterDescriptor, host

__all__ = ['SCRIBBLEHUB', 'chapters_from_toc_page', 'RULES']


def chapters_from_toc_page(doc: RawDocument) -> List[ChapterReference]:
    return [hyperlink_to_chapter(a, doc.url) for a in doc.select('a.toc_a[href]')]


def _toc_base_url(url: str) -> str:
    return url.split('?', 1)[0]


async def get_chapter_urls(adapter, doc: RawDocument) -> List[ChapterReference]:
    counter = doc.select_one('span.cnt_toc')
    try:
        num_chapters = int(counter.get_text(strip=True)) if counter else 0
    except ValueError:
        num_chapters = 0
    base_url = _toc_base_url(doc.url)
    next_index = 1

    def next_toc_page_url(page: RawDocument, chapters, last_fetch) -> Optional[str]:
        nonlocal next_index
        # 站点偶尔返回空页，此时直接结束
        if len(chapters) < num_chapters and last_fetch:
            next_index += 1
            return f"{base_url}?toc={next_index}"
        return None

    chapters = await walk_toc_pages(
        adapter, doc, chapters_from_toc_page, next_toc_page_url, adapter.toc_progress
    )
    chapters.reverse()
    return chapters


def extract_subject(adapter, doc: RawDocument):
    tags = [e.get_text(strip=True) for e in doc.select("[property='genre'], .stag")]
    return ', '.join(t for t in tags if t) or None


def extract_description(adapter, doc: RawDocument):
    desc = doc.select_one('.wi_fic_desc')
    if desc is None:
        return None
    for element in desc.select('.dots, .morelink'):
        element.decompose()
    for element in desc.select('.testhide'):
        element.unwrap()
    return desc


def preprocess_raw_dom(adapter, doc: RawDocument) -> None:
    content = adapter.find_content(doc)
    if content is None:
        return
    # 折叠的剧透块改写成 <details>
    for wrap in content.select('.sp-wrap'):
        head = wrap.select_one('.sp-head')
        body = wrap.select_one('.sp-body')
        for marker in wrap.select('.sp-body > .spdiv'):
            marker.decompose()
        details = doc.soup.new_tag('details')
        summary = doc.soup.new_tag('summary')
        if head is not None:
            summary.extend(list(head.contents))
        details.append(summary)
        if body is not None:
            details.extend(list(body.contents))
        wrap.replace_with(details)
    for avatar in content.select('.p-avatar-wrap'):
        avatar.decompose()


def find_chapter_title(adapter, doc: RawDocument):
    return doc.select_one('div.chapter-title')


SCRIBBLEHUB = AdapterDescriptor(
    name='Scribblehub',
    get_chapter_urls=get_chapter_urls,
    find_content=lambda adapter, doc: doc.select_one('div.fic_row, div#chp_raw'),
    preprocess_raw_dom=preprocess_raw_dom,
    extract_title=lambda adapter, doc: doc.select_one('div.fic_title'),
    extract_author=lambda adapter, doc: doc.select_one('span.auth_name_fic') or default_author(doc),
    extract_subject=extract_subject,
    extract_description=extract_description,
    find_chapter_title=find_chapter_title,
    find_cover_image_url=lambda adapter, doc: get_first_img_src(doc, 'div.fic_image'),
    minimum_throttle=5.0,
)

RULES = [
    host('scribblehub.com', SCRIBBLEHUB),
]
