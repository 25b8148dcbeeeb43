"""royalroad.com

从章节页开始时，目录和书籍信息都来自作品主页，作品主页缓存在适配器状态里。
正文只保留白名单内的子元素。
"""
from __future__ import annotations

import re
from typing import List

from bs4 import NavigableString, Tag

from ..models import ChapterReference, RawDocument
from ..modules.metadata import default_author
from ..modules.sanitizer import remove_matching
from ..modules.utils import hyperlinks_to_chapter_list, remove_elements
from .base import AdapterDescriptor, host

__all__ = ['ROYALROAD', 'fiction_url', 'is_wanted_element', 'RULES']

_CHAPTER_URL = re.compile(r'^(https?://[^/]+/fiction/\d+/[^/]+)/chapter/')
_RANDOM_CLASS = re.compile(r'^cn[A-Z][a-zA-Z0-9]{41}$')
_HIDDEN_CSS_RULE = re.compile(r'([.#][\w-]+)\s*\{[^}]*display\s*:\s*none', re.I)


def fiction_url(url: str) -> str:
    """章节地址 -> 作品主页地址，其他地址原样返回"""
    match = _CHAPTER_URL.match(url)
    return match.group(1) if match else url


async def get_chapter_urls(adapter, doc: RawDocument) -> List[ChapterReference]:
    url = fiction_url(doc.url)
    fiction_page = doc if url == doc.url else await adapter.fetch_document(url)
    adapter.state['fiction_page'] = fiction_page
    return hyperlinks_to_chapter_list(fiction_page.select_one('table#chapters'), fiction_page.url)


def metadata_document(adapter, doc: RawDocument) -> RawDocument:
    return adapter.state.get('fiction_page') or doc


def find_content(adapter, doc: RawDocument):
    for portlet in doc.select('div.portlet-body'):
        if portlet.select_one('div.chapter-inner') is not None:
            return portlet
    return doc.select_one('.page-content-wrapper')


def _remove_watermarks(doc: RawDocument) -> None:
    # 水印是被内部样式表隐藏的普通段落
    for style in doc.select('style'):
        for selector in _HIDDEN_CSS_RULE.findall(style.get_text()):
            remove_elements(doc.select(selector))


def preprocess_raw_dom(adapter, doc: RawDocument) -> None:
    _remove_watermarks(doc)
    remove_elements(img for img in doc.select('img') if not img.get('src'))
    for p in doc.select('p[class]'):
        p['class'] = [c for c in p['class'] if not _RANDOM_CLASS.match(c)]
        if not p['class']:
            del p['class']


def is_wanted_element(element: Tag) -> bool:
    if element.name == 'h1':
        return True
    if element.name != 'div':
        return False
    class_name = ' '.join(element.get('class', []))
    return (class_name.startswith('chapter-inner')
            or 'author-note-portlet' in class_name
            or 'page-content' in class_name)


def keep_wanted_children(element: Tag, page_url: str) -> None:
    for child in list(element.children):
        if isinstance(child, Tag) and not is_wanted_element(child):
            child.decompose()
    for div in element.find_all('div', style=True):
        if re.sub(r'\s', '', div['style']).lower().startswith('display:none'):
            del div['style']


def remove_older_chapter_nav_junk(element: Tag, page_url: str) -> None:
    # 老章节的上下章链接之间用 "<-->" 隔开
    for text in element.find_all(string=True):
        if isinstance(text, NavigableString) and text.strip() == '<-->':
            text.extract()


def _from_fiction_page(select):
    def extractor(adapter, doc: RawDocument):
        return select(metadata_document(adapter, doc))
    return extractor


def _subject(page: RawDocument):
    tags = [e.get_text(strip=True) for e in page.select('div.fiction-info span.tags .label')]
    return ', '.join(t for t in tags if t) or None


def _cover(page: RawDocument):
    img = page.select_one('img.thumbnail')
    return page.absolute_url(img['src']) if img is not None and img.get('src') else None


ROYALROAD = AdapterDescriptor(
    name='RoyalRoad',
    get_chapter_urls=get_chapter_urls,
    metadata_document=metadata_document,
    find_content=find_content,
    preprocess_raw_dom=preprocess_raw_dom,
    removal_rules=(
        keep_wanted_children,
        remove_matching("a[href*='www.royalroadl.com']"),
        remove_older_chapter_nav_junk,
    ),
    extract_title=_from_fiction_page(lambda page: page.select_one('div.fic-header div.col h1')),
    extract_author=_from_fiction_page(
        lambda page: page.select_one('div.fic-header h4 span a') or default_author(page)
    ),
    extract_subject=_from_fiction_page(_subject),
    extract_description=_from_fiction_page(lambda page: page.select_one('div.fiction-info div.description')),
    find_cover_image_url=_from_fiction_page(_cover),
    find_chapter_title=lambda adapter, doc: doc.select_one('h1') or doc.select_one('h2'),
)

RULES = [
    host('royalroadl.com', ROYALROAD),
    host('royalroad.com', ROYALROAD),
]
