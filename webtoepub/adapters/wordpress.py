"""WordPress 系站点及其派生站点"""
from __future__ import annotations

import copy
from typing import List, Optional

from bs4 import Tag

from ..models import ChapterReference, RawDocument
from ..modules.content import stitch_additional_pages
from ..modules.decode_table import DecodeTable
from ..modules.sanitizer import remove_matching
from ..modules.utils import hyperlink_to_chapter, hyperlinks_to_chapter_list, move_footnotes
from ..registry import registered_domain_is
from .base import AdapterDescriptor, dead_site, host, manual, url_rule

__all__ = [
    'WORDPRESS',
    'NEPUSTATION',
    'KOBATOCHAN',
    'WANDERERTL130',
    'WANDERINGINN',
    'NEPU_ALPHABET',
    'CLEAR_ALPHABET',
    'RULES',
]

CONTENT_SELECTORS = (
    'div.entry-content',
    'div.post-content',
    'ul.wp-block-post-template',
    '.wp-block-cover__inner-container',
)

CHAPTER_TITLE_SELECTORS = (
    '.entry-title',
    '.page-title',
    'header.post-title h1',
    '.post-title',
    '#chapter-heading',
    '.wp-block-post-title',
)


def find_content_element(doc: RawDocument) -> Optional[Tag]:
    for selector in CONTENT_SELECTORS:
        element = doc.select_one(selector)
        if element is not None:
            return element
    return None


def find_chapter_title_element(doc: RawDocument) -> Optional[Tag]:
    for selector in CHAPTER_TITLE_SELECTORS:
        element = doc.select_one(selector)
        if element is not None:
            return element
    return None


async def get_chapter_urls(adapter, doc: RawDocument) -> List[ChapterReference]:
    """目录就是正文里的链接；先在副本上清洗，避免把导航链接当成章节"""
    content = adapter.find_content(doc)
    if content is None:
        return []
    content = copy.copy(content)
    adapter.remove_unwanted_elements_from_content_element(content, doc.url)
    return hyperlinks_to_chapter_list(content, doc.url)


WORDPRESS = AdapterDescriptor(
    name='Wordpress',
    get_chapter_urls=get_chapter_urls,
    find_content=lambda adapter, doc: find_content_element(doc),
    find_chapter_title=lambda adapter, doc: find_chapter_title_element(doc),
)


# --- nepustation.com：正文字母被替换成带下点的拉丁字母 ---

NEPU_ALPHABET = (
    ''.join(chr(0x1E00 + 2 * i) for i in range(26))
    + ''.join(chr(0x1E01 + 2 * i) for i in range(26))
)
CLEAR_ALPHABET = 'ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz'


def _nepustation_state():
    return {'decode_table': DecodeTable().build_lookup(NEPU_ALPHABET, CLEAR_ALPHABET)}


NEPUSTATION = WORDPRESS.extend(
    name='Nepustation',
    make_state=_nepustation_state,
    transform_content=lambda adapter, content: adapter.state['decode_table'].decode_subtree(content),
)


# --- kobatochan.com：一章拆成多页，分页地址都列在第一页 ---

KOBATOCHAN_CHROME = 'div.page-link, div.pgntn-multipage, div.g-dyn'


def find_additional_page_urls(doc: RawDocument) -> List[str]:
    pages: List[str] = []
    for link in doc.select('div.pgntn-page-pagination-block a[href]'):
        url = doc.absolute_url(link['href'])
        if url not in pages:
            pages.append(url)
    return pages


async def _kobatochan_fetch_chapter(adapter, url: str) -> RawDocument:
    doc = await adapter.fetch_document(url, adapter.chapter_fetch_options())
    extra_page_urls = find_additional_page_urls(doc)
    return await stitch_additional_pages(adapter, doc, extra_page_urls, KOBATOCHAN_CHROME)


KOBATOCHAN = WORDPRESS.extend(
    name='Kobatochan',
    fetch_chapter=_kobatochan_fetch_chapter,
)


# --- wanderertl130.id：脚注散落在正文各处 ---

def _move_wanderertl130_footnotes(adapter, doc: RawDocument) -> None:
    content = adapter.find_content(doc)
    footnotes = doc.select('span.modern-footnotes-footnote__note')
    move_footnotes(doc.soup, content, footnotes)


WANDERERTL130 = WORDPRESS.extend(
    name='Wanderertl130',
    preprocess_raw_dom=_move_wanderertl130_footnotes,
)


# --- wanderinginn.com ---

async def _wanderinginn_chapter_urls(adapter, doc: RawDocument) -> List[ChapterReference]:
    links = doc.select('#table-of-contents a:not(.book-title-num, .volume-book-card)')
    return [hyperlink_to_chapter(link, doc.url) for link in links if link.get('href')]


def _wanderinginn_chapter_title(adapter, doc: RawDocument):
    # 页面里真正的标题前面有一个 "loading..." 占位
    for title in doc.select('h2.elementor-heading-title'):
        if title.get_text(strip=True) != 'loading...':
            return title
    return None


def _wanderinginn_preprocess(adapter, doc: RawDocument) -> None:
    content = adapter.find_content(doc)
    if content is None:
        return
    # mrsha-write 在网页里是自定义字体，离线阅读时改成斜体
    for element in content.select('.mrsha-write'):
        element['style'] = 'font-style: italic;'


WANDERINGINN = WORDPRESS.extend(
    name='WanderingInn',
    get_chapter_urls=_wanderinginn_chapter_urls,
    find_content=lambda adapter, doc: doc.select_one('div#reader-content'),
    find_chapter_title=_wanderinginn_chapter_title,
    preprocess_raw_dom=_wanderinginn_preprocess,
    removal_rules=(remove_matching("a[href*='https://wanderinginn.com/']"),),
    extract_title=lambda adapter, doc: 'The Wandering Inn',
    extract_author=lambda adapter, doc: 'pirateaba',
)


RULES = [
    host('bakapervert.wordpress.com', WORDPRESS),
    host('crimsonmagic.me', WORDPRESS),
    host('shalvationtranslations.wordpress.com', WORDPRESS),
    host('frostfire10.wordpress.com', WORDPRESS),
    host('isekaicyborg.wordpress.com', WORDPRESS),
    host('moonbunnycafe.com', WORDPRESS),
    dead_site('rainingtl.org', WORDPRESS),
    dead_site('raisingthedead.ninja', WORDPRESS),
    dead_site('skythewoodtl.com', WORDPRESS),
    dead_site('yoraikun.wordpress.com', WORDPRESS),
    host('sasakitomyiano.wordpress.com', WORDPRESS),
    host('wanderertl130.id', WANDERERTL130),
    host('nepustation.com', NEPUSTATION),
    dead_site('kobatochan.com', KOBATOCHAN),
    host('wanderinginn.com', WANDERINGINN),
    url_rule(registered_domain_is('wordpress.com'), WORDPRESS),
    manual('Wordpress', WORDPRESS),
]
