"""抓取与DOM处理的通用工具函数"""
from __future__ import annotations

import asyncio
import re
from typing import Awaitable, Iterable, List, Optional
from urllib.parse import urljoin

import chardet
from bs4 import BeautifulSoup, Tag

from ..models import ChapterReference, RawDocument, TransportResponse

__all__ = [
    'detect_encoding',
    'is_blocked_response',
    'hyperlink_to_chapter',
    'hyperlinks_to_chapter_list',
    'get_first_img_src',
    'remove_elements',
    'remove_child_elements_matching_selector',
    'move_child_elements',
    'move_if_parent',
    'resolve_lazy_loaded_images',
    'move_footnotes',
    'element_text',
    'gather_or_cancel',
]


def _charset_from_content_type(content_type: str) -> Optional[str]:
    content_type = content_type.lower()
    if 'charset=' in content_type:
        charset = content_type.split('charset=')[1].split(';')[0].strip().strip('"\'')
        if charset:
            return charset
    return None


def detect_encoding(response: TransportResponse) -> str:
    """智能检测网页编码: HTTP头 -> meta 标签 -> chardet -> UTF-8"""
    # 1. HTTP 头
    charset = _charset_from_content_type(response.header('content-type'))
    if charset:
        return charset

    # 2. meta 标签
    content_preview = response.body[:2048]
    soup = BeautifulSoup(content_preview, 'html.parser')
    meta_charset = soup.find('meta', attrs={'charset': True})
    if meta_charset and meta_charset.get('charset'):
        return meta_charset['charset'].strip()
    meta_content_type = soup.find('meta', attrs={'http-equiv': lambda x: x and x.lower() == 'content-type'})
    if meta_content_type:
        charset = _charset_from_content_type(meta_content_type.get('content', ''))
        if charset:
            return charset

    # 3. chardet
    detected = chardet.detect(response.body[:10240])
    if detected and detected['encoding'] and detected['confidence'] > 0.7:
        return detected['encoding']

    # 4. 默认 UTF-8
    return 'utf-8'


CLOUDFLARE_INDICATORS = [
    "just a moment",
    "checking your browser",
    "ddos protection",
    "cf-browser-verification",
    "human verification",
]


def is_blocked_response(response: TransportResponse) -> bool:
    """检测是否被常见反爬虫(Cloudflare等)拦截"""
    preview = response.body[:4096].decode('utf-8', errors='ignore').lower()
    if response.status in (403, 503) and any(ind in preview for ind in CLOUDFLARE_INDICATORS):
        return True

    # 简易长度 + 关键词，只用于错误状态码，正常页面可能恰好很短
    if (not 200 <= response.status < 300 and len(response.body) < 500
            and ("blocked" in preview or "forbidden" in preview)):
        return True

    return False


def element_text(value) -> Optional[str]:
    """把 Tag / 字符串 / None 统一成去掉首尾空白的文本"""
    if value is None:
        return None
    if isinstance(value, Tag):
        value = value.get_text(' ', strip=True)
    value = re.sub(r'\s+', ' ', str(value)).strip()
    return value or None


def hyperlink_to_chapter(link: Tag, base_url: str) -> ChapterReference:
    return ChapterReference(
        source_url=urljoin(base_url, link.get('href', '')),
        title=link.get_text(' ', strip=True),
    )


def hyperlinks_to_chapter_list(element: Optional[Tag], base_url: str) -> List[ChapterReference]:
    """把容器内的所有超链接转成章节列表，按首次出现顺序去重"""
    if element is None:
        return []
    chapters: List[ChapterReference] = []
    seen = set()
    for link in element.find_all('a', href=True):
        href = link.get('href', '').strip()
        title = link.get_text(' ', strip=True)
        if not title or not href or href.startswith(('javascript:', '#', 'mailto:')):
            continue
        chapter = hyperlink_to_chapter(link, base_url)
        if chapter.source_url in seen:
            continue
        seen.add(chapter.source_url)
        chapters.append(chapter)
    return chapters


def get_first_img_src(doc: RawDocument, selector: str) -> Optional[str]:
    container = doc.select_one(selector)
    if container is None:
        return None
    img = container if container.name == 'img' else container.find('img')
    if img is None:
        return None
    src = img.get('src') or img.get('data-src')
    return doc.absolute_url(src) if src else None


def remove_elements(elements: Iterable[Tag]) -> int:
    count = 0
    for element in list(elements):
        if element.parent is not None and not element.decomposed:
            element.decompose()
            count += 1
    return count


def remove_child_elements_matching_selector(element: Tag, selector: str) -> int:
    if element is None:
        return 0
    return remove_elements(element.select(selector))


def move_child_elements(source: Tag, dest: Tag) -> None:
    for node in list(source.contents):
        dest.append(node.extract())


def move_if_parent(element: Tag, tag_name: str) -> Tag:
    """如果 element 是父节点唯一有意义的子节点且父节点为 tag_name，返回父节点"""
    parent = element.parent
    if parent is not None and parent.name == tag_name:
        siblings = [c for c in parent.contents if not (isinstance(c, str) and not c.strip())]
        if len(siblings) == 1:
            return parent
    return element


def resolve_lazy_loaded_images(soup: BeautifulSoup, selector: str, attribute: str) -> None:
    for img in soup.select(selector):
        data_src = img.get(attribute)
        if data_src:
            img['src'] = data_src


def move_footnotes(soup: BeautifulSoup, content: Tag, footnotes: List[Tag]) -> None:
    """把散落在页面中的脚注移到正文末尾"""
    if content is None or not footnotes:
        return
    container = soup.new_tag('ol')
    for note in footnotes:
        item = soup.new_tag('li')
        move_child_elements(note.extract(), item)
        container.append(item)
    content.append(container)


async def gather_or_cancel(aws: Iterable[Awaitable]) -> list:
    """并发执行；任何一个抛出异常时取消其余尚未完成的任务再把异常抛出"""
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        return await asyncio.gather(*tasks)
    finally:
        pending = [task for task in tasks if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
