"""书籍元数据与封面提取

每个字段独立提取，任何一个字段失败都只退回默认值，不影响其他字段和正文。
"""
from __future__ import annotations

import re
from typing import Callable, Optional, TYPE_CHECKING

from ..models import UNKNOWN, BookMetadata, RawDocument
from ..utils import debug_print
from .utils import element_text

if TYPE_CHECKING:
    from ..adapters.base import Adapter

__all__ = [
    'extract_novel_title',
    'extract_meta_content',
    'default_author',
    'default_language',
    'default_description',
    'default_cover_url',
    'cover_url_from_style',
    'get_cover_from_style',
    'fallback',
    'extract_metadata',
]


def extract_meta_content(doc: RawDocument, **attrs) -> Optional[str]:
    meta = doc.soup.find('meta', attrs=attrs)
    if meta and meta.get('content'):
        return meta['content'].strip() or None
    return None


def extract_novel_title(doc: RawDocument) -> Optional[str]:
    """从页面中提取小说标题"""
    # 优先尝试 meta 标签 (og:title)
    title = extract_meta_content(doc, property='og:title')
    if title:
        return title

    # 其次尝试 og:novel:book_name - 针对中文站点
    title = extract_meta_content(doc, property='og:novel:book_name')
    if title:
        return title

    h1_title = doc.soup.find('h1')
    if h1_title and h1_title.get_text(strip=True):
        return h1_title.get_text(' ', strip=True)

    if doc.soup.title and doc.soup.title.string:
        # 清理标题，移除网站后缀等常见干扰词
        title_text = doc.soup.title.string.strip()
        title_text = re.sub(r'[\(（].*?[\)）]', '', title_text)
        for sep in ['-', '_', '|', '—', '::']:
            if sep in title_text:
                # 取最长的一段作为标题，避免取到"最新章节"等词
                parts = [p.strip() for p in title_text.split(sep)]
                title_text = max(parts, key=len)
        return title_text or None

    return None


def default_author(doc: RawDocument) -> Optional[str]:
    return (extract_meta_content(doc, name='author')
            or extract_meta_content(doc, property='og:novel:author'))


def default_language(doc: RawDocument) -> Optional[str]:
    html = doc.soup.find('html')
    if html and html.get('lang'):
        return html['lang'].strip() or None
    return None


def default_description(doc: RawDocument) -> Optional[str]:
    return (extract_meta_content(doc, name='description')
            or extract_meta_content(doc, property='og:description'))


def default_cover_url(doc: RawDocument) -> Optional[str]:
    image = extract_meta_content(doc, property='og:image')
    return doc.absolute_url(image) if image else None


def cover_url_from_style(style: Optional[str]) -> Optional[str]:
    """从内联样式的 background-image 中取出第一对括号里的URL"""
    if not style or '(' not in style:
        return None
    inner = style.split('(', 1)[1]
    if ')' not in inner:
        return None
    url = inner.split(')', 1)[0].strip().strip('"\'').strip()
    return url or None


def get_cover_from_style(doc: RawDocument, selector: str) -> Optional[str]:
    element = doc.select_one(selector)
    if element is None:
        return None
    url = cover_url_from_style(element.get('style'))
    return doc.absolute_url(url) if url else None


def fallback(name: str, extractor: Callable[[], object], default=None):
    """调用单个字段的提取函数，失败或为空时返回默认值"""
    try:
        value = element_text(extractor())
    except Exception as e:
        debug_print(f"ℹ️ 元数据字段 {name} 提取失败，使用默认值: {e!r}")
        return default
    return value if value is not None else default


def extract_metadata(adapter: 'Adapter', doc: RawDocument) -> BookMetadata:
    cover = fallback('cover', lambda: adapter.find_cover_image_url(doc))
    return BookMetadata(
        title=fallback('title', lambda: adapter.extract_title(doc), UNKNOWN),
        author=fallback('author', lambda: adapter.extract_author(doc), UNKNOWN),
        language=fallback('language', lambda: adapter.extract_language(doc)),
        description=fallback('description', lambda: adapter.extract_description(doc)),
        cover_url=doc.absolute_url(cover) if cover else None,
        subject=fallback('subject', lambda: adapter.extract_subject(doc)),
    )
