"""正文清洗：先执行站点规则，再执行全局规则"""
from __future__ import annotations

import re
from typing import Callable, Iterable, Sequence, Tuple
from urllib.parse import urljoin, urlparse

from bs4 import Tag

from .utils import move_if_parent, remove_elements

__all__ = [
    'SanitizerRule',
    'remove_matching',
    'remove_scripts',
    'remove_same_site_navigation_links',
    'remove_pagination_widgets',
    'GLOBAL_RULES',
    'ContentSanitizer',
]

# (正文元素, 页面URL) -> None，就地修改
SanitizerRule = Callable[[Tag, str], None]

NAV_LINK_PATTERN = re.compile(
    r'^[\s<«←⬅➡→»>️-]*'
    r'(上一页|下一页|上一章|下一章|目录|返回目录|章节目录|返回书页|下页|尾页|'
    r'next|next chapter|next page|prev|previous|previous chapter|previous page|'
    r'index|table of contents|toc)'
    r'[\s<«←⬅➡→»>️-]*$',
    re.I,
)

PAGINATION_SELECTORS = (
    '.pagination, .page-nav, .pager, .wp-pagenavi, .page-link, '
    '.pgntn-page-pagination-block, .nav-links, .post-navigation'
)


def remove_matching(selector: str) -> SanitizerRule:
    """生成一条按CSS选择器删除子元素的规则"""
    def rule(element: Tag, page_url: str) -> None:
        remove_elements(element.select(selector))
    rule.__name__ = f"remove_matching({selector!r})"
    return rule


def remove_scripts(element: Tag, page_url: str) -> None:
    remove_elements(element.select('script, noscript, iframe, style, form'))


def _host(url: str) -> str:
    host = urlparse(url).hostname or ''
    return host[4:] if host.startswith('www.') else host


def remove_same_site_navigation_links(element: Tag, page_url: str) -> None:
    """删除指回本站的 上一章/下一章/目录 链接（连同只包着它的 strong/p）"""
    site = _host(page_url)
    for link in element.find_all('a', href=True):
        if link.decomposed:
            continue
        if _host(urljoin(page_url, link['href'])) != site:
            continue
        if not NAV_LINK_PATTERN.match(link.get_text(' ', strip=True)):
            continue
        target = move_if_parent(move_if_parent(link, 'strong'), 'p')
        target.decompose()


def remove_pagination_widgets(element: Tag, page_url: str) -> None:
    remove_elements(element.select(PAGINATION_SELECTORS))


GLOBAL_RULES: Tuple[SanitizerRule, ...] = (
    remove_scripts,
    remove_same_site_navigation_links,
    remove_pagination_widgets,
)


class ContentSanitizer:
    """有序规则链。每条规则必须幂等，整条链因此也幂等"""

    def __init__(self, site_rules: Iterable[SanitizerRule] = (), global_rules: Sequence[SanitizerRule] = GLOBAL_RULES):
        self.site_rules = tuple(site_rules)
        self.global_rules = tuple(global_rules)

    @property
    def rules(self) -> Tuple[SanitizerRule, ...]:
        return self.site_rules + self.global_rules

    def apply(self, element: Tag, page_url: str) -> Tag:
        for rule in self.rules:
            rule(element, page_url)
        return element
