from __future__ import annotations

from bs4 import BeautifulSoup

from webtoepub.modules.sanitizer import (
    ContentSanitizer,
    remove_matching,
    remove_same_site_navigation_links,
)

PAGE_URL = "https://www.example.com/novel/chapter-2/"

CONTENT = """
<div class="entry-content">
  <p>First paragraph.</p>
  <div class="ad-box">BUY NOW</div>
  <script>track();</script>
  <p><strong><a href="/novel/chapter-3/">Next Chapter</a></strong></p>
  <p><a href="https://example.com/novel/chapter-1/">Previous</a> | <a href="/novel/">Index</a></p>
  <p>See <a href="https://other.org/next">next</a> on another site.</p>
  <p><a href="/novel/extra/">Bonus story</a></p>
  <div class="pagination"><a href="?page=2">2</a></div>
  <lock>VIP</lock>
  <p>Last paragraph.</p>
</div>
"""


def _content():
    return BeautifulSoup(CONTENT, "html.parser").div


def test_site_rules_then_global_rules() -> None:
    content = _content()
    sanitizer = ContentSanitizer([remove_matching("div.ad-box"), remove_matching("lock")])

    sanitizer.apply(content, PAGE_URL)
    html = str(content)

    assert "BUY NOW" not in html
    assert "VIP" not in html
    assert "track()" not in html
    assert "pagination" not in html
    assert "First paragraph." in html
    assert "Last paragraph." in html


def test_same_site_navigation_links_removed_with_wrappers() -> None:
    content = _content()

    remove_same_site_navigation_links(content, PAGE_URL)

    assert content.find("strong") is None
    assert "Next Chapter" not in str(content)
    assert "Previous" not in str(content)
    assert "Index" not in str(content)
    # 只删除链接本身，共用的 <p> 还留着分隔符
    assert " | " in content.get_text()


def test_other_site_and_non_navigation_links_are_kept() -> None:
    content = _content()

    remove_same_site_navigation_links(content, PAGE_URL)

    hrefs = [a["href"] for a in content.find_all("a")]
    assert "https://other.org/next" in hrefs
    assert "/novel/extra/" in hrefs


def test_sanitizer_is_idempotent() -> None:
    content = _content()
    sanitizer = ContentSanitizer([remove_matching("div.ad-box")])

    sanitizer.apply(content, PAGE_URL)
    once = str(content)
    sanitizer.apply(content, PAGE_URL)

    assert str(content) == once


def test_rules_order_site_first() -> None:
    seen = []

    def site_rule(element, page_url):
        seen.append("site")

    def global_rule(element, page_url):
        seen.append("global")

    sanitizer = ContentSanitizer([site_rule], global_rules=(global_rule,))
    sanitizer.apply(_content(), PAGE_URL)

    assert seen == ["site", "global"]
    assert sanitizer.rules == (site_rule, global_rule)
