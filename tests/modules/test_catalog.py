from __future__ import annotations

import asyncio
from typing import List

import pytest

from webtoepub.adapters.base import Adapter, AdapterDescriptor
from webtoepub.errors import ExtractionCancelledError, ExtractionError, HttpStatusError
from webtoepub.models import CancellationToken, ChapterReference, ExtractionConfig, RawDocument, TransportResponse
from webtoepub.modules.catalog import (
    extract_generic_chapter_list,
    find_next_toc_page,
    get_chapters_from_all_toc_pages,
    walk_toc_pages,
)
from webtoepub.modules.fetcher import FetchClient
from webtoepub.modules.utils import hyperlinks_to_chapter_list

BASE = "https://example.com/book"


def _toc_page(page: int, per_page: int = 3) -> str:
    items = "".join(
        f'<li><a href="/book/{page}-{i}">P{page}C{i}</a></li>' for i in range(1, per_page + 1)
    )
    return f'<html><body><ul class="chapters">{items}</ul></body></html>'


def _extract(doc: RawDocument) -> List[ChapterReference]:
    return hyperlinks_to_chapter_list(doc.select_one("ul.chapters"), doc.url)


def _adapter(transport, **config) -> Adapter:
    adapter = Adapter(AdapterDescriptor(name="toc-test"))
    return adapter.bind(FetchClient(transport=transport), ExtractionConfig(**config))


@pytest.mark.asyncio
async def test_aggregation_preserves_page_order_despite_arrival_order(dict_transport, make_doc) -> None:
    pages = {f"{BASE}?page={n}": _toc_page(n) for n in range(2, 5)}
    # 第2页最慢返回，第4页最快
    transport = dict_transport(pages, delays={f"{BASE}?page=2": 0.05, f"{BASE}?page=3": 0.02})
    adapter = _adapter(transport)
    first = make_doc(_toc_page(1), f"{BASE}?page=1")
    reported = []

    chapters = await get_chapters_from_all_toc_pages(
        adapter,
        _extract(first),
        _extract,
        list(pages),
        progress=lambda done, total: reported.append((done, total)),
        workers=3,
        first_page_url=first.url,
    )

    assert len(chapters) == 4 * 3
    assert [c.title for c in chapters] == [f"P{p}C{i}" for p in range(1, 5) for i in range(1, 4)]
    assert transport.requests[0] == f"{BASE}?page=2"
    assert reported[0] == (1, 4)
    assert reported[-1] == (4, 4)


@pytest.mark.asyncio
async def test_aggregation_skips_first_page_and_duplicates(dict_transport, make_doc) -> None:
    pages = {f"{BASE}?page=2": _toc_page(2)}
    transport = dict_transport(pages)
    adapter = _adapter(transport)
    first = make_doc(_toc_page(1), f"{BASE}?page=1")

    chapters = await get_chapters_from_all_toc_pages(
        adapter, _extract(first), _extract,
        [first.url, f"{BASE}?page=2", f"{BASE}?page=2"],
        first_page_url=first.url,
    )

    assert transport.requests == [f"{BASE}?page=2"]
    assert len(chapters) == 6


@pytest.mark.asyncio
async def test_aggregation_page_bound(dict_transport) -> None:
    adapter = _adapter(dict_transport({}), max_toc_pages=2)

    with pytest.raises(ExtractionError):
        await get_chapters_from_all_toc_pages(
            adapter, [], _extract, [f"{BASE}?page={n}" for n in range(2, 5)],
        )


@pytest.mark.asyncio
async def test_failed_toc_page_cancels_pages_still_in_flight() -> None:
    slow, broken = f"{BASE}?page=2", f"{BASE}?page=3"
    finished = []

    async def transport(url, headers, options):
        await asyncio.sleep(0.2 if url == slow else 0)
        finished.append(url)
        if url == broken:
            return TransportResponse(404, {}, b"not found", url)
        return TransportResponse(200, {}, _toc_page(2).encode("utf-8"), url)

    with pytest.raises(HttpStatusError):
        await get_chapters_from_all_toc_pages(
            _adapter(transport), [], _extract, [slow, broken], workers=2,
        )
    await asyncio.sleep(0.3)

    assert finished == [broken]


@pytest.mark.asyncio
async def test_walk_follows_next_links_until_none(dict_transport, make_doc) -> None:
    def page_with_next(n: int, last: bool = False) -> str:
        link = "" if last else f'<a href="/book?toc={n + 1}">Next</a>'
        return _toc_page(n, 2).replace("</body>", f"{link}</body>")

    transport = dict_transport({
        f"{BASE}?toc=2": page_with_next(2),
        f"{BASE}?toc=3": page_with_next(3, last=True),
    })
    adapter = _adapter(transport)
    first = make_doc(page_with_next(1), f"{BASE}?toc=1")

    chapters = await walk_toc_pages(
        adapter, first, _extract, lambda doc, chapters, last: find_next_toc_page(doc),
    )

    assert [c.title for c in chapters] == ["P1C1", "P1C2", "P2C1", "P2C2", "P3C1", "P3C2"]


@pytest.mark.asyncio
async def test_walk_stops_on_revisited_url(dict_transport, make_doc) -> None:
    transport = dict_transport({f"{BASE}?toc=2": _toc_page(2, 1)})
    adapter = _adapter(transport)
    first = make_doc(_toc_page(1, 1), f"{BASE}?toc=1")
    cycle = {f"{BASE}?toc=1": f"{BASE}?toc=2", f"{BASE}?toc=2": f"{BASE}?toc=1"}

    chapters = await walk_toc_pages(adapter, first, _extract, lambda doc, c, l: cycle[doc.url])

    assert [c.title for c in chapters] == ["P1C1", "P2C1"]
    assert transport.requests == [f"{BASE}?toc=2"]


@pytest.mark.asyncio
async def test_walk_exceeding_page_bound_is_fatal(dict_transport, make_doc) -> None:
    pages = {f"{BASE}?toc={n}": _toc_page(n, 1) for n in range(2, 10)}
    adapter = _adapter(dict_transport(pages), max_toc_pages=3)
    first = make_doc(_toc_page(1, 1), f"{BASE}?toc=1")

    def next_url(doc, chapters, last):
        n = int(doc.url.rsplit("=", 1)[1])
        return f"{BASE}?toc={n + 1}"

    with pytest.raises(ExtractionError):
        await walk_toc_pages(adapter, first, _extract, next_url)


@pytest.mark.asyncio
async def test_walk_checks_cancellation_between_pages(dict_transport, make_doc) -> None:
    transport = dict_transport({f"{BASE}?toc=2": _toc_page(2, 1)})
    adapter = _adapter(transport)
    token = CancellationToken()
    adapter.cancel_token = token
    first = make_doc(_toc_page(1, 1), f"{BASE}?toc=1")
    token.cancel()

    with pytest.raises(ExtractionCancelledError):
        await walk_toc_pages(adapter, first, _extract, lambda doc, c, l: f"{BASE}?toc=2")
    assert transport.requests == []


def test_find_next_toc_page_from_select(make_doc) -> None:
    doc = make_doc(
        '<select id="indexselect">'
        '<option value="/book/">1</option>'
        '<option value="/book/index_2.html" selected>2</option>'
        '<option value="/book/index_3.html">3</option>'
        '</select>',
        "https://example.com/book/index_2.html",
    )

    assert find_next_toc_page(doc) == "https://example.com/book/index_3.html"


def test_find_next_toc_page_ignores_javascript_links(make_doc) -> None:
    doc = make_doc('<a href="javascript:void(0)">下一页</a>', "https://example.com/book/")

    assert find_next_toc_page(doc) is None


def test_generic_chapter_list_dedupes(make_doc) -> None:
    doc = make_doc(
        '<div id="list"><dl>'
        '<dd><a href="/1.html">第1章</a></dd>'
        '<dd><a href="/1.html">第1章</a></dd>'
        '<dd><a href="/2.html">第2章</a></dd>'
        '</dl></div>',
        "https://example.com/book/",
    )

    chapters = extract_generic_chapter_list(doc)

    assert [c.source_url for c in chapters] == ["https://example.com/1.html", "https://example.com/2.html"]
    assert all(c.is_includeable for c in chapters)
