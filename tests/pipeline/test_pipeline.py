from __future__ import annotations

from typing import Dict, List

import pytest

from webtoepub.adapters.base import AdapterDescriptor, dead_site, host, manual
from webtoepub.errors import ExtractionCancelledError, HttpStatusError, ResolutionError
from webtoepub.models import CancellationToken, ExtractionConfig
from webtoepub.modules.fetcher import FetchClient
from webtoepub.pipeline import ExtractionPipeline, packaging_payload
from webtoepub.registry import AdapterRegistry

PLAIN = AdapterDescriptor(name="Plain")
TOC_URL = "https://example.com/book"


def _site(base: str = "https://example.com", chapters: int = 2, missing=()) -> Dict[str, str]:
    links = "".join(f'<li><a href="/book/{n}">Ch{n}</a></li>' for n in range(1, chapters + 1))
    pages = {
        f"{base}/book": (
            '<html lang="en"><head><meta name="author" content="Writer"></head>'
            f'<body><h1>Book</h1><ul class="chapters">{links}</ul></body></html>'
        ),
    }
    for n in range(1, chapters + 1):
        if n not in missing:
            pages[f"{base}/book/{n}"] = f'<h1>Ch{n}</h1><div id="content"><p>Text {n}</p><script>ad()</script></div>'
    return pages


def _pipeline(transport, rules=None, **config) -> ExtractionPipeline:
    registry = AdapterRegistry.from_rules(rules or [host("example.com", PLAIN)])
    return ExtractionPipeline(registry, FetchClient(transport=transport), ExtractionConfig(**config))


def _texts(results) -> List[str]:
    return [r.fragment.element.find("p").get_text() for r in results]


@pytest.mark.asyncio
async def test_end_to_end_extraction(dict_transport) -> None:
    pipeline = _pipeline(dict_transport(_site()))

    book, results = await pipeline.extract(TOC_URL)

    assert [c.to_dict() for c in book.chapters] == [
        {"url": "https://example.com/book/1", "title": "Ch1", "isIncludeable": True},
        {"url": "https://example.com/book/2", "title": "Ch2", "isIncludeable": True},
    ]
    assert book.metadata.title == "Book"
    assert book.metadata.author == "Writer"
    assert book.metadata.language == "en"
    assert _texts(results) == ["Text 1", "Text 2"]
    assert all(r.fragment.element.find("script") is None for r in results)
    assert [r.fragment.chapter_title for r in results] == ["Ch1", "Ch2"]


@pytest.mark.asyncio
async def test_results_keep_reading_order_with_concurrency(dict_transport) -> None:
    transport = dict_transport(
        _site(chapters=4),
        delays={"https://example.com/book/1": 0.05, "https://example.com/book/2": 0.02},
    )
    pipeline = _pipeline(transport, workers=4)
    book = await pipeline.load_book(TOC_URL)
    reported = []

    results = await pipeline.extract_chapters(book, progress=lambda done, total, r: reported.append((done, total)))

    assert _texts(results) == ["Text 1", "Text 2", "Text 3", "Text 4"]
    assert reported == [(1, 4), (2, 4), (3, 4), (4, 4)]


@pytest.mark.asyncio
async def test_cancel_between_chapters_stops_fetching(dict_transport) -> None:
    transport = dict_transport(_site(chapters=3))
    pipeline = _pipeline(transport)
    token = CancellationToken()
    book = await pipeline.load_book(TOC_URL, cancel_token=token)
    seen = []

    with pytest.raises(ExtractionCancelledError):
        async for result in pipeline.iter_chapters(book, cancel_token=token):
            seen.append(result)
            token.cancel()

    assert len(seen) == 1
    assert transport.requests == [TOC_URL, "https://example.com/book/1"]


@pytest.mark.asyncio
async def test_cancelled_before_start_fetches_nothing(dict_transport) -> None:
    transport = dict_transport(_site())
    pipeline = _pipeline(transport, workers=2)
    book = await pipeline.load_book(TOC_URL)
    token = CancellationToken()
    token.cancel()

    with pytest.raises(ExtractionCancelledError):
        await pipeline.extract_chapters(book, cancel_token=token, skip_failed=True)
    assert transport.requests == [TOC_URL]


@pytest.mark.asyncio
async def test_failed_chapter_aborts_by_default(dict_transport) -> None:
    pipeline = _pipeline(dict_transport(_site(chapters=3, missing={2})))
    book = await pipeline.load_book(TOC_URL)

    with pytest.raises(HttpStatusError):
        await pipeline.extract_chapters(book)


@pytest.mark.asyncio
async def test_failed_chapter_stops_remaining_fetches(dict_transport) -> None:
    transport = dict_transport(_site(chapters=20, missing={1}))
    pipeline = _pipeline(transport, workers=1)
    book = await pipeline.load_book(TOC_URL)

    with pytest.raises(HttpStatusError) as excinfo:
        await pipeline.extract_chapters(book)

    assert excinfo.value.url == "https://example.com/book/1"
    assert [u for u in transport.requests if u != TOC_URL] == ["https://example.com/book/1"]


@pytest.mark.asyncio
async def test_skip_failed_reports_error_and_continues(dict_transport) -> None:
    pipeline = _pipeline(dict_transport(_site(chapters=3, missing={2})), skip_failed=True)
    book = await pipeline.load_book(TOC_URL)

    results = await pipeline.extract_chapters(book)
    streamed = [r async for r in pipeline.iter_chapters(book)]

    assert [r.ok for r in results] == [True, False, True]
    assert isinstance(results[1].error, HttpStatusError)
    assert [r.ok for r in streamed] == [True, False, True]


@pytest.mark.asyncio
async def test_unchecked_chapters_are_not_fetched(dict_transport) -> None:
    transport = dict_transport(_site(chapters=3))
    pipeline = _pipeline(transport)
    book = await pipeline.load_book(TOC_URL)
    book.chapters[1].is_includeable = False

    results = [r async for r in pipeline.iter_chapters(book)]

    assert [r.reference.title for r in results] == ["Ch1", "Ch3"]
    assert "https://example.com/book/2" not in transport.requests


@pytest.mark.asyncio
async def test_site_minimum_throttle_wins_over_configured_delay(dict_transport, monkeypatch) -> None:
    sleeps = []

    async def fake_sleep(seconds):
        sleeps.append(seconds)

    monkeypatch.setattr("webtoepub.pipeline.asyncio.sleep", fake_sleep)
    slow = PLAIN.extend(name="Slow", minimum_throttle=2.0)
    pipeline = _pipeline(dict_transport(_site()), rules=[host("example.com", slow)], delay=0.5)
    book = await pipeline.load_book(TOC_URL)

    results = [r async for r in pipeline.iter_chapters(book)]

    assert len(results) == 2
    assert sleeps == [2.0]


@pytest.mark.asyncio
async def test_dead_site_is_flagged(dict_transport) -> None:
    base = "https://old.example.com"
    pipeline = _pipeline(dict_transport(_site(base)), rules=[dead_site("old.example.com", PLAIN)])

    book = await pipeline.load_book(f"{base}/book")

    assert book.is_dead_site is True
    assert packaging_payload(book)["deadSite"] is True


@pytest.mark.asyncio
async def test_manual_adapter_for_unregistered_host(dict_transport) -> None:
    base = "https://self-hosted.example.org"
    pipeline = _pipeline(dict_transport(_site(base)), rules=[manual("Plain", PLAIN)])

    with pytest.raises(ResolutionError):
        await pipeline.load_book(f"{base}/book")
    book = await pipeline.load_book(f"{base}/book", adapter_name="plain")

    assert book.adapter.name == "Plain"
    assert len(book.chapters) == 2


@pytest.mark.asyncio
async def test_packaging_payload(dict_transport) -> None:
    pipeline = _pipeline(dict_transport(_site(chapters=2, missing={2})), skip_failed=True)
    book, results = await pipeline.extract(TOC_URL)

    payload = packaging_payload(book, results)

    assert payload["sourceUrl"] == TOC_URL
    assert payload["adapter"] == "Plain"
    assert payload["metadata"]["title"] == "Book"
    assert payload["metadata"]["coverUrl"] is None
    assert len(payload["chapters"]) == 2
    first, second = payload["content"]
    assert first["chapterTitle"] == "Ch1"
    assert first["html"].startswith('<div id="content">')
    assert first["error"] is None
    assert second["html"] is None
    assert "404" in second["error"]
