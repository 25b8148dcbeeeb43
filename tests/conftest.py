from __future__ import annotations

import asyncio
from typing import Callable, Dict, List, Optional, Union
from urllib.parse import urlsplit

import pytest
from bs4 import BeautifulSoup

from webtoepub.models import FetchOptions, RawDocument, TransportResponse
from webtoepub.modules.fetcher import FetchClient

MOCK_SITE = "http://mock.test"

PageBody = Union[str, bytes, TransportResponse]


class DictTransport:
    """URL -> 页面 的固定映射，可给个别URL加延迟来打乱返回顺序"""

    def __init__(self, pages: Dict[str, PageBody], delays: Optional[Dict[str, float]] = None) -> None:
        self.pages = pages
        self.delays = delays or {}
        self.requests: List[str] = []
        self.options: List[FetchOptions] = []

    async def __call__(self, url: str, headers: Dict[str, str], options: FetchOptions) -> TransportResponse:
        self.requests.append(url)
        self.options.append(options)
        if url in self.delays:
            await asyncio.sleep(self.delays[url])
        page = self.pages.get(url)
        if page is None:
            return TransportResponse(404, {"Content-Type": "text/html"}, b"not found", url)
        if isinstance(page, TransportResponse):
            return page
        body = page.encode("utf-8") if isinstance(page, str) else page
        return TransportResponse(200, {"Content-Type": "text/html; charset=utf-8"}, body, url)


class FlaskTransport:
    """把请求转给 Flask 测试服务器的 test_client，不走网络"""

    def __init__(self, app) -> None:
        self.client = app.test_client()
        self.requests: List[str] = []

    async def __call__(self, url: str, headers: Dict[str, str], options: FetchOptions) -> TransportResponse:
        self.requests.append(url)
        parts = urlsplit(url)
        path = parts.path + (f"?{parts.query}" if parts.query else "")
        response = self.client.open(path, method=options.method, headers=headers, data=options.data)
        return TransportResponse(
            status=response.status_code,
            headers=dict(response.headers),
            body=response.get_data(),
            final_url=url,
        )


@pytest.fixture
def make_doc() -> Callable[[str, str], RawDocument]:
    def factory(html: str, url: str = "https://example.com/page") -> RawDocument:
        return RawDocument(BeautifulSoup(html, "html.parser"), url)
    return factory


@pytest.fixture
def mock_site_transport() -> FlaskTransport:
    from test_server.app import app
    app.config["TESTING"] = True
    return FlaskTransport(app)


@pytest.fixture
def mock_site_client(mock_site_transport: FlaskTransport) -> FetchClient:
    return FetchClient(transport=mock_site_transport)


@pytest.fixture
def dict_transport():
    return DictTransport
