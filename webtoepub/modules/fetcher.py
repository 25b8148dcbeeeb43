"""网络请求与页面解析

传输层（发请求拿字节）和解析层（字节+编码 -> 文档树）都是可替换的，
测试时可以注入固定的页面而不访问网络。
"""
from __future__ import annotations

import asyncio
import functools
import json
from concurrent.futures import ThreadPoolExecutor
from typing import Awaitable, Callable, Dict, Optional

import requests
from bs4 import BeautifulSoup

from ..errors import BlockedResponseError, FetchError, FetchTimeoutError, HttpStatusError
from ..models import DEFAULT_HEADERS, FetchOptions, RawDocument, TransportResponse
from ..utils import debug_print
from .utils import detect_encoding, is_blocked_response

__all__ = [
    'Transport',
    'DocumentParser',
    'RequestsTransport',
    'parse_html',
    'FetchClient',
]

Transport = Callable[[str, Dict[str, str], FetchOptions], Awaitable[TransportResponse]]
DocumentParser = Callable[[bytes, str], BeautifulSoup]


class RequestsTransport:
    """默认传输层：requests.Session 的同步请求放到线程池里执行"""

    def __init__(
        self,
        timeout: float = 15.0,
        session: Optional[requests.Session] = None,
        max_workers: int = 10,
    ):
        self.timeout = timeout
        self._owns_session = session is None
        self.session = session or requests.Session()
        self.executor = ThreadPoolExecutor(max_workers=max_workers)

    def _request(self, url: str, headers: Dict[str, str], options: FetchOptions) -> TransportResponse:
        try:
            response = self.session.request(
                options.method, url, headers=headers, data=options.data,
                timeout=self.timeout, allow_redirects=True,
            )
        except requests.Timeout as e:
            raise FetchTimeoutError(url, f"request timed out: {e}") from e
        except requests.RequestException as e:
            raise FetchError(url, f"{type(e).__name__}: {e}") from e

        return TransportResponse(
            status=response.status_code,
            headers=dict(response.headers),
            body=response.content,
            final_url=response.url,
        )

    async def __call__(self, url: str, headers: Dict[str, str], options: FetchOptions) -> TransportResponse:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            self.executor, functools.partial(self._request, url, headers, options)
        )

    async def aclose(self) -> None:
        self.executor.shutdown(wait=False)
        if self._owns_session:
            self.session.close()


def parse_html(body: bytes, encoding: str) -> BeautifulSoup:
    """按给定编码解码字节并解析为文档树"""
    try:
        text = body.decode(encoding, errors='replace')
    except LookupError:
        debug_print(f"⚠️ 未知编码 {encoding}，改用 utf-8")
        text = body.decode('utf-8', errors='replace')
    return BeautifulSoup(text, 'html.parser')


class FetchClient:
    """执行单次请求并返回文档树，支持显式编码覆盖"""

    def __init__(
        self,
        transport: Optional[Transport] = None,
        parser: DocumentParser = parse_html,
        headers: Optional[Dict[str, str]] = None,
        timeout: float = 15.0,
    ):
        self.transport = transport or RequestsTransport(timeout=timeout)
        self.parser = parser
        self.headers = dict(DEFAULT_HEADERS if headers is None else headers)

    async def __aenter__(self) -> 'FetchClient':
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        close = getattr(self.transport, 'aclose', None)
        if close is not None:
            await close()

    async def fetch(self, url: str, options: Optional[FetchOptions] = None) -> TransportResponse:
        """发送请求；非 2xx 状态抛 HttpStatusError，网络失败抛 FetchError"""
        options = options or FetchOptions()
        headers = {**self.headers, **options.headers}
        debug_print(f"🌐 {options.method} {url}")
        response = await self.transport(url, headers, options)

        if is_blocked_response(response):
            raise BlockedResponseError(url, "blocked by anti-bot protection")
        if not 200 <= response.status < 300:
            raise HttpStatusError(url, response.status)
        return response

    def decode(self, response: TransportResponse, options: Optional[FetchOptions] = None) -> RawDocument:
        encoding = (options.encoding if options else None) or detect_encoding(response)
        soup = self.parser(response.body, encoding)
        return RawDocument(
            soup=soup,
            url=response.final_url,
            encoding=encoding,
            status=response.status,
        )

    async def fetch_document(self, url: str, options: Optional[FetchOptions] = None) -> RawDocument:
        response = await self.fetch(url, options)
        return self.decode(response, options)

    async def fetch_json(self, url: str, options: Optional[FetchOptions] = None):
        options = options or FetchOptions(headers={'Accept': 'application/json'})
        response = await self.fetch(url, options)
        encoding = options.encoding or detect_encoding(response)
        try:
            return json.loads(response.body.decode(encoding, errors='replace'))
        except ValueError as e:
            raise FetchError(url, f"invalid JSON: {e}") from e
