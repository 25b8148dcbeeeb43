"""提取框架的异常体系"""
from __future__ import annotations

from typing import Optional


class WebToEpubError(Exception):
    """所有框架异常的基类"""


class ResolutionError(WebToEpubError):
    """没有适配器能处理该URL"""

    def __init__(self, url: str):
        super().__init__(f"no adapter registered for {url}")
        self.url = url


class FetchError(WebToEpubError):
    """网络层失败（DNS、TLS、连接中断等），与HTTP错误状态码区分"""

    def __init__(self, url: str, message: str):
        super().__init__(f"{message} ({url})")
        self.url = url


class FetchTimeoutError(FetchError):
    pass


class BlockedResponseError(FetchError):
    """被反爬虫页面拦截（Cloudflare等）"""


class HttpStatusError(WebToEpubError):
    def __init__(self, url: str, status: int):
        super().__init__(f"HTTP {status} for {url}")
        self.url = url
        self.status = status


class ExtractionError(WebToEpubError):
    """必需的正文节点找不到，或分页遍历超出上限"""

    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(message if url is None else f"{message}: {url}")
        self.url = url


class DecodeTableConflictError(WebToEpubError):
    """同一个混淆字符被映射到两个不同的明文字符"""

    def __init__(self, obfuscated: str, existing: str, requested: str):
        super().__init__(
            f"ambiguous substitution for {obfuscated!r}: {existing!r} vs {requested!r}"
        )
        self.obfuscated = obfuscated
        self.existing = existing
        self.requested = requested


class ExtractionCancelledError(WebToEpubError):
    pass
