from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Tuple, TYPE_CHECKING
from urllib.parse import urlparse

import tldextract

from .errors import ResolutionError
from .models import Resolution
from .utils import debug_print

if TYPE_CHECKING:
    from .adapters.base import Adapter

__all__ = [
    'AdapterFactory',
    'SourceRule',
    'AdapterRegistry',
    'normalize_hostname',
    'registered_domain_is',
]

AdapterFactory = Callable[[], 'Adapter']
HostPredicate = Callable[[str], bool]

# 使用 tldextract 自带的后缀表快照，不访问网络
_extract = tldextract.TLDExtract(suffix_list_urls=())


def normalize_hostname(url: str) -> str:
    return (urlparse(url).hostname or '').lower()


def registered_domain_is(domain: str) -> HostPredicate:
    """生成谓词：主机名属于 domain 的任意子域"""
    domain = domain.lower()

    def predicate(hostname: str) -> bool:
        parts = _extract(hostname)
        registered = '.'.join(p for p in (parts.domain, parts.suffix) if p)
        return registered == domain and hostname != domain
    predicate.__name__ = f"subdomain_of_{domain}"
    return predicate


@dataclass(frozen=True)
class SourceRule:
    """静态注册表中的一条规则：主机名、谓词、失效站点或手动选择名之一"""
    factory: AdapterFactory
    hostname: Optional[str] = None
    predicate: Optional[HostPredicate] = None
    dead: bool = False
    manual_name: Optional[str] = None


@dataclass(frozen=True)
class _ExactRule:
    factory: AdapterFactory
    is_dead_site: bool = False


class AdapterRegistry:
    """网站检测和适配器：URL -> 站点适配器

    解析顺序：精确主机名（字面匹配，失败后再尝试去掉开头的 www.）
    -> 按注册顺序的谓词规则 -> ResolutionError。
    同一主机名重复注册时后者覆盖前者。
    """

    def __init__(self):
        self._exact: Dict[str, _ExactRule] = {}
        self._predicates: List[Tuple[HostPredicate, AdapterFactory]] = []
        self._manual: Dict[str, AdapterFactory] = {}

    @classmethod
    def from_rules(cls, rules: Iterable[SourceRule]) -> 'AdapterRegistry':
        registry = cls()
        for rule in rules:
            if rule.manual_name:
                registry.register_manual_select(rule.manual_name, rule.factory)
            elif rule.predicate is not None:
                registry.register_url_rule(rule.predicate, rule.factory)
            elif rule.dead:
                registry.register_dead_site(rule.hostname, rule.factory)
            else:
                registry.register(rule.hostname, rule.factory)
        return registry

    def register(self, hostname: str, factory: AdapterFactory) -> None:
        self._exact[hostname.lower()] = _ExactRule(factory)

    def register_dead_site(self, hostname: str, factory: AdapterFactory) -> None:
        self._exact[hostname.lower()] = _ExactRule(factory, is_dead_site=True)

    def register_url_rule(self, predicate: HostPredicate, factory: AdapterFactory) -> None:
        self._predicates.append((predicate, factory))

    def register_manual_select(self, name: str, factory: AdapterFactory) -> None:
        self._manual[name.lower()] = factory

    def _lookup_exact(self, hostname: str) -> Optional[_ExactRule]:
        rule = self._exact.get(hostname)
        if rule is None and hostname.startswith('www.'):
            rule = self._exact.get(hostname[4:])
        return rule

    def resolve(self, url: str) -> Resolution:
        hostname = normalize_hostname(url)
        if not hostname:
            raise ResolutionError(url)

        rule = self._lookup_exact(hostname)
        if rule is not None:
            debug_print(f"🎯 精确匹配: {hostname}")
            return Resolution(adapter=rule.factory(), is_dead_site=rule.is_dead_site)

        for predicate, factory in self._predicates:
            if predicate(hostname):
                debug_print(f"🎯 规则匹配: {hostname} ({getattr(predicate, '__name__', 'rule')})")
                return Resolution(adapter=factory())

        raise ResolutionError(url)

    def manual_select(self, name: str) -> Adapter:
        factory = self._manual.get(name.lower())
        if factory is None:
            raise ResolutionError(f"manual:{name}")
        return factory()

    def manual_names(self) -> List[str]:
        return sorted(self._manual)

    def registered_hostnames(self) -> List[Tuple[str, bool]]:
        """(主机名, 是否已失效) 列表，按主机名排序"""
        return sorted((host, rule.is_dead_site) for host, rule in self._exact.items())

    def is_dead_site(self, url: str) -> bool:
        rule = self._lookup_exact(normalize_hostname(url))
        return bool(rule and rule.is_dead_site)
