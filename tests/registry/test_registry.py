from __future__ import annotations

import pytest

from webtoepub.adapters import build_registry
from webtoepub.adapters.base import Adapter, AdapterDescriptor, factory_for
from webtoepub.errors import ResolutionError
from webtoepub.registry import AdapterRegistry, normalize_hostname, registered_domain_is

ALPHA = AdapterDescriptor(name="alpha")
BETA = AdapterDescriptor(name="beta")
GAMMA = AdapterDescriptor(name="gamma")


def test_exact_hostname_resolves() -> None:
    registry = AdapterRegistry()
    registry.register("example.com", factory_for(ALPHA))

    resolution = registry.resolve("https://example.com/novel/1")

    assert isinstance(resolution.adapter, Adapter)
    assert resolution.adapter.name == "alpha"
    assert resolution.is_dead_site is False


def test_hostname_is_case_insensitive() -> None:
    registry = AdapterRegistry()
    registry.register("Example.COM", factory_for(ALPHA))

    assert registry.resolve("https://EXAMPLE.com/x").adapter.name == "alpha"


def test_www_prefix_falls_back_to_bare_hostname() -> None:
    registry = AdapterRegistry()
    registry.register("example.com", factory_for(ALPHA))

    assert registry.resolve("https://www.example.com/x").adapter.name == "alpha"


def test_literal_www_rule_does_not_match_bare_hostname() -> None:
    registry = AdapterRegistry()
    registry.register("www.example.com", factory_for(ALPHA))

    assert registry.resolve("https://www.example.com/").adapter.name == "alpha"
    with pytest.raises(ResolutionError):
        registry.resolve("https://example.com/")


def test_exact_rule_takes_priority_over_predicate() -> None:
    registry = AdapterRegistry()
    registry.register_url_rule(lambda hostname: True, factory_for(BETA))
    registry.register("example.com", factory_for(ALPHA))

    assert registry.resolve("https://example.com/").adapter.name == "alpha"
    assert registry.resolve("https://other.org/").adapter.name == "beta"


def test_first_registered_predicate_wins() -> None:
    registry = AdapterRegistry()
    registry.register_url_rule(lambda hostname: hostname.endswith(".org"), factory_for(ALPHA))
    registry.register_url_rule(lambda hostname: True, factory_for(BETA))

    assert registry.resolve("https://site.org/").adapter.name == "alpha"
    assert registry.resolve("https://site.net/").adapter.name == "beta"


def test_dead_site_resolves_with_flag() -> None:
    registry = AdapterRegistry()
    registry.register_dead_site("gone.example", factory_for(ALPHA))

    resolution = registry.resolve("https://gone.example/book")

    assert resolution.adapter.name == "alpha"
    assert resolution.is_dead_site is True
    assert registry.is_dead_site("https://gone.example/other")


def test_later_registration_shadows_earlier() -> None:
    registry = AdapterRegistry()
    registry.register("example.com", factory_for(ALPHA))
    registry.register("example.com", factory_for(GAMMA))

    assert registry.resolve("https://example.com/").adapter.name == "gamma"


def test_unknown_hostname_raises_resolution_error() -> None:
    registry = AdapterRegistry()
    registry.register("example.com", factory_for(ALPHA))

    with pytest.raises(ResolutionError) as excinfo:
        registry.resolve("https://unknown.example.net/x")
    assert excinfo.value.url == "https://unknown.example.net/x"


def test_url_without_hostname_raises() -> None:
    with pytest.raises(ResolutionError):
        AdapterRegistry().resolve("not a url")


def test_resolution_is_deterministic_and_builds_fresh_adapters() -> None:
    registry = AdapterRegistry()
    registry.register("example.com", factory_for(ALPHA))

    first = registry.resolve("https://example.com/a")
    second = registry.resolve("https://example.com/b")

    assert first.adapter.name == second.adapter.name
    assert first.adapter is not second.adapter
    assert first.adapter.state is not second.adapter.state


def test_normalize_hostname() -> None:
    assert normalize_hostname("HTTPS://WWW.Example.com:8080/path?q=1") == "www.example.com"
    assert normalize_hostname("relative/path") == ""


def test_registered_domain_predicate_matches_subdomains_only() -> None:
    predicate = registered_domain_is("wordpress.com")

    assert predicate("someblog.wordpress.com")
    assert predicate("a.b.wordpress.com")
    assert not predicate("wordpress.com")
    assert not predicate("wordpress.com.evil.org")
    assert not predicate("notwordpress.com")


def test_builtin_registry_resolves_known_sites() -> None:
    registry = build_registry()

    assert registry.resolve("https://nepustation.com/novel/1/").adapter.name == "Nepustation"
    assert registry.resolve("https://www.royalroad.com/fiction/1/x").adapter.name == "RoyalRoad"
    assert registry.resolve("https://www.scribblehub.com/series/1/x/").adapter.name == "Scribblehub"
    assert registry.resolve("https://www.dudushuge.com/book/1/").adapter.name == "Dudushuge"
    assert registry.resolve("https://tongrenshe.cc/tongren/1.html").adapter.name == "Trxs"


def test_builtin_registry_wordpress_subdomain_rule() -> None:
    registry = build_registry()

    resolution = registry.resolve("https://anytranslator.wordpress.com/toc/")

    assert resolution.adapter.name == "Wordpress"
    assert resolution.is_dead_site is False


def test_builtin_registry_dead_sites() -> None:
    registry = build_registry()

    assert registry.resolve("https://kobatochan.com/x").is_dead_site
    assert registry.resolve("https://trxs.me/x").is_dead_site
    assert not registry.resolve("https://trxs.cc/x").is_dead_site
    assert ("trxs.me", True) in registry.registered_hostnames()
    assert ("trxs.cc", False) in registry.registered_hostnames()


def test_manual_select_by_family_name() -> None:
    registry = build_registry()

    assert registry.manual_select("Wordpress").name == "Wordpress"
    assert registry.manual_select("wordpress").name == "Wordpress"
    assert "wordpress" in registry.manual_names()
    with pytest.raises(ResolutionError):
        registry.manual_select("NoSuchFamily")


def test_registered_hostnames_are_sorted() -> None:
    hostnames = [host for host, _ in build_registry().registered_hostnames()]

    assert hostnames == sorted(hostnames)
    assert "biquge.tw" in hostnames
