"""内置站点适配器。

``SOURCE_RULES`` 是静态注册表：按顺序注册，同一主机名后注册的覆盖先注册的。
"""
from __future__ import annotations

from typing import List

from ..registry import AdapterRegistry, SourceRule
from . import (
    biquge,
    dudushuge,
    fictioneer,
    helheimscans,
    mznovels,
    novelonlinefree,
    royalroad,
    scribblehub,
    trxs,
    wordpress,
    yeduge,
)
from .base import DEFAULT_DESCRIPTOR, Adapter, AdapterDescriptor, factory_for

__all__ = [
    'SOURCE_RULES',
    'build_registry',
    'Adapter',
    'AdapterDescriptor',
    'DEFAULT_DESCRIPTOR',
    'factory_for',
]

SOURCE_RULES: List[SourceRule] = [
    *wordpress.RULES,
    *biquge.RULES,
    *dudushuge.RULES,
    *trxs.RULES,
    *yeduge.RULES,
    *mznovels.RULES,
    *scribblehub.RULES,
    *helheimscans.RULES,
    *novelonlinefree.RULES,
    *royalroad.RULES,
    *fictioneer.RULES,
]


def build_registry() -> AdapterRegistry:
    return AdapterRegistry.from_rules(SOURCE_RULES)
