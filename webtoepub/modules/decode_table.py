"""字符替换解码表，用于对正文做字形混淆的站点"""
from __future__ import annotations

from typing import Dict, Optional

from bs4 import NavigableString, Tag
from bs4.element import PreformattedString

from ..errors import DecodeTableConflictError

__all__ = ['DecodeTable']

# 注释、CDATA、doctype 等不属于可见正文
_SKIPPED_STRING_TYPES = (PreformattedString,)
_SKIPPED_PARENTS = {'script', 'style'}


class DecodeTable:
    """一对一的 混淆字符 -> 明文字符 映射。

    在适配器构造时通过一次或多次 ``build_lookup`` 建好，之后只读。
    出现冲突映射时抛出 ``DecodeTableConflictError``，并且整个表作废，
    之后的 ``decode`` 调用同样抛错。
    """

    def __init__(self):
        self._table: Dict[str, str] = {}
        self._conflict: Optional[DecodeTableConflictError] = None

    def build_lookup(self, obfuscated_alphabet: str, clear_alphabet: str) -> 'DecodeTable':
        if self._conflict is not None:
            raise self._conflict
        if len(obfuscated_alphabet) != len(clear_alphabet):
            raise ValueError("obfuscated and clear alphabets must have the same length")
        for cy, cl in zip(obfuscated_alphabet, clear_alphabet):
            existing = self._table.get(cy)
            if existing is None:
                self._table[cy] = cl
            elif existing != cl:
                self._conflict = DecodeTableConflictError(cy, existing, cl)
                raise self._conflict
        return self

    @property
    def usable(self) -> bool:
        return self._conflict is None

    def __len__(self) -> int:
        return len(self._table)

    def decode(self, text: str) -> str:
        """替换表中存在的字符，表外字符原样保留"""
        if self._conflict is not None:
            raise self._conflict
        table = self._table
        return ''.join(table.get(c, c) for c in text)

    def decode_subtree(self, element: Tag) -> int:
        """就地解码子树中的所有文本节点，不改动元素结构。返回被改写的节点数"""
        if self._conflict is not None:
            raise self._conflict
        changed = 0
        for node in list(element.descendants):
            if not isinstance(node, NavigableString) or isinstance(node, _SKIPPED_STRING_TYPES):
                continue
            if node.parent is not None and node.parent.name in _SKIPPED_PARENTS:
                continue
            decoded = self.decode(str(node))
            if decoded != str(node):
                node.replace_with(NavigableString(decoded))
                changed += 1
        return changed
