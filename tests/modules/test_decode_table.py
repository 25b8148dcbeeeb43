from __future__ import annotations

import pytest
from bs4 import BeautifulSoup

from webtoepub.adapters.wordpress import CLEAR_ALPHABET, NEPU_ALPHABET
from webtoepub.errors import DecodeTableConflictError
from webtoepub.modules.decode_table import DecodeTable


def test_decode_replaces_mapped_and_passes_through_unmapped() -> None:
    table = DecodeTable().build_lookup("XYZ", "ABC")

    assert table.decode("XY1Z") == "AB1C"
    assert table.decode("") == ""
    assert table.decode("xyz") == "xyz"


def test_repeated_consistent_pairs_are_allowed() -> None:
    table = DecodeTable().build_lookup("XX", "AA")
    table.build_lookup("XQ", "AB")

    assert len(table) == 2
    assert table.decode("QX") == "BA"


def test_conflict_in_single_call_raises() -> None:
    with pytest.raises(DecodeTableConflictError) as excinfo:
        DecodeTable().build_lookup("XX", "AB")
    assert excinfo.value.obfuscated == "X"
    assert excinfo.value.existing == "A"
    assert excinfo.value.requested == "B"


def test_conflict_across_calls_leaves_table_unusable() -> None:
    table = DecodeTable().build_lookup("XYZ", "ABC")

    with pytest.raises(DecodeTableConflictError):
        table.build_lookup("X", "Q")

    assert not table.usable
    with pytest.raises(DecodeTableConflictError):
        table.decode("XYZ")
    with pytest.raises(DecodeTableConflictError):
        table.build_lookup("W", "D")


def test_length_mismatch_is_rejected() -> None:
    with pytest.raises(ValueError):
        DecodeTable().build_lookup("XYZ", "AB")


def test_decode_subtree_rewrites_text_only() -> None:
    soup = BeautifulSoup(
        '<div><p class="X">XY <b>Z</b></p><!--XYZ--><script>var XYZ;</script></div>',
        "html.parser",
    )
    table = DecodeTable().build_lookup("XYZ", "ABC")

    table.decode_subtree(soup.div)

    assert soup.p.get_text() == "AB C"
    assert soup.p["class"] == ["X"]
    assert "XYZ" in str(soup)  # comment and script untouched
    assert soup.script.string == "var XYZ;"


def test_nepustation_alphabet_is_bijective() -> None:
    table = DecodeTable().build_lookup(NEPU_ALPHABET, CLEAR_ALPHABET)

    assert len(NEPU_ALPHABET) == 52
    assert len(set(NEPU_ALPHABET)) == 52
    assert table.decode("Ḁḁ Ḳḳ!") == "Aa Zz!"
