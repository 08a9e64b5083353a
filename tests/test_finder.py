"""Backward gadget enumeration over code buffers."""

from __future__ import annotations

import pytest

from rvgadget.core.config import RVGadgetConfig
from rvgadget.query import parse_query
from rvgadget.search import CodeSection, GadgetFinder

from fakes import FakeDecoder

# addi a0, a0, 1 ; c.jr ra ; c.li a0, 1 ; c.jr ra
CODE = bytes.fromhex("13051500" "8280" "0545" "8280")


@pytest.fixture
def config(monkeypatch) -> RVGadgetConfig:
    monkeypatch.delenv("RVGADGET_MAX_INSTRUCTIONS", raising=False)
    monkeypatch.delenv("RVGADGET_DEDUP", raising=False)
    return RVGadgetConfig()


def texts(gadgets):
    return [" ; ".join(f"{i.mnemonic} {i.op_str}".strip() for i in g) for g in gadgets]


def test_find_stops_windows_at_earlier_terminators(decoder, config) -> None:
    finder = GadgetFinder(decoder, config)
    gadgets = finder.find(CODE, 0x1000)

    assert texts(gadgets) == [
        "c.jr ra",
        "addi a0, a0, 1 ; c.jr ra",
        "c.li a0, 1 ; c.jr ra",
    ]
    assert [g.address for g in gadgets] == [0x1004, 0x1000, 0x1006]
    stats = finder.get_stats()
    assert stats['terminators'] == 2
    assert stats['duplicates'] == 1
    assert stats['bytes_scanned'] == len(CODE)


def test_find_without_dedup_keeps_repeated_bytes(decoder, config) -> None:
    config.dedup = False
    gadgets = GadgetFinder(decoder, config).find(CODE, 0x1000)
    assert len(gadgets) == 4
    assert [g.address for g in gadgets if len(g) == 1] == [0x1004, 0x1008]


def test_max_instructions_limits_window(decoder, config) -> None:
    config.max_instructions = 1
    gadgets = GadgetFinder(decoder, config).find(CODE, 0x1000)
    assert texts(gadgets) == ["c.jr ra"]


def test_every_gadget_ends_with_its_terminator(decoder, config) -> None:
    for gadget in GadgetFinder(decoder, config).find(CODE, 0x1000):
        assert decoder.is_terminator(gadget.terminator)
        assert not any(decoder.is_terminator(i) for i in gadget.instructions[:-1])


def test_windows_without_detail_are_dropped(config) -> None:
    decoder = FakeDecoder(fail_at={0x1000})
    finder = GadgetFinder(decoder, config)
    gadgets = finder.find(CODE, 0x1000)
    assert texts(gadgets) == ["c.jr ra", "c.li a0, 1 ; c.jr ra"]
    assert finder.get_stats()['detail_failures'] == 1


def test_code_without_terminator(decoder, config) -> None:
    assert GadgetFinder(decoder, config).find(bytes.fromhex("130515000545"), 0) == []


def test_unimp_breaks_windows(decoder, config) -> None:
    # zero padding ; c.ldsp ra, 8(sp) ; c.jr ra
    code = bytes.fromhex("00000000" "a260" "8280")
    gadgets = GadgetFinder(decoder, config).find(code, 0x1000)
    assert texts(gadgets) == ["c.jr ra", "c.ldsp ra, 8(sp) ; c.jr ra"]
    assert [g.address for g in gadgets] == [0x1006, 0x1004]


def test_search_deduplicates_across_sections(decoder, config) -> None:
    sections = [CodeSection(".text", 0x1000, CODE), CodeSection(".init", 0x8000, CODE)]
    gadgets = GadgetFinder(decoder, config).search(sections)
    assert len(gadgets) == 3
    assert all(g.address < 0x8000 for g in gadgets)

    config.dedup = False
    assert len(GadgetFinder(decoder, config).search(sections)) == 8


@pytest.mark.parametrize("expression, expected", [
    ("mnemonic:addi", ["addi a0, a0, 1 ; c.jr ra"]),
    ("writes:a0", ["addi a0, a0, 1 ; c.jr ra", "c.li a0, 1 ; c.jr ra"]),
    ("reads:ra", ["c.jr ra", "addi a0, a0, 1 ; c.jr ra", "c.li a0, 1 ; c.jr ra"]),
    ("mnemonic:li,imm:1", ["c.li a0, 1 ; c.jr ra"]),
    ("mnemonic:sd", []),
])
def test_search_filters_with_query(decoder, config, expression, expected) -> None:
    finder = GadgetFinder(decoder, config)
    gadgets = finder.search([CodeSection(".text", 0x1000, CODE)], parse_query(expression))
    assert texts(gadgets) == expected
    assert finder.get_stats()['filtered_out'] == 3 - len(expected)


def test_alignment_follows_compressed_support(config) -> None:
    decoder = FakeDecoder()
    assert GadgetFinder(decoder, config).alignment == 2
    decoder.compressed = False
    assert GadgetFinder(decoder, config).alignment == 4
