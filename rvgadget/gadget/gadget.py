# -*- coding: utf-8 -*-
"""
rvgadget/gadget/gadget.py - Gadget

A gadget is an immutable run of owned instruction records ending (by
convention) in a control-transfer instruction, identified by a DJB2 hash of
its bytes.

Equality compares content hashes only. Two gadgets with different bytes are
equal when their hashes collide (e.g. ``00 21`` and ``01 00``); use
``same_content`` when exact deduplication matters.
"""

from typing import Any, Iterable, Iterator, Optional, Tuple, Union

from ..core.exceptions import DecodeError, DecodeDetailUnavailable, EmptyGadgetError
from ..core.logging import get_logger
from ..core.types import InstructionRecord, OutputMode
from ..decoder.base import Decoder
from ..query.base import QueryBridge
from . import render as _render

logger = get_logger("gadget")


DJB2_SEED = 5381
HASH_MASK = 0xFFFFFFFF


def content_hash(data: bytes, seed: int = DJB2_SEED) -> int:
    """
    DJB2 rolling hash over ``data`` with 32-bit wraparound

    ``seed`` lets the hash continue across several byte strings.
    """
    h = seed
    for b in data:
        h = (h * 33 + b) & HASH_MASK
    return h


class Gadget:
    """
    Immutable instruction sequence

    Build with ``Gadget.create``; the constructor does no validation.
    """

    __slots__ = ('_instructions', '_hash', '_decoder')

    def __init__(self, instructions: Tuple[InstructionRecord, ...], hash_value: int,
                 decoder: Optional[Decoder] = None):
        self._instructions = tuple(instructions)
        self._hash = hash_value
        self._decoder = decoder

    @classmethod
    def create(cls, decoder: Decoder, instructions: Iterable[Any]) -> 'Gadget':
        """
        Copy a decoded instruction window into a gadget

        Args:
            decoder: Decoder that produced the window, used to check detail
            instructions: Decoder instructions or InstructionRecords, in order

        Returns:
            Gadget

        Raises:
            EmptyGadgetError: no instructions
            DecodeDetailUnavailable: detail lookup failed for any instruction
        """
        records = []
        h = DJB2_SEED
        for insn in instructions:
            record = insn if isinstance(insn, InstructionRecord) else InstructionRecord.from_insn(insn)
            h = content_hash(record.raw, h)
            records.append(record)

        if not records:
            raise EmptyGadgetError("Cannot create a gadget from an empty instruction sequence")

        for record in records:
            try:
                decoder.detail(record)
            except DecodeError as e:
                raise DecodeDetailUnavailable(
                    "Failed to get instruction details",
                    address=record.address,
                    mnemonic=record.mnemonic,
                ) from e

        return cls(tuple(records), h, decoder)

    # =========================================================================
    # Data access
    # =========================================================================

    @property
    def instructions(self) -> Tuple[InstructionRecord, ...]:
        return self._instructions

    @property
    def hash(self) -> int:
        """32-bit content hash"""
        return self._hash

    @property
    def address(self) -> int:
        return self._instructions[0].address

    @property
    def terminator(self) -> InstructionRecord:
        return self._instructions[-1]

    @property
    def raw(self) -> bytes:
        return b"".join(ins.raw for ins in self._instructions)

    def __len__(self) -> int:
        return len(self._instructions)

    def __iter__(self) -> Iterator[InstructionRecord]:
        return iter(self._instructions)

    # =========================================================================
    # Equality
    # =========================================================================

    def equals(self, other: 'Gadget') -> bool:
        return self._hash == other._hash

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Gadget):
            return NotImplemented
        return self.equals(other)

    def __hash__(self) -> int:
        return self._hash

    def same_content(self, other: 'Gadget') -> bool:
        """Exact comparison of the instruction byte sequences"""
        return [i.raw for i in self._instructions] == [i.raw for i in other._instructions]

    # =========================================================================
    # Rendering
    # =========================================================================

    def render(self, mode: Union[OutputMode, str] = OutputMode.BLOCK, color: bool = True) -> str:
        """
        Text form of the gadget

        Raises:
            ValueError: ``mode`` names no output mode
        """
        if isinstance(mode, str):
            mode = OutputMode.parse(mode)
        if mode == OutputMode.INLINE:
            return _render.render_inline(self._instructions, color=color)
        if mode == OutputMode.BLOCK:
            return _render.render_block(self._instructions, color=color)
        raise ValueError(f"Unknown output mode: {mode!r}")

    def __str__(self) -> str:
        return self.render(OutputMode.INLINE, color=False)

    def __repr__(self) -> str:
        return f"<Gadget 0x{self.address:x} len={len(self)} hash=0x{self._hash:08x}>"

    # =========================================================================
    # Query
    # =========================================================================

    def satisfies(self, query: QueryBridge, decoder: Optional[Decoder] = None) -> bool:
        """
        True when any instruction satisfies ``query``

        Detail is fetched again for every instruction; instructions without
        detail are skipped.

        Args:
            query: Predicate over one instruction
            decoder: Detail source (defaults to the decoder used by ``create``)
        """
        decoder = decoder or self._decoder
        if decoder is None:
            raise ValueError("satisfies() needs a decoder for gadgets built without one")

        for ins in self._instructions:
            try:
                detail = decoder.detail(ins)
            except DecodeError as e:
                logger.debug(f"Skipping 0x{ins.address:x} during query: {e}")
                continue
            if detail.arch is None:
                continue
            if query.is_satisfied(ins, detail, detail.arch):
                return True
        return False
