# -*- coding: utf-8 -*-
"""
rvgadget/decoder/base.py - Decoder interface

Any object providing these methods can feed the gadget core; there is no
base class to inherit from.
"""

from typing import Any, Iterable, Protocol, runtime_checkable

from ..core.types import InstructionDetail


@runtime_checkable
class Decoder(Protocol):
    """
    Disassembly engine consumed by ``Gadget``

    decode: raw bytes at an address -> instruction stream. The yielded objects
        only need ``address``, ``bytes``, ``mnemonic`` and ``op_str``.
    detail: one instruction -> decode detail, raising ``DecodeError`` when the
        detail cannot be produced.
    """

    def decode(self, code: bytes, address: int) -> Iterable[Any]:
        ...

    def detail(self, insn: Any) -> InstructionDetail:
        ...


@runtime_checkable
class SearchDecoder(Decoder, Protocol):
    """Decoder that can also tell control-transfer terminators apart"""

    def is_terminator(self, insn: Any) -> bool:
        ...
