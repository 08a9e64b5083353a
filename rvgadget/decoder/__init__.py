# -*- coding: utf-8 -*-
"""
rvgadget/decoder - Disassembly backends

The gadget core only needs the ``Decoder`` protocol; ``RiscvDecoder`` is the
capstone implementation used by the search engine and the CLI.
"""

from .base import Decoder, SearchDecoder
from .capstone_decoder import (
    RiscvDecoder,
    HAVE_CAPSTONE,
    TERMINATOR_MNEMONICS,
    check_capstone_available,
)

__all__ = [
    'Decoder',
    'SearchDecoder',
    'RiscvDecoder',
    'HAVE_CAPSTONE',
    'TERMINATOR_MNEMONICS',
    'check_capstone_available',
]
