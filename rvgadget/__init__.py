# -*- coding: utf-8 -*-
"""
rvgadget - RISC-V ROP gadget finder

Modules:
- core: Types, configuration, exceptions, logging
- decoder: Capstone RISC-V decoder behind the Decoder protocol
- query: Instruction predicates for filtering gadgets
- gadget: Gadget construction, hashing, equality, rendering
- search: Gadget enumeration over ELF / raw code sections

Usage:
    from rvgadget import RiscvDecoder, GadgetFinder, OutputMode, load_elf, parse_query

    decoder = RiscvDecoder(bits=64, compressed=True)
    finder = GadgetFinder(decoder)
    for gadget in finder.search(load_elf("a.out").sections, parse_query("writes:a0")):
        print(gadget.render(OutputMode.INLINE))
"""

__version__ = "0.3.0"

from .core import (
    OutputMode,
    InstructionRecord,
    InstructionDetail,
    ArchDetail,
    Operand,
    OperandType,
    RVGadgetConfig,
    default_config,
    load_config,
    RVGadgetError,
    GadgetError,
    DecodeDetailUnavailable,
    EmptyGadgetError,
    DecodeError,
    get_logger,
    setup_logging,
)
from .decoder import Decoder, RiscvDecoder, HAVE_CAPSTONE
from .query import QueryBridge, parse_query
from .gadget import Gadget, content_hash
from .search import GadgetFinder, CodeSection, load_elf, load_raw

__all__ = [
    'OutputMode',
    'InstructionRecord',
    'InstructionDetail',
    'ArchDetail',
    'Operand',
    'OperandType',
    'RVGadgetConfig',
    'default_config',
    'load_config',
    'RVGadgetError',
    'GadgetError',
    'DecodeDetailUnavailable',
    'EmptyGadgetError',
    'DecodeError',
    'get_logger',
    'setup_logging',
    'Decoder',
    'RiscvDecoder',
    'HAVE_CAPSTONE',
    'QueryBridge',
    'parse_query',
    'Gadget',
    'content_hash',
    'GadgetFinder',
    'CodeSection',
    'load_elf',
    'load_raw',
]
