# -*- coding: utf-8 -*-
"""
rvgadget/gadget/render.py - Gadget presentation

Block mode (one line per instruction):

    0x00010074       13 05 15 00    addi a0, a0, 1
    0x00010078             82 80    jr ra

Inline mode:

    0x00010074     addi a0, a0, 1 ; jr ra

The last instruction is wrapped in red when ``color`` is set.
"""

from typing import List, Sequence

from ..core.types import COMPRESSED_PREFIX, InstructionRecord


RED = '\033[31m'
RESET = '\033[0m'

BYTES_FIELD_WIDTH = 15


def emphasize(text: str) -> str:
    return f"{RED}{text}{RESET}"


def display_mnemonic(mnemonic: str) -> str:
    """Strip the compressed-encoding marker"""
    if mnemonic.startswith(COMPRESSED_PREFIX):
        return mnemonic[len(COMPRESSED_PREFIX):]
    return mnemonic


def instruction_text(ins: InstructionRecord) -> str:
    # the separator space stays even without operands
    return f"{display_mnemonic(ins.mnemonic)} {ins.op_str}"


def format_bytes(raw: bytes) -> str:
    return "".join(f"{b:02x} " for b in raw)


def render_block(instructions: Sequence[InstructionRecord], color: bool = True) -> str:
    lines: List[str] = []
    last = len(instructions) - 1
    for i, ins in enumerate(instructions):
        text = instruction_text(ins)
        if color and i == last:
            text = emphasize(text)
        lines.append(f"{ins.address:#010x}    {format_bytes(ins.raw):>{BYTES_FIELD_WIDTH}}   {text}")
    return "\n".join(lines)


def render_inline(instructions: Sequence[InstructionRecord], color: bool = True) -> str:
    parts = [f"{instructions[0].address:#010x}     "]
    last = len(instructions) - 1
    for i, ins in enumerate(instructions):
        text = instruction_text(ins)
        if i == last:
            parts.append(emphasize(text) if color else text)
        else:
            parts.append(text)
            parts.append("; " if not ins.op_str else " ; ")
    return "".join(parts)
