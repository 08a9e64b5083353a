# -*- coding: utf-8 -*-
"""
rvgadget/core/types.py - Unified Type Definitions

Data structures shared by the decoder, query and gadget modules:
- Output mode enumeration
- Owned instruction records
- Decode detail (registers, groups, RISC-V operands)
"""

from typing import Any, Optional, Tuple
from dataclasses import dataclass, field
from enum import Enum, auto


# Mnemonic prefix of size-reduced (RVC) encodings
COMPRESSED_PREFIX = "c."


# =============================================================================
# Base Enumeration Types
# =============================================================================

class OutputMode(Enum):
    """Gadget presentation modes"""
    BLOCK = auto()    # One line per instruction with address and bytes
    INLINE = auto()   # Whole gadget on one line

    @classmethod
    def parse(cls, value: str) -> 'OutputMode':
        """Look up a mode by case-insensitive name"""
        try:
            return cls[value.strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown output mode: {value!r}") from None


class OperandType(Enum):
    """RISC-V operand kinds"""
    INVALID = auto()
    REG = auto()      # Register
    IMM = auto()      # Immediate
    MEM = auto()      # Base register + displacement


# =============================================================================
# Instructions
# =============================================================================

@dataclass(frozen=True)
class InstructionRecord:
    """
    Owned copy of one decoded instruction

    Independent of the decoder that produced it, so a gadget can outlive the
    decoding pass.
    """
    address: int                # Instruction address
    raw: bytes                  # Instruction bytes
    mnemonic: str               # Mnemonic, may carry the compressed prefix
    op_str: str = ""            # Operand string

    @classmethod
    def from_insn(cls, insn: Any) -> 'InstructionRecord':
        """Copy a decoder instruction (e.g. capstone ``CsInsn``)"""
        return cls(
            address=int(insn.address),
            raw=bytes(insn.bytes),
            mnemonic=str(insn.mnemonic),
            op_str=str(insn.op_str or ""),
        )

    @property
    def size(self) -> int:
        return len(self.raw)

    @property
    def is_compressed(self) -> bool:
        return self.mnemonic.startswith(COMPRESSED_PREFIX)

    @property
    def base_mnemonic(self) -> str:
        """Mnemonic without the compressed-encoding prefix"""
        if self.is_compressed:
            return self.mnemonic[len(COMPRESSED_PREFIX):]
        return self.mnemonic

    def __str__(self) -> str:
        return f"0x{self.address:08x}: {self.mnemonic} {self.op_str}".rstrip()


# =============================================================================
# Decode Detail
# =============================================================================

@dataclass(frozen=True)
class Operand:
    """Instruction operand"""
    type: OperandType
    reg: str = ""       # Register name (base register for MEM)
    imm: int = 0        # Immediate value
    disp: int = 0       # Memory displacement

    @property
    def is_register(self) -> bool:
        return self.type == OperandType.REG

    @property
    def is_immediate(self) -> bool:
        return self.type == OperandType.IMM

    @property
    def is_memory(self) -> bool:
        return self.type == OperandType.MEM


@dataclass(frozen=True)
class ArchDetail:
    """RISC-V specific decode detail"""
    operands: Tuple[Operand, ...] = ()


@dataclass(frozen=True)
class InstructionDetail:
    """
    Architecture-independent decode detail

    ``arch`` is None when the decoder has no architecture-specific view of
    the instruction.
    """
    regs_read: Tuple[str, ...] = ()
    regs_write: Tuple[str, ...] = ()
    groups: Tuple[str, ...] = ()
    arch: Optional[ArchDetail] = field(default=None)

    def reads(self, reg: str) -> bool:
        return reg in self.regs_read

    def writes(self, reg: str) -> bool:
        return reg in self.regs_write
