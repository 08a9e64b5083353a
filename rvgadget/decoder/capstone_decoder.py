# -*- coding: utf-8 -*-
"""
rvgadget/decoder/capstone_decoder.py - Capstone RISC-V decoder

Wraps ``capstone.Cs`` for RV32/RV64 with optional compressed (RVC) decoding
and converts capstone's detail into ``InstructionDetail``.

Detail is re-derived from an instruction's own bytes and address, so it works
the same for a live ``CsInsn`` and for an owned ``InstructionRecord``.
"""

from typing import Any, Iterator, List, Tuple

try:
    import capstone
    from capstone import Cs, CsError, CS_ARCH_RISCV, CS_MODE_RISCV32, CS_MODE_RISCV64, CS_MODE_RISCVC
    from capstone.riscv import RISCV_OP_REG, RISCV_OP_IMM, RISCV_OP_MEM
    HAVE_CAPSTONE = True
except ImportError:
    HAVE_CAPSTONE = False
    capstone = None

from ..core.exceptions import DecodeError, DecoderUnavailableError
from ..core.logging import get_logger
from ..core.types import (
    COMPRESSED_PREFIX, OperandType, Operand, ArchDetail, InstructionDetail,
    InstructionRecord,
)

logger = get_logger("decoder")


# =============================================================================
# Constants
# =============================================================================

# Indirect control transfers that end a gadget (base mnemonics)
TERMINATOR_MNEMONICS = frozenset({"ret", "jr", "jalr"})

# Memory stores: every register operand is a source
STORE_MNEMONICS = frozenset({
    "sb", "sh", "sw", "sd", "sq",
    "fsw", "fsd", "fsq",
    "swsp", "sdsp", "fswsp", "fsdsp",
})

# Instructions whose register operands are all sources
READ_ONLY_MNEMONICS = frozenset({"jr", "ret"})

# Stack-pointer relative loads and stores of the C extension; capstone lists
# their address as separate imm and reg operands
SP_MEMORY_MNEMONICS = frozenset({
    "lwsp", "ldsp", "lqsp", "flwsp", "fldsp",
    "swsp", "sdsp", "sqsp", "fswsp", "fsdsp",
})

RETURN_ADDRESS = "ra"


def _base_mnemonic(mnemonic: str) -> str:
    if mnemonic.startswith(COMPRESSED_PREFIX):
        return mnemonic[len(COMPRESSED_PREFIX):]
    return mnemonic


def _explicit_access(mnemonic: str, operands: Tuple[Operand, ...]) -> Tuple[List[str], List[str]]:
    """
    Split explicit register operands into (read, written)

    Used when the capstone build cannot report register access itself. RISC-V
    puts the destination first except for stores and branches.
    """
    base = _base_mnemonic(mnemonic)
    regs = [op.reg for op in operands if op.type == OperandType.REG]
    bases = [op.reg for op in operands if op.type == OperandType.MEM and op.reg]

    if base == "jalr" and len(regs) == 1:
        return regs, []
    if base in STORE_MNEMONICS or base in READ_ONLY_MNEMONICS or base.startswith("b"):
        return regs + bases, []
    if not regs:
        return bases, []
    return regs[1:] + bases, regs[:1]


def _fold_memory(mnemonic: str, operands: Tuple[Operand, ...]) -> Tuple[Operand, ...]:
    """Rewrite the trailing ``imm, reg`` pair of a ``*sp`` load/store as one MEM operand"""
    if _base_mnemonic(mnemonic) not in SP_MEMORY_MNEMONICS or len(operands) < 2:
        return operands
    disp, base = operands[-2], operands[-1]
    if disp.type != OperandType.IMM or base.type != OperandType.REG:
        return operands
    return operands[:-2] + (Operand(OperandType.MEM, reg=base.reg, disp=disp.imm),)


def _implicit_access(mnemonic: str, operands: Tuple[Operand, ...]) -> Tuple[List[str], List[str]]:
    """
    Registers used by jump pseudo-instructions but absent from their operands

    ``ret`` reads ra; ``jr``/``jalr`` with a single register read it, and the
    single-register ``jalr`` links through ra. Memory bases are always read.
    """
    base = _base_mnemonic(mnemonic)
    regs = [op.reg for op in operands if op.type == OperandType.REG]
    read = [op.reg for op in operands if op.type == OperandType.MEM and op.reg]
    write = []

    if base == "ret" and not regs:
        read.append(RETURN_ADDRESS)
    elif base in ("jr", "jalr") and len(regs) == 1:
        read.append(regs[0])
        if base == "jalr":
            write.append(RETURN_ADDRESS)
    return read, write


class RiscvDecoder:
    """
    RISC-V decoder on top of capstone

    Usage:
        decoder = RiscvDecoder(bits=64, compressed=True)
        window = list(decoder.decode(code, 0x10000))
        gadget = Gadget.create(decoder, window)
    """

    def __init__(self, bits: int = 64, compressed: bool = True):
        if not HAVE_CAPSTONE:
            raise DecoderUnavailableError("capstone is required: pip install capstone")
        if bits not in (32, 64):
            raise DecoderUnavailableError(f"Unsupported RISC-V width: {bits}", bits=bits)

        mode = CS_MODE_RISCV64 if bits == 64 else CS_MODE_RISCV32
        if compressed:
            mode |= CS_MODE_RISCVC

        self.bits = bits
        self.compressed = compressed
        self.md = Cs(CS_ARCH_RISCV, mode)
        self.md.detail = True

    def __repr__(self) -> str:
        return f"RiscvDecoder(bits={self.bits}, compressed={self.compressed})"

    # =========================================================================
    # Decoding
    # =========================================================================

    def decode(self, code: bytes, address: int) -> Iterator[Any]:
        """Disassemble ``code`` loaded at ``address``; stops at the first invalid encoding"""
        return self.md.disasm(bytes(code), address)

    def decode_one(self, code: bytes, address: int):
        """First instruction of ``code`` or None"""
        for insn in self.md.disasm(bytes(code), address, 1):
            return insn
        return None

    def is_terminator(self, insn: Any) -> bool:
        return _base_mnemonic(insn.mnemonic) in TERMINATOR_MNEMONICS

    # =========================================================================
    # Detail
    # =========================================================================

    def detail(self, insn: Any) -> InstructionDetail:
        """
        Decode detail of one instruction

        Args:
            insn: ``InstructionRecord`` or capstone instruction

        Returns:
            InstructionDetail with RISC-V operands attached

        Raises:
            DecodeError: bytes do not decode to exactly one instruction, or
                capstone has no detail for it
        """
        raw = insn.raw if isinstance(insn, InstructionRecord) else bytes(insn.bytes)
        address = insn.address

        decoded = self.decode_one(raw, address)
        if decoded is None or decoded.size != len(raw):
            raise DecodeError(f"Cannot decode instruction at 0x{address:x}",
                              address=address, bytes=raw.hex())

        try:
            operands = _fold_memory(
                decoded.mnemonic,
                tuple(self._convert_operand(decoded, op) for op in decoded.operands),
            )
            groups = tuple(decoded.group_name(g) or str(g) for g in decoded.groups)
            try:
                read_ids, write_ids = decoded.regs_access()
            except CsError:
                read_ids, write_ids = [], []

            if read_ids or write_ids:
                regs_read = [decoded.reg_name(r) for r in read_ids]
                regs_write = [decoded.reg_name(r) for r in write_ids]
            else:
                # No access information: derive it from the operands
                explicit_read, explicit_write = _explicit_access(decoded.mnemonic, operands)
                regs_read = [decoded.reg_name(r) for r in decoded.regs_read] + explicit_read
                regs_write = [decoded.reg_name(r) for r in decoded.regs_write] + explicit_write
        except CsError as e:
            raise DecodeError(f"No detail for instruction at 0x{address:x}: {e}",
                              address=address, mnemonic=decoded.mnemonic)

        implicit_read, implicit_write = _implicit_access(decoded.mnemonic, operands)
        regs_read += implicit_read
        regs_write += implicit_write

        return InstructionDetail(
            regs_read=tuple(dict.fromkeys(r for r in regs_read if r)),
            regs_write=tuple(dict.fromkeys(r for r in regs_write if r)),
            groups=groups,
            arch=ArchDetail(operands=operands),
        )

    @staticmethod
    def _convert_operand(insn, op) -> Operand:
        if op.type == RISCV_OP_REG:
            return Operand(OperandType.REG, reg=insn.reg_name(op.reg) or "")
        if op.type == RISCV_OP_IMM:
            return Operand(OperandType.IMM, imm=op.imm)
        if op.type == RISCV_OP_MEM:
            base = insn.reg_name(op.mem.base) if op.mem.base else ""
            return Operand(OperandType.MEM, reg=base or "", disp=op.mem.disp)
        return Operand(OperandType.INVALID)


def check_capstone_available() -> bool:
    """Whether the capstone binding can be used"""
    if not HAVE_CAPSTONE:
        logger.debug("capstone not installed")
        return False
    return True
