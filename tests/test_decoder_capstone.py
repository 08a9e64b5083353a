"""RiscvDecoder against the real capstone backend."""

from __future__ import annotations

import pytest

pytest.importorskip("capstone")

from rvgadget.core.exceptions import DecodeError, DecoderUnavailableError  # noqa: E402
from rvgadget.core.types import InstructionRecord, Operand, OperandType  # noqa: E402
from rvgadget.decoder import Decoder, RiscvDecoder, check_capstone_available  # noqa: E402
from rvgadget.decoder.capstone_decoder import _explicit_access, _fold_memory, _implicit_access  # noqa: E402
from rvgadget.gadget import Gadget  # noqa: E402
from rvgadget.query import parse_query  # noqa: E402


@pytest.fixture(scope="module")
def rv64() -> RiscvDecoder:
    return RiscvDecoder(bits=64, compressed=True)


def test_satisfies_decoder_protocol(rv64) -> None:
    assert check_capstone_available()
    assert isinstance(rv64, Decoder)


def test_rejects_unknown_width() -> None:
    with pytest.raises(DecoderUnavailableError):
        RiscvDecoder(bits=128)


def test_decodes_mixed_width_code(rv64) -> None:
    insns = list(rv64.decode(bytes.fromhex("130515008280"), 0x10000))
    assert [i.size for i in insns] == [4, 2]
    assert insns[0].mnemonic == "addi"
    assert insns[1].address == 0x10004
    assert rv64.is_terminator(insns[1])
    assert not rv64.is_terminator(insns[0])


def test_compressed_disabled_stops_at_rvc() -> None:
    decoder = RiscvDecoder(bits=64, compressed=False)
    insns = list(decoder.decode(bytes.fromhex("130515008280"), 0))
    assert len(insns) == 1


def test_detail_of_addi(rv64) -> None:
    record = InstructionRecord(0x10000, bytes.fromhex("13051500"), "addi", "a0, a0, 1")
    detail = rv64.detail(record)
    assert detail.arch is not None
    kinds = [op.type for op in detail.arch.operands]
    assert OperandType.IMM in kinds
    assert any(op.is_immediate and op.imm == 1 for op in detail.arch.operands)


def test_detail_from_live_instruction(rv64) -> None:
    insn = rv64.decode_one(bytes.fromhex("8280"), 0x20)
    detail = rv64.detail(insn)
    assert detail.arch is not None


def test_detail_of_undecodable_bytes(rv64) -> None:
    with pytest.raises(DecodeError) as excinfo:
        rv64.detail(InstructionRecord(0x40, b"\xff\xff", "bogus"))
    assert excinfo.value.address == 0x40


def test_gadget_from_capstone_window(rv64) -> None:
    window = rv64.decode(bytes.fromhex("130515008280"), 0x10000)
    gadget = Gadget.create(rv64, window)
    assert gadget.hash == 882317428
    assert gadget.satisfies(parse_query("mnemonic:addi,imm:1"))
    assert not gadget.satisfies(parse_query("mnemonic:sd"))


@pytest.mark.parametrize("mnemonic, operands, reads, writes", [
    ("addi", ("a0", "a1"), ["a1"], ["a0"]),
    ("sd", ("ra",), ["ra", "sp"], []),
    ("c.jr", ("ra",), ["ra"], []),
    ("c.jalr", ("a5",), ["a5"], []),
    ("beq", ("a0", "a1"), ["a0", "a1"], []),
])
def test_explicit_access_fallback(mnemonic, operands, reads, writes) -> None:
    ops = tuple(Operand(OperandType.REG, reg=r) for r in operands)
    if mnemonic == "sd":
        ops += (Operand(OperandType.MEM, reg="sp", disp=8),)
    assert _explicit_access(mnemonic, ops) == (reads, writes)


@pytest.mark.parametrize("code", ["67800000", "8280"])
def test_return_reads_ra(rv64, code) -> None:
    gadget = Gadget.create(rv64, rv64.decode(bytes.fromhex(code), 0))
    assert gadget.satisfies(parse_query("reads:ra"))
    assert gadget.satisfies(parse_query("reg:ra"))
    assert not gadget.satisfies(parse_query("writes:ra"))


def test_compressed_stack_load_has_memory_operand(rv64) -> None:
    # c.ldsp ra, 8(sp) ; c.jr ra
    window = list(rv64.decode(bytes.fromhex("a2608280"), 0))
    detail = rv64.detail(window[0])
    assert detail.arch.operands[-1] == Operand(OperandType.MEM, reg="sp", disp=8)
    assert "sp" in detail.regs_read
    assert "ra" in detail.regs_write

    gadget = Gadget.create(rv64, window)
    assert gadget.satisfies(parse_query("mnemonic:ldsp,operand:mem"))
    assert not gadget.satisfies(parse_query("mnemonic:ldsp,imm:8"))


def test_compressed_stack_store_reads_both_registers(rv64) -> None:
    # c.sdsp ra, 8(sp)
    detail = rv64.detail(rv64.decode_one(bytes.fromhex("06e4"), 0))
    assert detail.arch.operands[-1].type == OperandType.MEM
    assert {"ra", "sp"} <= set(detail.regs_read)


def test_fold_memory_only_touches_stack_forms() -> None:
    reg = Operand(OperandType.REG, reg="ra")
    imm = Operand(OperandType.IMM, imm=8)
    sp = Operand(OperandType.REG, reg="sp")

    assert _fold_memory("c.ldsp", (reg, imm, sp)) == (reg, Operand(OperandType.MEM, reg="sp", disp=8))
    assert _fold_memory("addi", (reg, sp, imm)) == (reg, sp, imm)
    assert _fold_memory("c.ldsp", (reg,)) == (reg,)


@pytest.mark.parametrize("mnemonic, regs, reads, writes", [
    ("ret", (), ["ra"], []),
    ("c.jr", ("a0",), ["a0"], []),
    ("c.jalr", ("a5",), ["a5"], ["ra"]),
    ("jalr", ("ra", "a0"), [], []),
    ("addi", ("a0", "a0"), [], []),
])
def test_implicit_access_of_jumps(mnemonic, regs, reads, writes) -> None:
    ops = tuple(Operand(OperandType.REG, reg=r) for r in regs)
    assert _implicit_access(mnemonic, ops) == (reads, writes)
