# -*- coding: utf-8 -*-
"""
rvgadget/query/predicates.py - Instruction predicates

Ready-made ``QueryBridge`` implementations and a small expression parser.

Expression syntax (terms joined with ``,`` must all hold for one
instruction):

    mnemonic:ld|lw      canonical mnemonic is one of the alternatives
    reads:sp            instruction reads the register
    writes:a0           instruction writes the register
    reg:ra              instruction reads or writes the register
    imm:0x10            an immediate operand has this value
    operand:mem         an operand of kind reg / imm / mem exists
"""

from typing import Dict, Callable, List

from ..core.exceptions import QueryParseError
from ..core.types import (
    COMPRESSED_PREFIX, ArchDetail, InstructionDetail, InstructionRecord, OperandType,
)
from .base import QueryBridge


def _canonical(mnemonic: str) -> str:
    mnemonic = mnemonic.strip().lower()
    if mnemonic.startswith(COMPRESSED_PREFIX):
        return mnemonic[len(COMPRESSED_PREFIX):]
    return mnemonic


class MnemonicQuery:
    """Instruction mnemonic (compressed prefix ignored) is one of ``mnemonics``"""

    def __init__(self, *mnemonics: str):
        self.mnemonics = frozenset(_canonical(m) for m in mnemonics)

    def is_satisfied(self, instruction: InstructionRecord, detail: InstructionDetail,
                     arch_detail: ArchDetail) -> bool:
        return instruction.base_mnemonic.lower() in self.mnemonics

    def __repr__(self) -> str:
        return f"MnemonicQuery({', '.join(sorted(self.mnemonics))})"


class RegisterQuery:
    """Instruction accesses ``register`` (access: any / read / write)"""

    ACCESS_MODES = ("any", "read", "write")

    def __init__(self, register: str, access: str = "any"):
        if access not in self.ACCESS_MODES:
            raise ValueError(f"access must be one of {self.ACCESS_MODES}, got {access!r}")
        self.register = register.strip().lower()
        self.access = access

    def is_satisfied(self, instruction: InstructionRecord, detail: InstructionDetail,
                     arch_detail: ArchDetail) -> bool:
        if self.access == "read":
            return detail.reads(self.register)
        if self.access == "write":
            return detail.writes(self.register)
        return detail.reads(self.register) or detail.writes(self.register)

    def __repr__(self) -> str:
        return f"RegisterQuery({self.register!r}, access={self.access!r})"


class ImmediateQuery:
    """An immediate operand equals ``value``"""

    def __init__(self, value: int):
        self.value = value

    def is_satisfied(self, instruction: InstructionRecord, detail: InstructionDetail,
                     arch_detail: ArchDetail) -> bool:
        return any(op.is_immediate and op.imm == self.value for op in arch_detail.operands)

    def __repr__(self) -> str:
        return f"ImmediateQuery({self.value:#x})"


class OperandTypeQuery:
    """An operand of kind ``kind`` exists"""

    def __init__(self, kind: OperandType):
        self.kind = kind

    def is_satisfied(self, instruction: InstructionRecord, detail: InstructionDetail,
                     arch_detail: ArchDetail) -> bool:
        return any(op.type == self.kind for op in arch_detail.operands)

    def __repr__(self) -> str:
        return f"OperandTypeQuery({self.kind.name})"


class AllOf:
    """Every sub-query holds for the same instruction"""

    def __init__(self, *queries: QueryBridge):
        self.queries = tuple(queries)

    def is_satisfied(self, instruction: InstructionRecord, detail: InstructionDetail,
                     arch_detail: ArchDetail) -> bool:
        return all(q.is_satisfied(instruction, detail, arch_detail) for q in self.queries)

    def __repr__(self) -> str:
        return f"AllOf({', '.join(map(repr, self.queries))})"


class AnyOf:
    """At least one sub-query holds for the instruction"""

    def __init__(self, *queries: QueryBridge):
        self.queries = tuple(queries)

    def is_satisfied(self, instruction: InstructionRecord, detail: InstructionDetail,
                     arch_detail: ArchDetail) -> bool:
        return any(q.is_satisfied(instruction, detail, arch_detail) for q in self.queries)

    def __repr__(self) -> str:
        return f"AnyOf({', '.join(map(repr, self.queries))})"


# =============================================================================
# Expression parser
# =============================================================================

def _parse_imm(value: str) -> QueryBridge:
    return ImmediateQuery(int(value, 0))


def _parse_operand(value: str) -> QueryBridge:
    try:
        kind = OperandType[value.upper()]
    except KeyError:
        raise ValueError(f"unknown operand kind {value!r}") from None
    if kind == OperandType.INVALID:
        raise ValueError("operand kind must be reg, imm or mem")
    return OperandTypeQuery(kind)


TERM_PARSERS: Dict[str, Callable[[str], QueryBridge]] = {
    'mnemonic': lambda v: MnemonicQuery(*v.split('|')),
    'reads': lambda v: RegisterQuery(v, access="read"),
    'writes': lambda v: RegisterQuery(v, access="write"),
    'reg': lambda v: RegisterQuery(v, access="any"),
    'imm': _parse_imm,
    'operand': _parse_operand,
}


def parse_query(expression: str) -> QueryBridge:
    """
    Build a query from an expression such as ``"writes:a0,mnemonic:ld"``

    Args:
        expression: Comma separated ``key:value`` terms

    Returns:
        A single query (terms combined with AllOf)

    Raises:
        QueryParseError: empty expression, unknown key or bad value
    """
    terms: List[QueryBridge] = []
    for raw_term in expression.split(','):
        term = raw_term.strip()
        if not term:
            continue
        key, sep, value = term.partition(':')
        key, value = key.strip().lower(), value.strip()
        if not sep or not value:
            raise QueryParseError(f"Expected key:value, got {term!r}", expression=expression)
        parser = TERM_PARSERS.get(key)
        if parser is None:
            raise QueryParseError(f"Unknown query key {key!r}", expression=expression,
                                  valid_keys=sorted(TERM_PARSERS))
        try:
            terms.append(parser(value))
        except ValueError as e:
            raise QueryParseError(f"Bad value for {key!r}: {e}", expression=expression)

    if not terms:
        raise QueryParseError("Empty query", expression=expression)
    if len(terms) == 1:
        return terms[0]
    return AllOf(*terms)
