# -*- coding: utf-8 -*-
"""
rvgadget/query/base.py - Query interface

A query is any object with an ``is_satisfied`` method; gadgets call it once
per instruction while filtering.
"""

from typing import Protocol, runtime_checkable

from ..core.types import ArchDetail, InstructionDetail, InstructionRecord


@runtime_checkable
class QueryBridge(Protocol):
    """Predicate over a single decoded instruction"""

    def is_satisfied(self, instruction: InstructionRecord, detail: InstructionDetail,
                     arch_detail: ArchDetail) -> bool:
        ...
