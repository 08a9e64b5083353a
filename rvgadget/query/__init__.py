# -*- coding: utf-8 -*-
"""
rvgadget/query - Instruction predicates used to filter gadgets
"""

from .base import QueryBridge
from .predicates import (
    MnemonicQuery,
    RegisterQuery,
    ImmediateQuery,
    OperandTypeQuery,
    AllOf,
    AnyOf,
    parse_query,
)

__all__ = [
    'QueryBridge',
    'MnemonicQuery',
    'RegisterQuery',
    'ImmediateQuery',
    'OperandTypeQuery',
    'AllOf',
    'AnyOf',
    'parse_query',
]
