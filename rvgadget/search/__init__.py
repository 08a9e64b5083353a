# -*- coding: utf-8 -*-
"""
rvgadget/search - Gadget enumeration over executable code
"""

from .finder import GadgetFinder
from .loader import CodeSection, BinaryImage, load_elf, load_raw, load_binary

__all__ = [
    'GadgetFinder',
    'CodeSection',
    'BinaryImage',
    'load_elf',
    'load_raw',
    'load_binary',
]
