# -*- coding: utf-8 -*-
"""
rvgadget/gadget - Gadget representation, equality, filtering and rendering
"""

from .gadget import Gadget, content_hash, DJB2_SEED
from .render import render_block, render_inline, display_mnemonic

__all__ = [
    'Gadget',
    'content_hash',
    'DJB2_SEED',
    'render_block',
    'render_inline',
    'display_mnemonic',
]
