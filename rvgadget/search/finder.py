# -*- coding: utf-8 -*-
"""
rvgadget/search/finder.py - Gadget search engine

Finds every indirect control transfer in a code buffer and walks backwards
from it, keeping each start offset whose decoded instructions tile the window
exactly up to the terminator.
"""

import time
from typing import Any, Dict, Iterable, List, Optional

from ..core.config import RVGadgetConfig, default_config
from ..core.exceptions import GadgetError
from ..core.logging import get_logger
from ..decoder.base import SearchDecoder
from ..gadget.gadget import Gadget
from ..query.base import QueryBridge
from .loader import CodeSection

logger = get_logger("search.finder")

# Longest RISC-V encoding handled (standard 32-bit instructions)
MAX_INSN_SIZE = 4

# Encodings that never execute; a window containing one is misaligned or data
BREAKER_MNEMONICS = frozenset({"unimp", "c.unimp"})


class GadgetFinder:
    """
    Exhaustive gadget enumeration over code sections

    Usage:
        finder = GadgetFinder(RiscvDecoder())
        gadgets = finder.search(image.sections, query=parse_query("writes:a0"))
    """

    def __init__(self, decoder: SearchDecoder, config: Optional[RVGadgetConfig] = None):
        self.decoder = decoder
        self.config = config or default_config
        self.alignment = 2 if getattr(decoder, 'compressed', True) else 4
        self.stats: Dict[str, Any] = {}
        self.reset_stats()

    def reset_stats(self) -> None:
        self.stats = {
            'bytes_scanned': 0,
            'terminators': 0,
            'windows_tried': 0,
            'gadgets_built': 0,
            'duplicates': 0,
            'detail_failures': 0,
            'filtered_out': 0,
            'search_time': 0.0,
        }

    # =========================================================================
    # Enumeration
    # =========================================================================

    def find(self, code: bytes, base_address: int = 0) -> List[Gadget]:
        """
        Enumerate gadgets in one code buffer

        Args:
            code: Code bytes
            base_address: Address of ``code[0]``

        Returns:
            Gadgets in terminator order, deduplicated when ``config.dedup``
        """
        code = bytes(code)
        found: List[Gadget] = []
        seen = set()
        self.stats['bytes_scanned'] += len(code)

        for offset in range(0, len(code), self.alignment):
            terminator = self._first_insn(code[offset:offset + MAX_INSN_SIZE], base_address + offset)
            if terminator is None or not self.decoder.is_terminator(terminator):
                continue
            self.stats['terminators'] += 1

            for gadget in self._gadgets_ending_at(code, base_address, offset, offset + terminator.size):
                if self.config.dedup:
                    if gadget in seen:
                        self.stats['duplicates'] += 1
                        continue
                    seen.add(gadget)
                found.append(gadget)

        return found

    def _gadgets_ending_at(self, code: bytes, base_address: int, term_offset: int, end: int):
        max_insns = self.config.max_instructions
        lowest = max(0, term_offset - (max_insns - 1) * MAX_INSN_SIZE)

        for start in range(term_offset, lowest - 1, -self.alignment):
            self.stats['windows_tried'] += 1
            window = list(self.decoder.decode(code[start:end], base_address + start))
            if not self._is_candidate(window, end - start, base_address + term_offset, max_insns):
                continue
            try:
                gadget = Gadget.create(self.decoder, window)
            except GadgetError as e:
                self.stats['detail_failures'] += 1
                logger.debug(f"Dropping window at 0x{base_address + start:x}: {e}")
                continue
            self.stats['gadgets_built'] += 1
            yield gadget

    def _is_candidate(self, window: List[Any], length: int, term_address: int, max_insns: int) -> bool:
        if not window or len(window) > max_insns:
            return False
        if sum(insn.size for insn in window) != length:
            return False
        if window[-1].address != term_address:
            return False
        if any(insn.mnemonic in BREAKER_MNEMONICS for insn in window):
            return False
        return not any(self.decoder.is_terminator(insn) for insn in window[:-1])

    def _first_insn(self, code: bytes, address: int):
        for insn in self.decoder.decode(code, address):
            return insn
        return None

    # =========================================================================
    # Search
    # =========================================================================

    def filter(self, gadgets: Iterable[Gadget], query: QueryBridge) -> List[Gadget]:
        """Gadgets with at least one instruction satisfying ``query``"""
        kept = []
        for gadget in gadgets:
            if gadget.satisfies(query, self.decoder):
                kept.append(gadget)
            else:
                self.stats['filtered_out'] += 1
        return kept

    def search(self, sections: Iterable[CodeSection], query: Optional[QueryBridge] = None) -> List[Gadget]:
        """
        Enumerate, deduplicate and filter gadgets across sections

        Args:
            sections: Code sections to scan
            query: Optional predicate; gadgets without a matching instruction are dropped

        Returns:
            Surviving gadgets
        """
        start_time = time.time()
        gadgets: List[Gadget] = []
        seen = set()

        for section in sections:
            logger.info(f"Scanning {section.name} [0x{section.address:x}-0x{section.end_address:x}]")
            for gadget in self.find(section.data, section.address):
                if self.config.dedup:
                    if gadget in seen:
                        self.stats['duplicates'] += 1
                        continue
                    seen.add(gadget)
                gadgets.append(gadget)

        if query is not None:
            gadgets = self.filter(gadgets, query)

        self.stats['search_time'] = time.time() - start_time
        logger.info(f"Found {len(gadgets)} gadgets in {self.stats['search_time']:.2f}s "
                    f"({self.stats['terminators']} terminators, "
                    f"{self.stats['duplicates']} duplicates, "
                    f"{self.stats['detail_failures']} without detail)")
        return gadgets

    def get_stats(self) -> Dict[str, Any]:
        return self.stats.copy()
