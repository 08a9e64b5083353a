# -*- coding: utf-8 -*-
"""
rvgadget/search/loader.py - Code section loading

Reads the executable sections of a RISC-V ELF (pyelftools) or a raw code
blob mapped at a caller-chosen base address.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union

from elftools.common.exceptions import ELFError
from elftools.elf.constants import SH_FLAGS
from elftools.elf.elffile import ELFFile

from ..core.exceptions import BinaryLoadError
from ..core.logging import get_logger

logger = get_logger("search.loader")


@dataclass
class CodeSection:
    """Executable bytes mapped at ``address``"""
    name: str
    address: int
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def end_address(self) -> int:
        return self.address + len(self.data)


@dataclass
class BinaryImage:
    """Loaded target"""
    path: Path
    sections: List[CodeSection] = field(default_factory=list)
    bits: Optional[int] = None          # ELF class, None for raw blobs
    machine: str = ""

    @property
    def code_size(self) -> int:
        return sum(s.size for s in self.sections)


def load_elf(path: Union[str, Path]) -> BinaryImage:
    """
    Load the executable sections of an ELF file

    Raises:
        BinaryLoadError: unreadable file or not an ELF
    """
    path = Path(path)
    try:
        with open(path, 'rb') as f:
            elf = ELFFile(f)
            machine = elf['e_machine']
            image = BinaryImage(path=path, bits=elf.elfclass, machine=machine)
            for section in elf.iter_sections():
                if not section['sh_flags'] & SH_FLAGS.SHF_EXECINSTR:
                    continue
                if section['sh_type'] == 'SHT_NOBITS' or section['sh_size'] == 0:
                    continue
                image.sections.append(CodeSection(
                    name=section.name,
                    address=section['sh_addr'],
                    data=section.data(),
                ))
    except OSError as e:
        raise BinaryLoadError(f"Cannot read {path}: {e}", file_path=str(path))
    except ELFError as e:
        raise BinaryLoadError(f"Not a valid ELF file: {e}", file_path=str(path))

    if machine != 'EM_RISCV':
        logger.warning(f"{path.name} is {machine}, not RISC-V; results will be meaningless")
    logger.info(f"Loaded {path.name}: ELF{image.bits}, {len(image.sections)} executable "
                f"section(s), {image.code_size:,} bytes")
    return image


def load_raw(path: Union[str, Path], base_address: int = 0) -> BinaryImage:
    """Treat the whole file as code mapped at ``base_address``"""
    path = Path(path)
    try:
        data = path.read_bytes()
    except OSError as e:
        raise BinaryLoadError(f"Cannot read {path}: {e}", file_path=str(path))
    logger.info(f"Loaded raw blob {path.name}: {len(data):,} bytes at 0x{base_address:x}")
    return BinaryImage(path=path, sections=[CodeSection(".raw", base_address, data)])


def load_binary(path: Union[str, Path], raw: bool = False, base_address: int = 0) -> BinaryImage:
    if raw:
        return load_raw(path, base_address)
    return load_elf(path)
