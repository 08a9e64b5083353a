# -*- coding: utf-8 -*-
"""
rvgadget/cli.py - Command-line entry point

Usage:
    rvgadget target.elf                          # All gadgets, block mode
    rvgadget target.elf --mode inline            # One gadget per line
    rvgadget target.elf --query writes:a0        # Gadgets writing a0
    rvgadget firmware.bin --raw --base 0x80000000
    rvgadget target.elf --config rvgadget.yaml
"""

import argparse
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

from . import __version__
from .core.config import RVGadgetConfig, default_config, load_config
from .core.exceptions import RVGadgetError, format_exception
from .core.logging import LEVELS, get_logger, setup_logging_from_config
from .core.types import OutputMode
from .decoder.capstone_decoder import RiscvDecoder
from .query.predicates import parse_query
from .search.finder import GadgetFinder
from .search.loader import load_binary

logger = get_logger("cli")


def create_parser():
    """Create the command-line parser"""
    parser = argparse.ArgumentParser(
        prog="rvgadget",
        description=f"rvgadget v{__version__} - RISC-V ROP gadget finder",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s target.elf                          # All gadgets (block mode)
  %(prog)s target.elf --mode inline            # One gadget per line
  %(prog)s target.elf --query writes:a0        # Gadgets that write a0
  %(prog)s target.elf --query mnemonic:ld,reads:sp
  %(prog)s firmware.bin --raw --base 0x80000000

Query terms (comma separated, all must hold for one instruction):
  mnemonic:ld|lw   reads:REG   writes:REG   reg:REG   imm:VALUE   operand:reg|imm|mem
"""
    )

    parser.add_argument(
        "target",
        nargs="?",
        help="Target file (ELF, or raw code with --raw)"
    )
    parser.add_argument(
        "--version",
        action="store_true",
        help="Show version and exit"
    )

    # Input
    source = parser.add_argument_group("Input")
    source.add_argument(
        "--raw",
        action="store_true",
        help="Treat the target as raw code instead of an ELF file"
    )
    source.add_argument(
        "--base",
        type=lambda v: int(v, 0),
        default=0,
        metavar="ADDR",
        help="Load address of raw code (Default: 0)"
    )
    source.add_argument(
        "--rv32",
        action="store_true",
        help="Decode as RV32 (Default: ELF class, else RV64)"
    )
    source.add_argument(
        "--no-compressed",
        action="store_true",
        help="Disable the C extension"
    )

    # Search
    search = parser.add_argument_group("Search")
    search.add_argument(
        "-q", "--query",
        metavar="EXPR",
        help="Keep gadgets with an instruction matching EXPR"
    )
    search.add_argument(
        "-n", "--max-insns",
        type=int,
        metavar="N",
        help="Maximum instructions per gadget, terminator included"
    )
    search.add_argument(
        "--no-dedup",
        action="store_true",
        help="Keep gadgets with identical bytes at different addresses"
    )

    # Output
    output = parser.add_argument_group("Output")
    output.add_argument(
        "-m", "--mode",
        choices=[m.name.lower() for m in OutputMode],
        help="Output mode (Default: block)"
    )
    output.add_argument(
        "--no-color",
        action="store_true",
        help="Do not highlight the terminating instruction"
    )

    # Configuration
    conf = parser.add_argument_group("Configuration")
    conf.add_argument(
        "--config",
        type=Path,
        metavar="FILE",
        help="YAML configuration file"
    )
    conf.add_argument(
        "--log-level",
        choices=LEVELS,
        help="Log level"
    )

    return parser


def build_config(args, base: Optional[RVGadgetConfig] = None) -> RVGadgetConfig:
    """Overlay command-line options on a loaded configuration"""
    config = base or default_config
    overrides = {}
    if args.rv32:
        overrides['arch_bits'] = 32
    if args.no_compressed:
        overrides['compressed'] = False
    if args.max_insns is not None:
        overrides['max_instructions'] = args.max_insns
    if args.no_dedup:
        overrides['dedup'] = False
    if args.mode:
        overrides['output_mode'] = args.mode
    if args.no_color:
        overrides['color'] = False
    if args.log_level:
        overrides['log_level'] = args.log_level
    # replace() re-applies environment overrides, command-line options go last
    config = replace(config)
    for name, value in overrides.items():
        setattr(config, name, value)
    return config


def run_search(target: Path, config: RVGadgetConfig, query_expr: Optional[str] = None,
               raw: bool = False, base: int = 0, arch_bits: Optional[int] = None) -> int:
    """Load ``target``, search it and print the gadgets; returns the gadget count"""
    query = parse_query(query_expr) if query_expr else None
    image = load_binary(target, raw=raw, base_address=base)

    bits = arch_bits or image.bits or config.arch_bits
    decoder = RiscvDecoder(bits=bits, compressed=config.compressed)
    finder = GadgetFinder(decoder, config)
    gadgets = finder.search(image.sections, query)

    mode = config.mode
    for gadget in gadgets:
        print(gadget.render(mode, color=config.color))
        if mode == OutputMode.BLOCK:
            print()

    print(f"[+] {len(gadgets)} gadgets found")
    return len(gadgets)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point"""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.version:
        print(f"rvgadget v{__version__}")
        return 0

    if not args.target:
        parser.print_help()
        return 2

    try:
        base_config = load_config(str(args.config)) if args.config else None
        config = build_config(args, base_config)
    except RVGadgetError as e:
        print(f"[-] Failed to load configuration: {format_exception(e)}", file=sys.stderr)
        return 1

    errors = config.validate()
    if errors:
        print("[-] Invalid configuration:", file=sys.stderr)
        for err in errors:
            print(f"    - {err}", file=sys.stderr)
        return 1

    setup_logging_from_config(config)
    logger.debug(f"Configuration: {config.to_dict()}")

    target = Path(args.target)
    if not target.exists():
        print(f"[-] Path does not exist: {target}", file=sys.stderr)
        return 1

    # --rv32 wins over the ELF class; otherwise the ELF class wins over the config
    arch_bits = 32 if args.rv32 else None
    try:
        run_search(target, config, query_expr=args.query, raw=args.raw,
                   base=args.base, arch_bits=arch_bits)
    except RVGadgetError as e:
        print(f"[-] {format_exception(e)}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
