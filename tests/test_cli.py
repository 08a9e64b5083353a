"""Command-line front end."""

from __future__ import annotations

import re

import pytest

from rvgadget import __version__
from rvgadget.cli import build_config, create_parser, main
from rvgadget.core.config import RVGadgetConfig
from rvgadget.core.types import OutputMode


def test_version(capsys) -> None:
    assert main(["--version"]) == 0
    assert capsys.readouterr().out.strip() == f"rvgadget v{__version__}"


def test_no_target_prints_help(capsys) -> None:
    assert main([]) == 2
    assert "usage: rvgadget" in capsys.readouterr().out


def test_missing_target(tmp_path, capsys) -> None:
    assert main([str(tmp_path / "nope.elf")]) == 1
    assert "does not exist" in capsys.readouterr().err


def test_missing_config_file(tmp_path, capsys) -> None:
    target = tmp_path / "code.bin"
    target.write_bytes(b"\x82\x80")
    assert main([str(target), "--config", str(tmp_path / "missing.yaml")]) == 1
    assert "Failed to load configuration" in capsys.readouterr().err


def test_invalid_option_value(tmp_path, capsys) -> None:
    target = tmp_path / "code.bin"
    target.write_bytes(b"\x82\x80")
    assert main([str(target), "--raw", "-n", "0"]) == 1
    assert "max_instructions" in capsys.readouterr().err


def test_config_with_quoted_number(tmp_path, capsys, monkeypatch) -> None:
    monkeypatch.delenv("RVGADGET_MAX_INSTRUCTIONS", raising=False)
    target = tmp_path / "code.bin"
    target.write_bytes(b"\x82\x80")
    cfg = tmp_path / "rvgadget.yaml"
    cfg.write_text('max_instructions: "8"\n')

    assert main([str(target), "--raw", "--config", str(cfg)]) == 1
    err = capsys.readouterr().err
    assert "Invalid configuration" in err
    assert "must be an integer" in err


def test_bad_query(tmp_path, capsys) -> None:
    target = tmp_path / "code.bin"
    target.write_bytes(b"\x82\x80")
    assert main([str(target), "--raw", "--query", "colour:red"]) == 1
    assert "QueryParseError" in capsys.readouterr().err


def test_build_config_overlays_flags(monkeypatch) -> None:
    monkeypatch.setenv("RVGADGET_MAX_INSTRUCTIONS", "9")
    args = create_parser().parse_args(
        ["a.elf", "--rv32", "--no-compressed", "-n", "3", "--mode", "inline", "--no-color"])
    base = RVGadgetConfig()
    config = build_config(args, base)

    assert config is not base
    assert config.arch_bits == 32
    assert config.compressed is False
    assert config.max_instructions == 3
    assert config.mode == OutputMode.INLINE
    assert config.color is False
    assert base.max_instructions == 9


def test_base_address_accepts_hex() -> None:
    args = create_parser().parse_args(["fw.bin", "--raw", "--base", "0x80000000"])
    assert args.base == 0x80000000


def test_not_an_elf(tmp_path, capsys) -> None:
    target = tmp_path / "code.bin"
    target.write_bytes(b"\x13\x05\x15\x00\x82\x80")
    assert main([str(target)]) == 1
    assert "BinaryLoadError" in capsys.readouterr().err


def test_raw_search(tmp_path, capsys) -> None:
    pytest.importorskip("capstone")
    target = tmp_path / "code.bin"
    target.write_bytes(bytes.fromhex("130515008280"))

    assert main([str(target), "--raw", "--base", "0x10000", "--mode", "inline", "--no-color"]) == 0
    out = capsys.readouterr().out
    assert "0x00010000     addi a0, a0, 1 ; " in out
    assert re.search(r"\[\+\] \d+ gadgets found", out)
