# -*- coding: utf-8 -*-
"""
rvgadget/core/config.py - Configuration Management

Settings are resolved in this order (later wins):

    dataclass defaults -> YAML file -> RVGADGET_<FIELD> environment -> CLI flags

YAML example (``rvgadget.yaml``)::

    arch_bits: 64
    max_instructions: 8
    output_mode: inline
    color: false
"""

import os
import sys
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from .exceptions import ConfigLoadError, ConfigValidationError
from .logging import LEVELS
from .types import OutputMode

ENV_PREFIX = "RVGADGET_"

CONFIG_SEARCH_PATHS = (
    "rvgadget.yaml",
    ".rvgadget.yaml",
    "~/.rvgadget.yaml",
)

MAX_WINDOW = 32


_TRUE = ('true', '1', 'yes', 'on')
_FALSE = ('false', '0', 'no', 'off')


def _parse_bool(value: str) -> bool:
    text = value.strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ValueError(f"Not a boolean: {value!r}")


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _parse_int(value: str) -> int:
    return int(value, 0)


def _parse_path(value: str) -> Optional[Path]:
    if value.strip().lower() in ('', 'none', 'null'):
        return None
    return Path(value).expanduser()


# Environment string -> field value, keyed by the field's annotation
_ENV_PARSERS: Dict[Any, Callable[[str], Any]] = {
    int: _parse_int,
    bool: _parse_bool,
    str: str,
    Optional[Path]: _parse_path,
}


@dataclass
class RVGadgetConfig:
    """rvgadget configuration"""

    # Decoder
    arch_bits: int = 64                    # RV32 or RV64
    compressed: bool = True                # Decode the C extension

    # Search
    max_instructions: int = 6              # Window length, terminator included
    dedup: bool = True                     # Keep one gadget per content hash

    # Output
    output_mode: str = "block"             # block | inline
    color: bool = True                     # Highlight the terminator

    # Logging
    log_level: str = "INFO"
    log_file: Optional[Path] = None

    def __post_init__(self):
        self._apply_env_overrides()
        if self.log_file is not None and not isinstance(self.log_file, Path):
            self.log_file = Path(self.log_file)

    def _apply_env_overrides(self) -> None:
        """
        Override fields from ``RVGADGET_<FIELD>`` variables

        e.g. ``RVGADGET_MAX_INSTRUCTIONS=8``, ``RVGADGET_COLOR=off``.
        Unparseable values are ignored.
        """
        for f in fields(self):
            raw = os.environ.get(ENV_PREFIX + f.name.upper())
            if raw is None:
                continue
            parser = _ENV_PARSERS.get(f.type, str)
            try:
                setattr(self, f.name, parser(raw))
            except (ValueError, TypeError):
                continue

    @property
    def mode(self) -> OutputMode:
        try:
            return OutputMode.parse(str(self.output_mode))
        except ValueError as e:
            raise ConfigValidationError(str(e), field="output_mode", value=self.output_mode) from None

    # =========================================================================
    # (De)serialization
    # =========================================================================

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RVGadgetConfig':
        """Build from a mapping; unknown keys are ignored"""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})

    def to_dict(self) -> Dict[str, Any]:
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        data['log_file'] = str(self.log_file) if self.log_file else None
        return data

    @classmethod
    def from_yaml(cls, path: str) -> 'RVGadgetConfig':
        """
        Load a YAML configuration file

        Raises:
            ConfigLoadError: missing file, invalid YAML or a non-mapping root
        """
        import yaml
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
        except OSError as e:
            raise ConfigLoadError(f"Cannot read configuration file {path}: {e}", config_path=str(path))
        except yaml.YAMLError as e:
            raise ConfigLoadError(f"Invalid YAML in {path}: {e}", config_path=str(path))

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigLoadError(f"Configuration root must be a mapping: {path}", config_path=str(path))
        return cls.from_dict(data)

    def to_yaml(self, path: str) -> None:
        import yaml
        with open(path, 'w', encoding='utf-8') as f:
            yaml.safe_dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)

    # =========================================================================
    # Validation
    # =========================================================================

    def validate(self) -> List[str]:
        """Problems with the current values, empty when usable"""
        problems = []

        if not _is_int(self.arch_bits) or self.arch_bits not in (32, 64):
            problems.append(f"arch_bits ({self.arch_bits!r}) must be 32 or 64")

        if not _is_int(self.max_instructions):
            problems.append(f"max_instructions ({self.max_instructions!r}) must be an integer")
        elif not 1 <= self.max_instructions <= MAX_WINDOW:
            problems.append(f"max_instructions ({self.max_instructions}) must be between 1 and {MAX_WINDOW}")

        modes = [m.name.lower() for m in OutputMode]
        if str(self.output_mode).lower() not in modes:
            problems.append(f"output_mode ({self.output_mode}) must be one of {modes}")

        if str(self.log_level).upper() not in LEVELS:
            problems.append(f"log_level ({self.log_level}) must be one of {list(LEVELS)}")

        return problems


def _load_default_config() -> RVGadgetConfig:
    """First readable file of CONFIG_SEARCH_PATHS, else built-in defaults"""
    for candidate in CONFIG_SEARCH_PATHS:
        path = os.path.expanduser(candidate)
        if not os.path.isfile(path):
            continue
        try:
            return RVGadgetConfig.from_yaml(path)
        except ConfigLoadError as e:
            print(f"[!] Ignoring {path}: {e}", file=sys.stderr)
    return RVGadgetConfig()


default_config = _load_default_config()


def load_config(path: Optional[str] = None) -> RVGadgetConfig:
    """
    Configuration from ``path``, or defaults plus environment overrides

    Raises:
        ConfigLoadError: ``path`` given but unusable
    """
    if path:
        return RVGadgetConfig.from_yaml(path)
    return RVGadgetConfig()
