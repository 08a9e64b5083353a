# -*- coding: utf-8 -*-
"""
rvgadget/core/exceptions.py - Exception hierarchy

Every error carries a message plus keyword context. Names listed in a class's
``attributes`` become instance attributes (``err.address``); any other
keyword lands in ``err.details``.

    RVGadgetError
    ├── GadgetError
    │   ├── DecodeDetailUnavailable     address
    │   └── EmptyGadgetError
    ├── DecoderError
    │   ├── DecodeError                 address
    │   └── DecoderUnavailableError
    ├── QueryError
    │   └── QueryParseError             expression
    ├── BinaryLoadError                 file_path
    └── ConfigError
        ├── ConfigValidationError       field, value
        └── ConfigLoadError             config_path
"""

from typing import Any, Dict, Optional, Tuple


def _show(value: Any) -> str:
    if isinstance(value, int) and not isinstance(value, bool) and value > 0xFF:
        return f"{value:#x}"
    return repr(value)


class RVGadgetError(Exception):
    """Base class of every rvgadget error"""

    attributes: Tuple[str, ...] = ()

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        for name in self.attributes:
            setattr(self, name, context.pop(name, None))
        self.details: Dict[str, Any] = dict(details or {}, **context)

    def context(self) -> Dict[str, Any]:
        """Attributes and details together, attributes first"""
        merged = {name: getattr(self, name) for name in self.attributes
                  if getattr(self, name) is not None}
        merged.update(self.details)
        return merged

    def __str__(self) -> str:
        ctx = self.context()
        if not ctx:
            return self.message
        return f"{self.message} ({', '.join(f'{k}={_show(v)}' for k, v in ctx.items())})"


# =============================================================================
# Gadget construction
# =============================================================================

class GadgetError(RVGadgetError):
    """A gadget could not be built"""


class DecodeDetailUnavailable(GadgetError):
    """Decode detail was unavailable for one instruction of the window"""
    attributes = ('address',)


class EmptyGadgetError(GadgetError):
    """A gadget needs at least one instruction"""


# =============================================================================
# Decoding
# =============================================================================

class DecoderError(RVGadgetError):
    """Disassembly backend failure"""


class DecodeError(DecoderError):
    """Bytes at ``address`` did not decode to one instruction with detail"""
    attributes = ('address',)


class DecoderUnavailableError(DecoderError):
    """Backend missing or asked for an unsupported mode"""


# =============================================================================
# Queries
# =============================================================================

class QueryError(RVGadgetError):
    """Query construction failure"""


class QueryParseError(QueryError):
    """Malformed query expression"""
    attributes = ('expression',)


# =============================================================================
# Input
# =============================================================================

class BinaryLoadError(RVGadgetError):
    """Target could not be read or parsed"""
    attributes = ('file_path',)


class ConfigError(RVGadgetError):
    """Configuration failure"""


class ConfigValidationError(ConfigError):
    """A configuration field holds an unusable value"""
    attributes = ('field', 'value')


class ConfigLoadError(ConfigError):
    """A configuration file could not be loaded"""
    attributes = ('config_path',)


def format_exception(exc: BaseException, include_traceback: bool = False) -> str:
    """
    One-line ``[ErrorName] message`` form for terminal output

    Context of rvgadget errors follows on an indented line; the traceback is
    appended only on request.
    """
    lines = [f"[{type(exc).__name__}] {exc.message if isinstance(exc, RVGadgetError) else exc}"]
    if isinstance(exc, RVGadgetError):
        ctx = exc.context()
        if ctx:
            lines.append("  " + ", ".join(f"{k}={_show(v)}" for k, v in ctx.items()))

    if include_traceback:
        import traceback
        lines.append("".join(traceback.format_exception(type(exc), exc, exc.__traceback__)).rstrip())

    return "\n".join(lines)
