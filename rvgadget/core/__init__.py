# -*- coding: utf-8 -*-
"""
rvgadget/core - Core module

Shared types, configuration, exceptions and logging.
"""

# =============================================================================
# Data structures
# =============================================================================

from .types import (
    COMPRESSED_PREFIX,
    OutputMode,
    OperandType,
    InstructionRecord,
    Operand,
    ArchDetail,
    InstructionDetail,
)

# =============================================================================
# Configuration
# =============================================================================

from .config import (
    RVGadgetConfig,
    default_config,
    load_config,
)

# =============================================================================
# Exceptions
# =============================================================================

from .exceptions import (
    RVGadgetError,
    GadgetError,
    DecodeDetailUnavailable,
    EmptyGadgetError,
    DecoderError,
    DecodeError,
    DecoderUnavailableError,
    QueryError,
    QueryParseError,
    BinaryLoadError,
    ConfigError,
    ConfigValidationError,
    ConfigLoadError,
    format_exception,
)

# =============================================================================
# Logging
# =============================================================================

from .logging import (
    RVGadgetLogger,
    get_logger,
    setup_logging,
    setup_logging_from_config,
)

__all__ = [
    # Data structures
    'COMPRESSED_PREFIX',
    'OutputMode',
    'OperandType',
    'InstructionRecord',
    'Operand',
    'ArchDetail',
    'InstructionDetail',
    # Configuration
    'RVGadgetConfig',
    'default_config',
    'load_config',
    # Exceptions
    'RVGadgetError',
    'GadgetError',
    'DecodeDetailUnavailable',
    'EmptyGadgetError',
    'DecoderError',
    'DecodeError',
    'DecoderUnavailableError',
    'QueryError',
    'QueryParseError',
    'BinaryLoadError',
    'ConfigError',
    'ConfigValidationError',
    'ConfigLoadError',
    'format_exception',
    # Logging
    'RVGadgetLogger',
    'get_logger',
    'setup_logging',
    'setup_logging_from_config',
]
