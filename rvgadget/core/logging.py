# -*- coding: utf-8 -*-
"""
rvgadget/core/logging.py - Logging management

Every module logs under the ``rvgadget`` logger hierarchy. Gadget listings own
stdout, so the console handler always writes to stderr.

Used as a library, rvgadget only installs a ``NullHandler``; the CLI (or the
embedding program) calls ``setup_logging`` / ``setup_logging_from_config``.
Calling setup again replaces the handlers installed by the previous call.
"""

import logging
import sys
from pathlib import Path
from typing import List, Optional, TextIO, Union


ROOT_LOGGER_NAME = "rvgadget"

# Console lines are short, the file keeps timestamps and source locations
CONSOLE_FORMAT = "%(levelname)-8s %(name)s: %(message)s"
FILE_FORMAT = "[%(asctime)s] %(levelname)-8s %(name)s (%(filename)s:%(lineno)d): %(message)s"

LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')


class ColoredFormatter(logging.Formatter):
    """
    Level-colored console formatter

    Colors are only emitted when ``stream`` is a terminal.
    """

    LEVEL_COLORS = {
        logging.DEBUG: '\033[2m',       # Dim
        logging.INFO: '\033[36m',       # Cyan
        logging.WARNING: '\033[33m',    # Yellow
        logging.ERROR: '\033[31m',      # Red
        logging.CRITICAL: '\033[1;31m', # Bold red
    }
    RESET = '\033[0m'

    def __init__(self, fmt: str = CONSOLE_FORMAT, stream: Optional[TextIO] = None,
                 use_colors: bool = True) -> None:
        super().__init__(fmt)
        stream = stream if stream is not None else sys.stderr
        self.use_colors = use_colors and hasattr(stream, 'isatty') and stream.isatty()

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        if not self.use_colors:
            return text
        color = self.LEVEL_COLORS.get(record.levelno, '')
        return f"{color}{text}{self.RESET}" if color else text


def _to_level(level: Union[str, int]) -> int:
    if isinstance(level, int):
        return level
    return getattr(logging, str(level).upper(), logging.INFO)


class RVGadgetLogger:
    """
    rvgadget log manager

    Tracks the handlers it installed on the ``rvgadget`` logger so a second
    ``setup`` (e.g. after the CLI has read ``--log-level``) swaps them out
    instead of duplicating output.
    """

    _handlers: List[logging.Handler] = []

    @classmethod
    def root(cls) -> logging.Logger:
        return logging.getLogger(ROOT_LOGGER_NAME)

    @classmethod
    def is_configured(cls) -> bool:
        return bool(cls._handlers)

    @classmethod
    def setup(
        cls,
        level: Union[str, int] = "INFO",
        log_file: Optional[Path] = None,
        use_colors: bool = True,
        stream: Optional[TextIO] = None,
    ) -> logging.Logger:
        """
        Install the console handler and an optional file handler

        Args:
            level: Log level name or number
            log_file: Also write records (with timestamps) to this file
            use_colors: Color console records when stderr is a terminal
            stream: Console stream (Default: sys.stderr)

        Returns:
            The ``rvgadget`` logger
        """
        cls.reset()
        root = cls.root()
        root.setLevel(_to_level(level))

        console = logging.StreamHandler(stream if stream is not None else sys.stderr)
        console.setFormatter(ColoredFormatter(stream=console.stream, use_colors=use_colors))
        cls._install(console)

        if log_file:
            log_file = Path(log_file)
            log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_file, encoding='utf-8')
            file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
            cls._install(file_handler)

        return root

    @classmethod
    def reset(cls) -> None:
        """Remove the handlers installed by ``setup``"""
        root = cls.root()
        for handler in cls._handlers:
            root.removeHandler(handler)
            handler.close()
        cls._handlers = []

    @classmethod
    def _install(cls, handler: logging.Handler) -> None:
        cls.root().addHandler(handler)
        cls._handlers.append(handler)

    @classmethod
    def set_level(cls, level: Union[str, int]) -> None:
        cls.root().setLevel(_to_level(level))


def get_logger(name: str) -> logging.Logger:
    """Logger for ``name`` under the ``rvgadget`` hierarchy"""
    if name != ROOT_LOGGER_NAME and not name.startswith(ROOT_LOGGER_NAME + "."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)


def setup_logging(level: Union[str, int] = "INFO", log_file: Optional[str] = None,
                  use_colors: bool = True) -> logging.Logger:
    """Shortcut for RVGadgetLogger.setup"""
    return RVGadgetLogger.setup(
        level=level,
        log_file=Path(log_file) if log_file else None,
        use_colors=use_colors,
    )


def setup_logging_from_config(config=None) -> logging.Logger:
    """
    Configure logging from an RVGadgetConfig

    ``config.color`` also governs colored log records, so ``--no-color``
    yields plain stderr.
    """
    if config is None:
        # Deferred so importing logging does not read the default config file
        from .config import default_config
        config = default_config

    return setup_logging(
        level=config.log_level,
        log_file=str(config.log_file) if config.log_file else None,
        use_colors=config.color,
    )


logging.getLogger(ROOT_LOGGER_NAME).addHandler(logging.NullHandler())
