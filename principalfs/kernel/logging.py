"""Centralized logging configuration for principalfs using Loguru.

Every module obtains its logger through :func:`get_logger`; the first call
configures a default sink from the ``PRINCIPALFS_LOG_LEVEL`` and
``PRINCIPALFS_LOG_FORMAT`` environment variables unless
:func:`configure_logging` has already been called.

Examples
--------
Basic usage:

>>> from principalfs.kernel.logging import get_logger
>>> logger = get_logger(__name__)
>>> logger.debug("Resolved {path}", path="/system/userManager")

Configure logging globally::

    from principalfs.kernel.logging import configure_logging
    configure_logging(level="DEBUG", format="rich")
"""

from __future__ import annotations

import os
import sys
from contextlib import suppress
from functools import lru_cache
from pathlib import Path
from typing import TYPE_CHECKING, Literal

from loguru import logger
from rich.logging import RichHandler

if TYPE_CHECKING:
    from loguru import Logger

LogLevel = Literal["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
LogFormat = Literal["console", "json", "structured", "rich"]

_CURRENT_CONFIG: dict | None = None
_HANDLER_IDS: list[int] = []


def configure_logging(
    level: LogLevel = "INFO",
    format: LogFormat = "structured",
    output_file: str | Path | None = None,
    use_color: bool = True,
    include_timestamp: bool = True,
    force_reconfigure: bool = False,
    backtrace: bool = True,
    diagnose: bool = False,
) -> None:
    """Configure global logging for principalfs.

    Calling this repeatedly with the same settings is a no-op; handlers added
    by a previous call are replaced, handlers added by other code are left
    alone.

    Parameters
    ----------
    level : LogLevel, default="INFO"
        Minimum log level to output
    format : LogFormat, default="structured"
        Output format:
        - "console": plain single-line records
        - "json": serialized records for log aggregation
        - "structured": colored records with module/function/line
        - "rich": records rendered by ``rich.logging.RichHandler``
    output_file : str | Path | None, default=None
        Optional file that additionally receives JSON records
    use_color : bool, default=True
        Use ANSI colors in the structured format (disabled for non-TTY stderr)
    include_timestamp : bool, default=True
        Include timestamp in log output
    force_reconfigure : bool, default=False
        Reconfigure even if the settings are unchanged
    backtrace : bool, default=True
        Extend tracebacks beyond the catching frame
    diagnose : bool, default=False
        Show variable values in tracebacks (may leak property values)
    """
    global _CURRENT_CONFIG

    current_config = {
        "level": level,
        "format": format,
        "output_file": str(output_file) if output_file else None,
        "use_color": use_color,
        "include_timestamp": include_timestamp,
        "backtrace": backtrace,
        "diagnose": diagnose,
    }

    if not force_reconfigure and current_config == _CURRENT_CONFIG:
        return

    # loguru's own stderr handler (id 0) would duplicate every record
    if _CURRENT_CONFIG is None:
        with suppress(ValueError):
            logger.remove(0)
    for handler_id in _HANDLER_IDS:
        with suppress(ValueError):
            logger.remove(handler_id)
    _HANDLER_IDS.clear()

    match format:
        case "rich":
            rich_handler = RichHandler(
                rich_tracebacks=True,
                markup=False,
                show_time=include_timestamp,
                show_level=True,
                show_path=True,
            )
            handler_id = logger.add(
                sink=rich_handler,
                level=level,
                format="{message}",
                backtrace=backtrace,
                diagnose=diagnose,
            )
        case "json":
            handler_id = logger.add(
                sink=sys.stderr,
                level=level,
                serialize=True,
                backtrace=backtrace,
                diagnose=diagnose,
            )
        case "structured":
            colorize = use_color and sys.stderr.isatty()
            timestamp_fmt = (
                "<green>{time:YYYY-MM-DD HH:mm:ss}</green> " if include_timestamp else ""
            )
            color_level = "<level>{level: <8}</level>" if colorize else "{level: <8}"
            structured_format = (
                f"{timestamp_fmt}[{color_level}]"
                "<cyan>{name}:{function}:{line}</cyan> | <level>{message}</level>"
            )
            handler_id = logger.add(
                sink=sys.stderr,
                level=level,
                format=structured_format,
                colorize=colorize,
                backtrace=backtrace,
                diagnose=diagnose,
            )
        case _:
            timestamp_fmt = "{time:YYYY-MM-DD HH:mm:ss} " if include_timestamp else ""
            handler_id = logger.add(
                sink=sys.stderr,
                level=level,
                format=f"{timestamp_fmt}{{level: <8}} | {{name}} | {{message}}",
                colorize=False,
                backtrace=backtrace,
                diagnose=diagnose,
            )
    _HANDLER_IDS.append(handler_id)

    if output_file:
        output_path = Path(output_file)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        handler_id = logger.add(
            sink=output_path,
            level=level,
            serialize=True,
            rotation="10 MB",
            retention="1 week",
            backtrace=backtrace,
            diagnose=diagnose,
        )
        _HANDLER_IDS.append(handler_id)

    _CURRENT_CONFIG = current_config


@lru_cache(maxsize=256)
def get_logger(name: str) -> Logger:
    """Get a logger bound to ``name`` (cached per name).

    Parameters
    ----------
    name : str
        Logger name, typically ``__name__`` of the calling module

    Returns
    -------
    loguru.Logger
        Logger instance bound with ``module=name``
    """
    _ensure_configured()
    return logger.bind(module=name)


def reset_logging() -> None:
    """Remove principalfs handlers and forget the current configuration."""
    global _CURRENT_CONFIG

    for handler_id in _HANDLER_IDS:
        with suppress(ValueError):
            logger.remove(handler_id)
    _HANDLER_IDS.clear()
    _CURRENT_CONFIG = None


def _ensure_configured() -> None:
    """Apply the environment-driven default configuration once."""
    if _CURRENT_CONFIG is None:
        level = os.getenv("PRINCIPALFS_LOG_LEVEL", "WARNING").upper()
        format_type = os.getenv("PRINCIPALFS_LOG_FORMAT", "structured").lower()
        configure_logging(level=level, format=format_type)  # type: ignore[arg-type]


__all__ = ["LogFormat", "LogLevel", "configure_logging", "get_logger", "reset_logging"]
