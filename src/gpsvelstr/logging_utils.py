"""Logging configuration and error reporting helpers."""

from __future__ import annotations

from collections.abc import Callable
import logging
from pathlib import Path
from typing import Any, Optional, TypeVar, Union

from gpsvelstr.errors import GpsvelstrError

DEFAULT_LOGGER_NAME = "gpsvelstr"
DEFAULT_LOG_LEVEL = logging.INFO
DEFAULT_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_T = TypeVar("_T")


def configure_logging(
    level: int = DEFAULT_LOG_LEVEL,
    *,
    logger_name: str = DEFAULT_LOGGER_NAME,
    fmt: str = DEFAULT_LOG_FORMAT,
    force: bool = False,
    log_file: Optional[Union[str, Path]] = None,
) -> logging.Logger:
    """Configure stderr logging, optionally teeing records into ``log_file``."""
    logging.basicConfig(level=level, format=fmt, force=force)
    logger = logging.getLogger(logger_name)
    logger.setLevel(level)
    if log_file is not None:
        path = Path(log_file)
        already = any(
            isinstance(handler, logging.FileHandler)
            and Path(handler.baseFilename) == path.resolve()
            for handler in logger.handlers
        )
        if not already:
            handler = logging.FileHandler(path, mode="a", encoding="utf-8")
            handler.setFormatter(logging.Formatter(fmt))
            logger.addHandler(handler)
    return logger


def get_user_message(exc: BaseException) -> str:
    if isinstance(exc, GpsvelstrError):
        return exc.user_message
    return f"Unexpected error: {exc}"


def log_exception(
    logger: logging.Logger,
    exc: BaseException,
    *,
    show_traceback: bool = False,
) -> str:
    user_message = get_user_message(exc)
    logger.error(user_message)
    if show_traceback:
        logger.error("Detailed traceback:", exc_info=exc)
    else:
        logger.debug("Detailed traceback:", exc_info=exc)
    return user_message


def run_with_error_handling(
    func: Callable[..., _T],
    *args: Any,
    logger: logging.Logger,
    show_traceback: bool = False,
    **kwargs: Any,
) -> _T:
    try:
        return func(*args, **kwargs)
    except Exception as exc:
        log_exception(logger, exc, show_traceback=show_traceback)
        raise


__all__ = [
    "DEFAULT_LOGGER_NAME",
    "DEFAULT_LOG_LEVEL",
    "DEFAULT_LOG_FORMAT",
    "configure_logging",
    "get_user_message",
    "log_exception",
    "run_with_error_handling",
]
