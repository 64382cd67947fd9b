"""Logger configuration and convenience helpers."""

from __future__ import annotations

import inspect
import logging
import sys
import time
from functools import wraps

_DEFAULT_LOGGER_NAME = "blindspots"
_DEFAULT_LOG_LEVEL = logging.INFO
_DEFAULT_FORMATTER = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
_DEFAULT_HANDLER = logging.StreamHandler(sys.stdout)
_DEFAULT_HANDLER.setFormatter(_DEFAULT_FORMATTER)


def _configure_logger(logger: logging.Logger, level: int) -> None:
    """
    Configures a logger with the specified logging level and default handler.

    If the logger's level is not set, this function sets it to the provided level.
    It also ensures that a default handler is attached if no handlers are present,
    and disables propagation to ancestor loggers.

    Parameters
    ----------
    logger : logging.Logger
        The logger instance to configure.
    level : int
        The logging level to set if the logger's level is not already set.

    Examples
    --------
    >>> import logging
    >>> from blindspots.utils.logger import _configure_logger
    >>> logger = logging.getLogger("my_logger")
    >>> _configure_logger(logger, logging.INFO)
    >>> logger.info("This is an info message.")
    """
    if logger.level == logging.NOTSET:
        logger.setLevel(level)
    if not logger.handlers:
        logger.addHandler(_DEFAULT_HANDLER)
    logger.propagate = False


def get_logger(name: str | None = None, level: int = _DEFAULT_LOG_LEVEL) -> logging.Logger:
    """Return a configured logger for the given name."""
    logger = logging.getLogger(name or _DEFAULT_LOGGER_NAME)
    _configure_logger(logger, level)
    return logger


def resolve_level(value: str | int | None) -> int:
    """Translate a level name such as ``"debug"`` into a logging constant."""
    if isinstance(value, int):
        return value
    if not value:
        return _DEFAULT_LOG_LEVEL
    resolved = logging.getLevelName(value.strip().upper())
    return resolved if isinstance(resolved, int) else _DEFAULT_LOG_LEVEL


def set_level(level: int | str, logger_names: list[str] | None = None) -> None:
    """Set the log level for one or more logger names."""
    names = logger_names or [_DEFAULT_LOGGER_NAME]
    resolved = resolve_level(level)
    for name in names:
        logging.getLogger(name).setLevel(resolved)
    for name in list(logging.root.manager.loggerDict):
        if name.startswith(f"{_DEFAULT_LOGGER_NAME}."):
            logging.getLogger(name).setLevel(resolved)


class Logger(logging.Logger):
    """Custom Logger class for blindspots."""

    def __init__(self, name: str = _DEFAULT_LOGGER_NAME, level: int = _DEFAULT_LOG_LEVEL) -> None:
        super().__init__(name, level)
        _configure_logger(self, level)


def _log_call(logger: logging.Logger, function_name: str, args: tuple, kwargs: dict) -> None:
    logger.debug("Function: %s", function_name)
    for i, arg in enumerate(args):
        logger.debug(" %s. %s (%s)", i, arg, type(arg).__name__)
    for key, value in kwargs.items():
        logger.debug(" - %s (%s): %s", key, type(value).__name__, value)
    logger.debug("Starting %s", function_name)


def funclogger(func):
    """Decorator to add logging to functions:

    Logs the function path and name.
    Logs the start and end of the function execution.
    Loops through args and kwargs to log their values.
    Works for both plain functions and coroutine functions.
    """

    function_name = func.__qualname__
    function_path = f"{func.__module__}.{function_name}".replace("<", "").replace(">", "")

    if inspect.iscoroutinefunction(func):

        @wraps(func)
        async def async_wrapper(*args, **kwargs):
            logger = get_logger(function_path)
            _log_call(logger, function_name, args, kwargs)
            start_time = time.time()
            result = await func(*args, **kwargs)
            logger.debug("Finished %s in %.4f seconds", function_name, time.time() - start_time)
            return result

        return async_wrapper

    @wraps(func)
    def wrapper(*args, **kwargs):
        logger = get_logger(function_path)
        _log_call(logger, function_name, args, kwargs)
        start_time = time.time()
        result = func(*args, **kwargs)
        logger.debug("Finished %s in %.4f seconds", function_name, time.time() - start_time)
        logger.debug("Return Value: %s (%s)", result, type(result).__name__)
        return result

    return wrapper
