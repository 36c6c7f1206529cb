"""Logging configuration and setup utilities."""

import logging
import logging.handlers
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional, Union

if TYPE_CHECKING:
    from ..config.settings import ICSForgeSettings

ROOT_LOGGER_NAME = "icsforge"

# Custom log level between INFO(20) and DEBUG(10)
VERBOSE = 15
logging.addLevelName(VERBOSE, "VERBOSE")

CONSOLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s"


def verbose(self: logging.Logger, message: Any, *args: Any, **kwargs: Any) -> None:
    """Log at the VERBOSE level.

    Example:
        >>> logger = logging.getLogger(__name__)
        >>> logger.verbose("Expanded %d alarm profiles", count)
    """
    if self.isEnabledFor(VERBOSE):
        self._log(VERBOSE, message, args, **kwargs)


# Add verbose method to all Logger instances
logging.Logger.verbose = verbose  # type: ignore[attr-defined]


def get_log_level(level_name: str) -> int:
    """Get numeric log level from string name, including custom VERBOSE level.

    Args:
        level_name: Log level name (DEBUG, VERBOSE, INFO, WARNING, ERROR, CRITICAL)

    Returns:
        Numeric log level value

    Raises:
        ValueError: If the level name is not recognized

    Example:
        >>> get_log_level("verbose")
        15
    """
    name = (level_name or "").strip().upper()
    if name == "VERBOSE":
        return VERBOSE
    level = getattr(logging, name, None)
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {level_name!r}")
    return level


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    log_dir: Optional[Union[str, Path]] = None,
) -> logging.Logger:
    """Configure the ``icsforge`` logger hierarchy.

    Args:
        log_level: Console log level name
        log_file: Optional log file name; enables a rotating file handler
        log_dir: Optional directory for log_file

    Returns:
        The configured package root logger
    """
    numeric_level = get_log_level(log_level)

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(min(numeric_level, logging.DEBUG) if log_file else numeric_level)

    # Clear any existing handlers
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt="%H:%M:%S"))
    logger.addHandler(console_handler)

    if log_file:
        if log_dir:
            directory = Path(log_dir)
            directory.mkdir(parents=True, exist_ok=True)
            log_path = directory / log_file
        else:
            log_path = Path(log_file)

        # Rotate at 10MB
        file_handler = logging.handlers.RotatingFileHandler(
            log_path, maxBytes=10 * 1024 * 1024, backupCount=5, encoding="utf-8"
        )
        file_handler.setLevel(logging.DEBUG)  # File logs everything
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        logger.addHandler(file_handler)

        logger.info(f"Logging to file: {log_path}")

    # Set third-party library log levels to reduce noise
    logging.getLogger("pytz").setLevel(logging.WARNING)
    logging.getLogger("icalendar").setLevel(logging.WARNING)

    logger.debug(f"Logging initialized at {log_level} level")
    return logger


def setup_logging_from_settings(settings: "ICSForgeSettings") -> logging.Logger:
    """Configure logging from ``log_level``/``log_file`` settings.

    Relative log files are placed in the config directory.
    """
    log_dir = None
    if settings.log_file and not Path(settings.log_file).is_absolute():
        log_dir = settings.config_dir
    return setup_logging(settings.log_level, settings.log_file, log_dir)


def get_logger(name: str) -> logging.Logger:
    """Get a logger namespaced under ``icsforge.``.

    Example:
        >>> get_logger("batch").name
        'icsforge.batch'
    """
    if name == ROOT_LOGGER_NAME or name.startswith(f"{ROOT_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
