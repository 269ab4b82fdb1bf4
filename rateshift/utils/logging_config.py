# rateshift/utils/logging_config.py

"""
Logging setup for rateshift: Rich console output at the CLI verbosity plus an
optional log file described by `LoggingConfig` and `PathsConfig`.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

from rich.logging import RichHandler

from rateshift.config import RateShiftConfig
from rateshift.version import __version__

PACKAGE_LOGGER = "rateshift"

# CLI verbosity (-q / default / -v / -vv) -> console level
VERBOSITY_MAP = {
    -1: logging.CRITICAL + 10,
    0: logging.WARNING,
    1: logging.INFO,
    2: logging.DEBUG,
}


def _reset_handlers(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def _console_handler(level: int) -> RichHandler:
    handler = RichHandler(
        level=level,
        show_time=False,
        show_path=False,
        rich_tracebacks=True,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    return handler


def _file_handler(config: RateShiftConfig) -> logging.FileHandler:
    """Opens the log file named by `logging.log_filename_template` under `paths.log_directory`."""
    log_dir = config.paths.log_directory
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / config.logging.log_filename_template.format(timestamp=datetime.now())

    handler = logging.FileHandler(log_path, encoding='utf-8')
    handler.setLevel(config.logging.log_level_file)
    handler.setFormatter(logging.Formatter(config.logging.log_format))
    return handler


def setup_logging(config: RateShiftConfig, verbosity: int = 0) -> Optional[Path]:
    """
    Configures the 'rateshift' logger. Safe to call repeatedly.

    Args:
        config: Loaded configuration.
        verbosity: -1 quiet, 0 warnings, 1 info, 2 debug (higher counts as debug).

    Returns:
        Path of the log file, or None if file logging is disabled or failed.
    """
    console_level = VERBOSITY_MAP.get(min(verbosity, 2), logging.INFO)

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(logging.DEBUG)
    package_logger.propagate = False
    _reset_handlers(package_logger)

    if console_level <= logging.CRITICAL:
        package_logger.addHandler(_console_handler(console_level))

    init_logger = logging.getLogger(f"{PACKAGE_LOGGER}.init")
    log_path: Optional[Path] = None
    if config.logging.log_file_enabled:
        try:
            file_handler = _file_handler(config)
        except (OSError, ValueError, KeyError) as e:
            # Bad directory or filename template: console logging only
            logging.getLogger(f"{PACKAGE_LOGGER}.error").error(
                f"Failed to configure file logging: {e}", exc_info=True
            )
        else:
            package_logger.addHandler(file_handler)
            log_path = Path(file_handler.baseFilename)
            init_logger.info(f"--- rateshift v{__version__} log start ---")
            init_logger.info(
                f"Levels: file={config.logging.log_level_file}, "
                f"console={logging.getLevelName(console_level)}"
            )
            init_logger.debug(f"Configuration: {config.model_dump()}")

    init_logger.info(f"rateshift v{__version__} initialized.")
    init_logger.info(f"Logging to file: {log_path}" if log_path else "File logging is disabled.")
    return log_path
