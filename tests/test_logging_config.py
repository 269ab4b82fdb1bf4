# tests/test_logging_config.py

"""
Tests for rateshift.utils.logging_config.
"""

import logging
from pathlib import Path

import pytest
from rich.logging import RichHandler

from rateshift.config import RateShiftConfig
from rateshift.utils.logging_config import setup_logging

@pytest.fixture(autouse=True)
def reset_package_logger():
    yield
    package_logger = logging.getLogger("rateshift")
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()
    package_logger.propagate = True

def test_file_logging(tmp_path: Path):
    config = RateShiftConfig(paths={"log_directory": tmp_path / "logs"})
    log_file = setup_logging(config, verbosity=0)
    assert log_file is not None
    assert log_file.parent == tmp_path / "logs"
    logging.getLogger("rateshift.test").debug("written to file")
    for handler in logging.getLogger("rateshift").handlers:
        handler.flush()
    assert "written to file" in log_file.read_text(encoding="utf-8")

@pytest.mark.parametrize("verbosity, level", [(0, logging.WARNING), (1, logging.INFO), (2, logging.DEBUG), (5, logging.DEBUG)])
def test_console_level_follows_verbosity(verbosity, level):
    config = RateShiftConfig(logging={"log_file_enabled": False})
    assert setup_logging(config, verbosity=verbosity) is None
    handlers = [h for h in logging.getLogger("rateshift").handlers if isinstance(h, RichHandler)]
    assert len(handlers) == 1
    assert handlers[0].level == level

def test_quiet_has_no_console_handler():
    config = RateShiftConfig(logging={"log_file_enabled": False})
    setup_logging(config, verbosity=-1)
    assert not [h for h in logging.getLogger("rateshift").handlers if isinstance(h, RichHandler)]

def test_setup_is_idempotent():
    config = RateShiftConfig(logging={"log_file_enabled": False})
    setup_logging(config, verbosity=1)
    setup_logging(config, verbosity=1)
    assert len(logging.getLogger("rateshift").handlers) == 1

def test_bad_filename_template_keeps_console_only(tmp_path: Path):
    config = RateShiftConfig(
        paths={"log_directory": tmp_path / "logs"},
        logging={"log_filename_template": "run_{missing}.log"},
    )
    assert setup_logging(config, verbosity=0) is None
    handlers = logging.getLogger("rateshift").handlers
    assert len(handlers) == 1
    assert isinstance(handlers[0], RichHandler)
