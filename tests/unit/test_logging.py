"""Unit tests for logging infrastructure."""
import pytest
import logging
from pathlib import Path
from abwalk.infrastructure.logging import setup_logging


@pytest.fixture(autouse=True)
def reset_root_logger():
    yield
    root = logging.getLogger()
    for handler in root.handlers[:]:
        handler.close()
        root.removeHandler(handler)


def flush(logger):
    for handler in logging.getLogger().handlers:
        handler.flush()


def test_setup_logging_creates_log_file(tmp_path):
    """Test that setup_logging creates abwalk.log in the scanned folder."""
    logger = setup_logging(tmp_path, debug=False)

    assert isinstance(logger, logging.Logger)
    assert logger.name == "abwalk"
    assert (tmp_path / "abwalk.log").exists()


def test_setup_logging_levels(tmp_path):
    logger = setup_logging(tmp_path, debug=False)
    assert logger.getEffectiveLevel() == logging.INFO

    logger = setup_logging(tmp_path, debug=True)
    assert logger.getEffectiveLevel() == logging.DEBUG


def test_setup_logging_custom_path(tmp_path):
    """Test that log_path overrides the folder and creates its parent."""
    log_file = tmp_path / "logs" / "run.log"
    logger = setup_logging(tmp_path / "videos", log_path=log_file)
    logger.info("custom path message")
    flush(logger)

    assert "custom path message" in log_file.read_text()
    assert not (tmp_path / "videos").exists()


def test_setup_logging_format(tmp_path):
    """Test that log format includes timestamp and level."""
    logger = setup_logging(tmp_path, debug=False)
    logger.info("Info message")
    logger.warning("Warning message")
    flush(logger)

    content = (tmp_path / "abwalk.log").read_text()
    assert " - INFO - Info message" in content
    assert " - WARNING - Warning message" in content


def test_setup_logging_debug_messages(tmp_path):
    """Test that debug messages only appear in debug mode."""
    logger_normal = setup_logging(tmp_path, debug=False)
    logger_normal.debug("Debug message in normal mode")
    flush(logger_normal)

    log_file = tmp_path / "abwalk.log"
    assert "Debug message in normal mode" not in log_file.read_text()

    logger_debug = setup_logging(tmp_path, debug=True)
    logger_debug.debug("Debug message in debug mode")
    flush(logger_debug)

    assert "Debug message in debug mode" in log_file.read_text()


def test_module_loggers_reach_log_file(tmp_path):
    setup_logging(tmp_path)
    module_logger = logging.getLogger("abwalk.pipeline.retry")
    module_logger.info("from a module logger")
    flush(module_logger)

    assert "from a module logger" in (tmp_path / "abwalk.log").read_text()


def test_setup_logging_appends_across_calls(tmp_path):
    setup_logging(tmp_path).info("first run")
    setup_logging(tmp_path).info("second run")
    flush(None)

    content = (tmp_path / "abwalk.log").read_text()
    assert "first run" in content
    assert "second run" in content
