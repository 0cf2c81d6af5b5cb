"""Test logging setup"""

import io
import logging

import pytest
from colorama import Fore

from musix.core.logger import (
    ROOT_LOGGER_NAME,
    ColoredFormatter,
    get_logger,
    parse_size,
    setup_logging,
    shutdown_logging,
)


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    shutdown_logging()


class TestLogger:
    """Test the musix logger configuration"""

    def test_console_output(self):
        """Test console logging"""
        stream = io.StringIO()
        setup_logging(level="INFO", colored_output=False, stream=stream)

        get_logger("musix.spotify.client").info("hello")
        get_logger("musix.spotify.client").debug("hidden")

        output = stream.getvalue()
        assert "INFO: hello" in output
        assert "hidden" not in output

    def test_colored_output(self):
        """Test colored console output"""
        stream = io.StringIO()
        setup_logging(level="WARNING", stream=stream)

        get_logger("musix.core.http").warning("careful")

        assert Fore.YELLOW in stream.getvalue()

    def test_file_output_records_debug(self, temp_dir):
        """Test the log file records debug messages"""
        log_file = temp_dir / "logs" / "musix.log"
        setup_logging(level="ERROR", log_file=log_file, console_output=False)

        get_logger("musix.spotify.auth").debug("token exchange")
        shutdown_logging()

        content = log_file.read_text(encoding="utf-8")
        assert "DEBUG" in content
        assert "token exchange" in content

    def test_setup_twice_replaces_handlers(self):
        """Test repeated setup does not duplicate handlers"""
        setup_logging(stream=io.StringIO())
        logger = setup_logging(stream=io.StringIO())

        assert len(logger.handlers) == 1

    def test_shutdown_restores_propagation(self):
        """Test shutdown restores the logger"""
        setup_logging(stream=io.StringIO())
        shutdown_logging()

        logger = logging.getLogger(ROOT_LOGGER_NAME)
        assert logger.handlers == []
        assert logger.propagate

    def test_noisy_libraries_quieted(self):
        """Test third-party loggers are quieted"""
        setup_logging(stream=io.StringIO())

        assert logging.getLogger("aiohttp").level == logging.WARNING

    def test_formatter_leaves_record_untouched(self):
        """Test the colored formatter does not mutate records"""
        record = logging.LogRecord("musix", logging.ERROR, __file__, 1, "boom", None, None)

        ColoredFormatter().format(record)

        assert record.levelname == "ERROR"


class TestParseSize:
    """Test human readable size parsing"""

    @pytest.mark.parametrize("text,expected", [
        ("10MB", 10 * 1024 * 1024),
        ("512KB", 512 * 1024),
        ("1GB", 1024 ** 3),
        ("100B", 100),
        ("2048", 2048),
        (" 1.5 mb ", int(1.5 * 1024 * 1024)),
    ])
    def test_sizes(self, text, expected):
        """Test log size parsing"""
        assert parse_size(text) == expected

    def test_invalid(self):
        """Test invalid log sizes"""
        with pytest.raises(ValueError):
            parse_size("lots")
