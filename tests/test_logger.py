"""
Tests for structured logging setup.
"""

import logging

from utilities.logger import get_logger, setup_logging


class TestLogging:
    """Test cases for setup_logging and get_logger."""

    def test_log_file_receives_events(self, tmp_path):
        log_file = tmp_path / "logs" / "api.log"
        root = logging.getLogger()
        handlers_before = list(root.handlers)

        try:
            setup_logging(log_level="WARNING", log_format="json", log_file=log_file)
            get_logger("tests.logging").warning("Duplicate ISBN rejected", isbn="9780553380163")
        finally:
            for handler in root.handlers[:]:
                if handler not in handlers_before:
                    handler.close()
                    root.removeHandler(handler)

        contents = log_file.read_text()
        assert "Duplicate ISBN rejected" in contents
        assert "9780553380163" in contents

    def test_get_logger_is_bound(self):
        logger = get_logger("tests.logging")

        assert hasattr(logger, "info")
        assert hasattr(logger, "bind")
