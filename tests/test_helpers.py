"""
Tests for shared utility helpers.
"""

import logging
from datetime import datetime


class TestSetupLogging:
    def test_console_and_file_handlers(self, tmp_path):
        from src.utils.helpers import setup_logging

        log_file = tmp_path / "run.log"
        logger = setup_logging("relief_test_logger", level="WARNING", log_file=log_file)
        logger.debug("written to file only")

        handler_types = {type(h) for h in logger.handlers}
        assert logging.FileHandler in handler_types
        assert logging.StreamHandler in handler_types
        for handler in logger.handlers:
            handler.flush()
        assert "written to file only" in log_file.read_text()

        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()


class TestHelpers:
    def test_timestamp_format(self):
        from src.utils.helpers import timestamp

        assert timestamp(datetime(2025, 1, 31, 14, 25, 1)) == "20250131_142501"

    def test_collapse_whitespace(self):
        from src.utils.helpers import collapse_whitespace

        assert collapse_whitespace("  a \t b\n c ") == "a b c"

    def test_ensure_dir(self, tmp_path):
        from src.utils.helpers import ensure_dir

        path = ensure_dir(tmp_path / "a" / "b")

        assert path.is_dir()
