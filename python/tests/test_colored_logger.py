"""
Tests for the colored logging helpers.
"""

import io
import logging
import unittest

from colored_logger import (
    PROGRESS_LEVEL,
    SUCCESS_LEVEL,
    ColoredFormatter,
    get_colored_logger,
    setup_colored_logging,
)


class TtyStream(io.StringIO):
    def isatty(self):
        return True


class TestColoredLogger(unittest.TestCase):
    def setUp(self):
        self.root = logging.getLogger()
        self.saved_handlers = self.root.handlers[:]
        self.saved_level = self.root.level

    def tearDown(self):
        self.root.handlers = self.saved_handlers
        self.root.setLevel(self.saved_level)

    def test_custom_levels_are_registered(self):
        self.assertEqual(logging.getLevelName(PROGRESS_LEVEL), "PROGRESS")
        self.assertEqual(logging.getLevelName(SUCCESS_LEVEL), "SUCCESS")

    def test_plain_output_when_not_a_terminal(self):
        stream = io.StringIO()
        setup_colored_logging(logging.INFO, stream=stream)

        get_colored_logger("zip_ops.test").success("Archive written: %s", "a.zip")

        output = stream.getvalue()
        self.assertIn("SUCCESS - Archive written: a.zip", output)
        self.assertNotIn("\033[", output)

    def test_colors_on_terminal(self):
        stream = TtyStream()
        setup_colored_logging(logging.INFO, stream=stream)

        get_colored_logger("zip_ops.test").error("Attempt %d failed", 1)

        output = stream.getvalue()
        self.assertIn(ColoredFormatter.COLORS["ERROR"], output)
        self.assertIn("Attempt 1 failed", output)

    def test_level_filtering(self):
        stream = io.StringIO()
        setup_colored_logging(logging.WARNING, stream=stream)
        logger = get_colored_logger("zip_ops.test")

        logger.progress("hidden")
        logger.notice("shown")

        self.assertNotIn("hidden", stream.getvalue())
        self.assertIn("NOTICE - shown", stream.getvalue())

    def test_setup_replaces_handlers(self):
        setup_colored_logging(stream=io.StringIO())
        setup_colored_logging(stream=io.StringIO())

        self.assertEqual(len(self.root.handlers), 1)


if __name__ == "__main__":
    unittest.main()
