#!/usr/bin/env -S python3 -B -u
"""
Test suite for logging setup.

Checks that the -v count reaches both the structured loggers and the
plain module loggers used by the config loader and the stats aggregator.
"""

import io
import logging
import unittest
from contextlib import redirect_stderr

from reachtest.core import structured_logging
from reachtest.core.config_loader import ReachTestConfig
from reachtest.core.models import Classification
from reachtest.core.stats import StatsAggregator
from reachtest.core.structured_logging import (
    PACKAGE_LOGGER, StructuredLogger, get_verbose_level, level_for, setup_logging,
)


class TestSetupLogging(unittest.TestCase):

    def tearDown(self):
        package_logger = logging.getLogger(PACKAGE_LOGGER)
        for handler in list(package_logger.handlers):
            package_logger.removeHandler(handler)
        package_logger.setLevel(logging.NOTSET)
        package_logger.propagate = True
        structured_logging.setup_logging._verbose_level = 0

    def capture(self, verbose_level, action):
        stderr = io.StringIO()
        with redirect_stderr(stderr):
            setup_logging(verbose_level)
            action()
        return stderr.getvalue()

    def test_package_logger_name(self):
        self.assertEqual(PACKAGE_LOGGER, 'reachtest')

    def test_levels(self):
        self.assertEqual(level_for(0), logging.ERROR)
        self.assertEqual(level_for(1), logging.INFO)
        self.assertEqual(level_for(2), logging.DEBUG)
        self.assertEqual(level_for(3), logging.DEBUG)

    def test_single_handler_after_repeated_setup(self):
        setup_logging(1)
        package_logger = setup_logging(2)
        self.assertEqual(len(package_logger.handlers), 1)
        self.assertEqual(package_logger.level, logging.DEBUG)
        self.assertEqual(get_verbose_level(), 2)

    def test_config_diagnostics_follow_verbosity(self):
        def load():
            ReachTestConfig(load_files=False)

        self.assertIn("reachtest config loaded", self.capture(2, load))
        self.assertNotIn("reachtest config loaded", self.capture(0, load))

    def test_stats_diagnostics_follow_verbosity(self):
        def record():
            stats = StatsAggregator()
            stats.start_file("a.rules")
            stats.record_path_result(Classification.ok())

        self.assertIn("for a.rules", self.capture(2, record))
        self.assertEqual(self.capture(1, record), "")

    def test_structured_logger_gating(self):
        def emit():
            logger = StructuredLogger('reachtest.tests.gating', verbose_level=1)
            logger.info("progress line", host="web1")
            logger.debug("debug line")

        output = self.capture(1, emit)
        self.assertIn("progress line", output)
        self.assertNotIn("host=web1", output)
        self.assertNotIn("debug line", output)

    def test_context_at_debug_level(self):
        def emit():
            logger = StructuredLogger('reachtest.tests.context', verbose_level=2)
            logger.log_command_execution(["nc", "-z", "db1", "3306"], host="web1", success=True, exit_code=0)

        output = self.capture(2, emit)
        self.assertIn("[web1] Executing: nc -z db1 3306 - SUCCESS | exit_code=0", output)

    def test_trace_only_at_level_three(self):
        def emit():
            StructuredLogger('reachtest.tests.trace', verbose_level=2).trace("hidden")
            StructuredLogger('reachtest.tests.trace', verbose_level=3).trace("shown", lines=2)

        output = self.capture(3, emit)
        self.assertNotIn("hidden", output)
        self.assertIn('[TRACE] shown | {"lines": 2}', output)


if __name__ == '__main__':
    unittest.main()
