"""
Unit tests for the component logger and its decorators
"""
import unittest
import sys
import os

# Add project root to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '..')))

from core.logger import Logger, LogLevel, logger, logged, log_aware


@log_aware("Sample")
class _Sample:
    def __init__(self, factor):
        self.factor = factor

    @logged(LogLevel.INFO, log_args=True, log_result=True)
    def scale(self, value):
        return value * self.factor

    @logged(LogLevel.INFO)
    def explode(self):
        raise RuntimeError("bad input")


class TestLogger(unittest.TestCase):

    def setUp(self):
        self.messages = []
        self._previous_level = logger._level
        logger.set_output_handler(self.messages.append)
        logger.set_enabled(True)
        logger.set_level(LogLevel.DEBUG)

    def tearDown(self):
        logger.set_output_handler(None)
        logger.set_enabled(True)
        logger.set_level(self._previous_level)

    def test_singleton(self):
        self.assertIs(Logger.get_instance(), logger)

    def test_message_format_carries_level_and_component(self):
        logger.warning("depth missing", "DepthMapper")

        self.assertEqual(len(self.messages), 1)
        self.assertIn("WARNING [DepthMapper] depth missing", self.messages[0])

    def test_level_filtering(self):
        logger.set_level(LogLevel.WARNING)

        logger.debug("hidden")
        logger.info("hidden too")
        logger.error("shown")

        self.assertEqual(len(self.messages), 1)
        self.assertIn("shown", self.messages[0])

    def test_disabled_logger_is_silent(self):
        logger.set_enabled(False)
        logger.error("nothing")
        self.assertEqual(self.messages, [])

    def test_unknown_level_rejected(self):
        with self.assertRaises(ValueError):
            logger.set_level("VERBOSE")

    def test_log_aware_injects_component_methods(self):
        sample = _Sample(2)
        sample.info("ready")

        self.assertEqual(sample._component_name, "Sample")
        self.assertEqual(_Sample._component_name, "Sample")
        self.assertIn("[Sample] ready", self.messages[0])

    def test_logged_traces_arguments_and_result(self):
        result = _Sample(3).scale(4)

        self.assertEqual(result, 12)
        self.assertIn("[Sample] scale(4)", self.messages[0])
        self.assertIn("scale() -> 12", self.messages[1])

    def test_logged_reports_and_reraises_errors(self):
        with self.assertRaises(RuntimeError):
            _Sample(1).explode()

        self.assertTrue(any("ERROR [Sample] explode() failed: bad input" in m for m in self.messages))


if __name__ == '__main__':
    unittest.main()
