"""
Tests for the package logger helpers.
"""

import io
import json
import logging
import unittest

from practice_core.common.logger import (
    JsonFormatter,
    LoggerAdapter,
    configure_logger,
    log_execution_time,
)


class TestJsonOutput(unittest.TestCase):

    def setUp(self):
        self.stream = io.StringIO()
        handler = logging.StreamHandler(self.stream)
        handler.setFormatter(JsonFormatter())
        self.logger = logging.getLogger("practice_core.tests.json")
        self.logger.handlers = [handler]
        self.logger.setLevel(logging.DEBUG)
        self.logger.propagate = False

    def tearDown(self):
        self.logger.handlers = []

    def last_record(self):
        return json.loads(self.stream.getvalue().strip().splitlines()[-1])

    def test_plain_record(self):
        self.logger.warning("backup slot empty")
        record = self.last_record()

        self.assertEqual(record["level"], "WARNING")
        self.assertEqual(record["logger"], "practice_core.tests.json")
        self.assertEqual(record["message"], "backup slot empty")
        self.assertNotIn("context", record)

    def test_adapter_context_is_emitted(self):
        adapter = LoggerAdapter(self.logger, {"storage": "memory", "key_prefix": "progression"})
        adapter.info("Backup created")

        self.assertEqual(
            self.last_record()["context"],
            {"storage": "memory", "key_prefix": "progression"}
        )

    def test_call_context_extends_adapter_context(self):
        adapter = LoggerAdapter(self.logger, {"storage": "memory"})
        adapter.info("Restored", extra={"context": {"action": "rollback"}})

        self.assertEqual(self.last_record()["context"], {"storage": "memory", "action": "rollback"})

    def test_exception_text(self):
        try:
            raise RuntimeError("disk full")
        except RuntimeError:
            self.logger.exception("write failed")

        self.assertIn("RuntimeError: disk full", self.last_record()["exception"])


class TestConfigureLogger(unittest.TestCase):

    def tearDown(self):
        logging.getLogger("practice_core.tests.configured").handlers = []

    def test_level_name_and_single_handler(self):
        logger = configure_logger("practice_core.tests.configured", level="error")
        configure_logger("practice_core.tests.configured", level="error")

        self.assertEqual(logger.level, logging.ERROR)
        self.assertEqual(len(logger.handlers), 1)

    def test_json_formatter_selected(self):
        logger = configure_logger("practice_core.tests.configured", use_json=True)
        self.assertIsInstance(logger.handlers[0].formatter, JsonFormatter)


class TestExecutionTime(unittest.TestCase):

    def setUp(self):
        self.logger = logging.getLogger("practice_core.tests.timing")

    def test_success_logged_at_debug(self):
        @log_execution_time(self.logger)
        def build():
            return 42

        with self.assertLogs(self.logger, level="DEBUG") as captured:
            self.assertEqual(build(), 42)

        self.assertIn("build took", captured.output[0])

    def test_failure_logged_and_reraised(self):
        @log_execution_time(self.logger)
        def explode():
            raise ValueError("bad input")

        with self.assertLogs(self.logger, level="ERROR") as captured:
            with self.assertRaises(ValueError):
                explode()

        self.assertIn("explode failed after", captured.output[0])
        self.assertIn("bad input", captured.output[0])


if __name__ == "__main__":
    unittest.main()
