"""
Tests for the ErrorHandler module.
"""
import json
import logging
import os
import tempfile
import unittest
from chip8_emulator.utils.error_handler import (
    ErrorHandler, ErrorLevel, ErrorCategory, Chip8Error,
    ROMTooLargeError, StackOverflowError,
)

class TestErrorHandler(unittest.TestCase):
    """
    Test cases for the ErrorHandler class.
    """

    def setUp(self):
        """Set up test fixtures."""
        self.handler = ErrorHandler(console_level=logging.CRITICAL + 10, max_error_history=3)

    def tearDown(self):
        """Clean up test fixtures."""
        self.handler.close()

    def test_category_from_exception(self):
        """Emulator errors carry their own category."""
        info = self.handler.handle_error(ROMTooLargeError(4000, 3232))
        self.assertEqual(info["category"], "LOAD")
        self.assertEqual(info["exception_type"], "ROMTooLargeError")
        self.assertIn("3232", info["message"])

        info = self.handler.handle_error(ValueError("bad"))
        self.assertEqual(info["category"], "UNKNOWN")

    def test_traceback_captured(self):
        try:
            raise StackOverflowError("Call stack overflow")
        except Chip8Error as e:
            info = self.handler.handle_error(e)
        self.assertEqual(info["category"], "RUNTIME")
        self.assertIn("StackOverflowError", info["traceback"])

    def test_report_anomaly(self):
        info = self.handler.report_anomaly("Unknown opcode", {"pc": 0x200})
        self.assertEqual(info["level"], "WARNING")
        self.assertEqual(info["category"], "RUNTIME")
        self.assertEqual(info["context"], {"pc": 0x200})

    def test_history_is_bounded(self):
        for i in range(5):
            self.handler.handle_error(message=f"error {i}")
        history = self.handler.get_error_history()
        self.assertEqual([e["message"] for e in history], ["error 2", "error 3", "error 4"])

    def test_history_filters(self):
        self.handler.report_anomaly("a")
        self.handler.handle_error(message="b", category=ErrorCategory.LOAD)
        self.handler.handle_error(message="c", level=ErrorLevel.CRITICAL, category=ErrorCategory.LOAD)

        self.assertEqual(len(self.handler.get_error_history(category=ErrorCategory.LOAD)), 2)
        self.assertEqual(len(self.handler.get_error_history(level=ErrorLevel.WARNING)), 1)
        self.assertEqual(self.handler.get_error_history(max_errors=1)[0]["message"], "c")

        self.handler.clear_error_history()
        self.assertEqual(self.handler.get_error_history(), [])

    def test_category_handlers(self):
        received = []
        self.handler.register_handler(ErrorCategory.RUNTIME, received.append)
        self.handler.report_anomaly("first")
        self.handler.handle_error(message="ignored", category=ErrorCategory.INPUT)
        self.assertEqual([e["message"] for e in received], ["first"])

        self.assertTrue(self.handler.unregister_handler(ErrorCategory.RUNTIME))
        self.assertFalse(self.handler.unregister_handler(ErrorCategory.RUNTIME))
        self.handler.report_anomaly("second")
        self.assertEqual(len(received), 1)

    def test_summary(self):
        self.handler.report_anomaly("a")
        self.handler.handle_error(ROMTooLargeError(4000, 3232))
        summary = self.handler.get_error_summary()
        self.assertEqual(summary["total"], 2)
        self.assertEqual(summary["by_category"], {"RUNTIME": 1, "LOAD": 1})
        self.assertEqual(summary["by_exception"], {"ROMTooLargeError": 1})
        self.assertEqual(summary["latest"]["category"], "LOAD")

    def test_export_error_report(self):
        self.handler.report_anomaly("Unknown opcode", {"opcode": 0x0123})
        with tempfile.TemporaryDirectory() as tmpdir:
            filename = os.path.join(tmpdir, "reports", "errors.json")
            self.assertTrue(self.handler.export_error_report(filename))
            with open(filename) as f:
                report = json.load(f)
        self.assertEqual(report["summary"]["total"], 1)
        self.assertEqual(report["errors"][0]["context"]["opcode"], 0x0123)

    def test_log_file(self):
        """Messages at or above the file level reach the log file."""
        with tempfile.TemporaryDirectory() as tmpdir:
            log_file = os.path.join(tmpdir, "logs", "emulator.log")
            handler = ErrorHandler(log_file=log_file, console_level=logging.CRITICAL + 10,
                                   file_level=logging.WARNING)
            try:
                logging.getLogger("Chip8Emulator.Chip8.CPU").warning("Unknown opcode: 0x0123")
                logging.getLogger("Chip8Emulator.Chip8.CPU").info("not written")
            finally:
                handler.close()

            with open(log_file) as f:
                contents = f.read()

        self.assertIn("Chip8Emulator.Chip8.CPU - WARNING - Unknown opcode: 0x0123", contents)
        self.assertNotIn("not written", contents)

if __name__ == '__main__':
    unittest.main()
