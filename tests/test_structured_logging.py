"""
Tests for structured logging functionality
"""

import unittest
import json
import logging
import sys

from src.utils.structured_logging import JSONFormatter


def _record(msg="Test message", level=logging.INFO, exc_info=None):
    return logging.LogRecord(
        name="test_logger",
        level=level,
        pathname="test.py",
        lineno=42,
        msg=msg,
        args=(),
        exc_info=exc_info,
        func="test_function"
    )


class TestJSONFormatter(unittest.TestCase):
    """Test cases for JSONFormatter"""

    def setUp(self):
        """Set up test fixtures"""
        self.formatter = JSONFormatter()

    def test_basic_json_format(self):
        """Test that logs are formatted as valid JSON"""
        data = json.loads(self.formatter.format(_record()))

        self.assertIn("timestamp", data)
        self.assertEqual(data["level"], "INFO")
        self.assertEqual(data["logger"], "test_logger")
        self.assertEqual(data["message"], "Test message")
        self.assertEqual(data["module"], "test")
        self.assertEqual(data["function"], "test_function")
        self.assertEqual(data["line"], 42)

    def test_exception_logging(self):
        """Test that exceptions are included in JSON output"""
        try:
            raise ValueError("Test error")
        except ValueError:
            exc_info = sys.exc_info()

        data = json.loads(self.formatter.format(
            _record("Error occurred", logging.ERROR, exc_info)
        ))

        self.assertIn("exception", data)
        self.assertIn("ValueError: Test error", data["exception"])
        self.assertIn("Traceback", data["exception"])

    def test_extra_fields(self):
        """Test that extra fields are included in output"""
        record = _record("Parsed message")
        record.extra_fields = {
            "attachments": 2,
            "subject": "Welcome",
            "elapsed_ms": 3.5,
        }

        data = json.loads(self.formatter.format(record))

        self.assertEqual(data["attachments"], 2)
        self.assertEqual(data["subject"], "Welcome")
        self.assertEqual(data["elapsed_ms"], 3.5)

    def test_sensitive_field_redaction(self):
        """Verification codes and secrets never reach the log"""
        record = _record("Extraction finished")
        record.extra_fields = {
            "verification_code": "482913",
            "otp": "1234",
            "password": "secret123",
            "api_key": "abcd1234",
            "session_token": "tok",
            "recipient": "user@example.com",
        }

        data = json.loads(self.formatter.format(record))

        self.assertEqual(data["verification_code"], "[REDACTED]")
        self.assertEqual(data["otp"], "[REDACTED]")
        self.assertEqual(data["password"], "[REDACTED]")
        self.assertEqual(data["api_key"], "[REDACTED]")
        self.assertEqual(data["session_token"], "[REDACTED]")
        self.assertEqual(data["recipient"], "user@example.com")

    def test_case_insensitive_redaction(self):
        """Test that redaction works regardless of case"""
        record = _record("Test")
        record.extra_fields = {
            "CODE": "111111",
            "Otp_Value": "2222",
            "APP_password": "pass"
        }

        data = json.loads(self.formatter.format(record))

        self.assertEqual(data["CODE"], "[REDACTED]")
        self.assertEqual(data["Otp_Value"], "[REDACTED]")
        self.assertEqual(data["APP_password"], "[REDACTED]")

    def test_nested_fields_redacted(self):
        """Codes inside nested context (e.g. a summary dict) are caught too"""
        record = _record("Run summary")
        record.extra_fields = {
            "message": {"subject": "Login", "verification_code": "482913"},
            "attachments": [{"filename": "a.pdf", "otp": "1"}],
        }

        data = json.loads(self.formatter.format(record))

        self.assertEqual(data["message"], {"subject": "Login", "verification_code": "[REDACTED]"})
        self.assertEqual(data["attachments"], [{"filename": "a.pdf", "otp": "[REDACTED]"}])

    def test_non_serializable_values_are_stringified(self):
        record = _record("Test")
        record.extra_fields = {"payload": b"bytes"}
        data = json.loads(self.formatter.format(record))
        self.assertEqual(data["payload"], "b'bytes'")

    def test_different_log_levels(self):
        """Test formatting for different log levels"""
        levels = [
            (logging.DEBUG, "DEBUG"),
            (logging.INFO, "INFO"),
            (logging.WARNING, "WARNING"),
            (logging.ERROR, "ERROR"),
            (logging.CRITICAL, "CRITICAL")
        ]

        for level_int, level_name in levels:
            data = json.loads(self.formatter.format(_record(level=level_int)))
            self.assertEqual(data["level"], level_name)

    def test_no_extra_fields(self):
        """Test that formatter works when no extra fields are present"""
        data = json.loads(self.formatter.format(_record()))
        self.assertEqual(data["message"], "Test message")
        self.assertNotIn("exception", data)


if __name__ == '__main__':
    unittest.main()
