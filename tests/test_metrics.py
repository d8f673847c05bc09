"""
Tests for metrics collection functionality
"""

import unittest
from datetime import datetime, timedelta

from src.utils.metrics import Metrics


class TestMetrics(unittest.TestCase):
    """Test cases for Metrics class"""

    def setUp(self):
        """Set up test fixtures"""
        self.metrics = Metrics()

    def test_initialization(self):
        """Test that metrics are initialized correctly"""
        self.assertEqual(self.metrics.messages_parsed, 0)
        self.assertEqual(self.metrics.extractions, 0)
        self.assertEqual(len(self.metrics.processing_time_ms), 0)
        self.assertEqual(len(self.metrics.errors_count), 0)
        self.assertIsInstance(self.metrics.start_time, datetime)

    def test_record_message(self):
        """Test recording parsed messages"""
        self.metrics.record_message()
        self.metrics.record_message(attachments=2, code_found=True)

        self.assertEqual(self.metrics.messages_parsed, 2)
        self.assertEqual(self.metrics.attachments_decoded, 2)
        self.assertEqual(self.metrics.extractions, 1)

    def test_record_error(self):
        """Test recording errors by type"""
        self.metrics.record_error("read_failed")
        self.metrics.record_error("read_failed")
        self.metrics.record_error("too_large")

        self.assertEqual(self.metrics.errors_count["read_failed"], 2)
        self.assertEqual(self.metrics.errors_count["too_large"], 1)

    def test_processing_time_window_is_bounded(self):
        """Only the most recent 1000 timings are kept"""
        for i in range(1500):
            self.metrics.record_processing_time(float(i))

        self.assertEqual(len(self.metrics.processing_time_ms), 1000)
        self.assertEqual(self.metrics.processing_time_ms[0], 500.0)

    def test_summary_empty(self):
        summary = self.metrics.get_summary()
        self.assertEqual(summary["messages_parsed"], 0)
        self.assertEqual(summary["processing_time_stats"], {})
        self.assertEqual(summary["errors"], {})

    def test_summary_statistics(self):
        for value in (10.0, 20.0, 30.0, 40.0):
            self.metrics.record_processing_time(value)
        self.metrics.record_message(code_found=True)

        summary = self.metrics.get_summary()
        stats = summary["processing_time_stats"]

        self.assertEqual(stats["avg_ms"], 25.0)
        self.assertEqual(stats["min_ms"], 10.0)
        self.assertEqual(stats["max_ms"], 40.0)
        self.assertEqual(stats["p50_ms"], 30.0)
        self.assertEqual(summary["extractions"], 1)

    def test_uptime(self):
        self.metrics.start_time = datetime.now() - timedelta(seconds=5)
        self.assertGreaterEqual(self.metrics.get_summary()["uptime_seconds"], 5)


if __name__ == '__main__':
    unittest.main()
