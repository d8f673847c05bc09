"""
Metrics Collection Module
Tracks decoding outcomes across a batch of messages
"""

from collections import Counter, deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Deque, Dict


@dataclass
class Metrics:
    """
    Collects counters for a run of the parser.

    PATTERN RECOGNITION: The same shape as request counters on a web server:
    totals, a bounded window of timings, and per-type error counts that can
    be exported as a summary dict.
    """

    messages_parsed: int = 0
    extractions: int = 0
    attachments_decoded: int = 0

    # SECURITY STORY: Bounded deque so a long batch cannot grow memory or make
    # the percentile sort expensive.
    processing_time_ms: Deque[float] = field(default_factory=lambda: deque(maxlen=1000))

    errors_count: Counter = field(default_factory=Counter)

    start_time: datetime = field(default_factory=datetime.now)

    def record_message(self, attachments: int = 0, code_found: bool = False):
        """
        Record one parsed message.

        Args:
            attachments: Number of attachments decoded from it
            code_found: Whether a verification code was extracted
        """
        self.messages_parsed += 1
        self.attachments_decoded += attachments
        if code_found:
            self.extractions += 1

    def record_processing_time(self, time_ms: float):
        """Record how long one message took to parse and scan, in milliseconds"""
        self.processing_time_ms.append(time_ms)

    def record_error(self, error_type: str):
        """
        Record that an error occurred.

        Args:
            error_type: Type of error (e.g., "read_failed")
        """
        self.errors_count[error_type] += 1

    def get_summary(self) -> Dict:
        """
        Get a summary of all metrics.

        Returns:
            Dictionary suitable for logging or export
        """
        stats = {}
        if self.processing_time_ms:
            sorted_times = sorted(self.processing_time_ms)
            n = len(sorted_times)
            stats = {
                "avg_ms": sum(sorted_times) / n,
                "min_ms": sorted_times[0],
                "max_ms": sorted_times[-1],
                "p50_ms": sorted_times[n // 2],
                "p95_ms": sorted_times[int(n * 0.95)] if n > 1 else sorted_times[0],
            }

        return {
            "uptime_seconds": (datetime.now() - self.start_time).total_seconds(),
            "messages_parsed": self.messages_parsed,
            "extractions": self.extractions,
            "attachments_decoded": self.attachments_decoded,
            "processing_time_stats": stats,
            "errors": dict(self.errors_count),
        }
