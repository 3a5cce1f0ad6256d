"""
Monitoring hooks for the extraction pipeline.

In-process counters of which selector, fallback or readiness outcome
happened. Counters live for the process only and are never persisted.
"""

import logging
from typing import Dict, Optional
from collections import defaultdict

logger = logging.getLogger(__name__)


class MetricsCollector:
    """Collects extraction metrics."""

    def __init__(self):
        self.counters = defaultdict(int)
        self.histograms = defaultdict(list)

    def record_selector(self, field_label: str, matched: bool, index: Optional[int] = None):
        """Record a SelectorResolver outcome for one field."""
        if matched:
            self.counters[f"selector:{field_label}:hit"] += 1
            self.counters[f"selector:{field_label}:index:{index}"] += 1
        else:
            self.counters[f"selector:{field_label}:miss"] += 1

    def record_fallback(self, field_label: str, success: bool):
        """Record a CandidateScorer run."""
        status = 'success' if success else 'empty'
        self.counters[f"fallback:{field_label}:{status}"] += 1

    def record_wait(self, ready: bool, ticks: int):
        """Record a readiness wait and how many ticks it took."""
        status = 'ready' if ready else 'exhausted'
        self.counters[f"readiness:{status}"] += 1
        self.histograms['readiness_ticks'].append(ticks)

    def record_extraction(self, platform: str, status: str):
        """Record the end state of one extract() call (ok, partial, failed, unsupported)."""
        self.counters[f"extraction:{platform}:{status}"] += 1

    def reset(self):
        self.counters.clear()
        self.histograms.clear()

    def get_stats(self) -> Dict:
        """Get current statistics."""
        return {
            'counters': dict(self.counters),
            'histogram_counts': {k: len(v) for k, v in self.histograms.items()}
        }


# Global metrics instance
_metrics: Optional[MetricsCollector] = None


def get_metrics() -> MetricsCollector:
    """Get global metrics collector."""
    global _metrics
    if _metrics is None:
        _metrics = MetricsCollector()
    return _metrics
