"""
kinnikureward/metrics.py

Prometheus metrics collection for kinnikureward.

Counts reward requests by response status, tokens and calories issued,
message fallbacks, ledger failures by pipeline step, and the latency of
successful submissions.
"""

import logging
import time
from typing import Any, Dict, Optional

logger = logging.getLogger("kinnikureward.metrics")


class MetricsCollector:
    """
    Prometheus metrics collector for the reward service.

    Counters are only touched from the trio event loop, so no locking.

    Usage:
        metrics = MetricsCollector()
        metrics.record_request(200)
        prometheus_output = metrics.collect()
    """

    # Metric definitions
    METRICS = {
        "kinnikureward_requests_total": {
            "type": "counter",
            "help": "Reward requests by HTTP status",
        },
        "kinnikureward_rewards_announced_total": {
            "type": "counter",
            "help": "Reward transactions accepted by the node",
        },
        "kinnikureward_tokens_issued_total": {
            "type": "counter",
            "help": "Tokens in announced reward transactions",
        },
        "kinnikureward_calories_total": {
            "type": "counter",
            "help": "Estimated calories of rewarded workouts",
        },
        "kinnikureward_message_fallbacks_total": {
            "type": "counter",
            "help": "Messages replaced by the fixed fallback text",
        },
        "kinnikureward_ledger_failures_total": {
            "type": "counter",
            "help": "Failed submissions by pipeline step",
        },
        "kinnikureward_submission_seconds": {
            "type": "histogram",
            "help": "Duration of successful submissions in seconds",
        },
        "kinnikureward_uptime_seconds": {
            "type": "counter",
            "help": "Service uptime in seconds",
        },
    }

    LATENCY_BUCKETS = [0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0]

    def __init__(self):
        self._start_time = time.time()
        self.reset_counters()

    def reset_counters(self) -> None:
        """Reset all counters (useful for testing)."""
        self._requests: Dict[int, int] = {}
        self._announced = 0
        self._tokens_issued = 0
        self._calories = 0.0
        self._message_fallbacks = 0
        self._ledger_failures: Dict[str, int] = {}
        self._latency_counts = {b: 0 for b in self.LATENCY_BUCKETS}
        self._latency_counts[float("inf")] = 0
        self._latency_sum = 0.0
        self._latency_count = 0

    def record_request(self, status: int) -> None:
        self._requests[status] = self._requests.get(status, 0) + 1

    def record_reward(self, tokens: int, calories: float, duration_seconds: float) -> None:
        """Record a reward the node accepted."""
        self._announced += 1
        self._tokens_issued += tokens
        self._calories += calories
        self._latency_sum += duration_seconds
        self._latency_count += 1
        for bucket in self.LATENCY_BUCKETS:
            if duration_seconds <= bucket:
                self._latency_counts[bucket] += 1
                break
        else:
            self._latency_counts[float("inf")] += 1

    def record_message_fallback(self) -> None:
        self._message_fallbacks += 1

    def record_ledger_failure(self, step: str) -> None:
        self._ledger_failures[step] = self._ledger_failures.get(step, 0) + 1

    def collect(self) -> str:
        """
        Collect all metrics and return in Prometheus format.

        Returns:
            Prometheus-formatted metrics string
        """
        lines = []

        def header(name: str):
            metric_def = self.METRICS.get(name, {})
            lines.append(f"# HELP {name} {metric_def.get('help', '')}")
            lines.append(f"# TYPE {name} {metric_def.get('type', 'gauge')}")

        def add_metric(name: str, value: float, labels: Optional[Dict[str, str]] = None):
            if labels:
                label_str = ",".join(f'{k}="{v}"' for k, v in labels.items())
                lines.append(f"{name}{{{label_str}}} {value}")
            else:
                lines.append(f"{name} {value}")

        header("kinnikureward_requests_total")
        for status in sorted(self._requests):
            add_metric("kinnikureward_requests_total", self._requests[status], {"status": str(status)})

        header("kinnikureward_rewards_announced_total")
        add_metric("kinnikureward_rewards_announced_total", self._announced)

        header("kinnikureward_tokens_issued_total")
        add_metric("kinnikureward_tokens_issued_total", self._tokens_issued)

        header("kinnikureward_calories_total")
        add_metric("kinnikureward_calories_total", round(self._calories, 3))

        header("kinnikureward_message_fallbacks_total")
        add_metric("kinnikureward_message_fallbacks_total", self._message_fallbacks)

        header("kinnikureward_ledger_failures_total")
        for step in sorted(self._ledger_failures):
            add_metric("kinnikureward_ledger_failures_total", self._ledger_failures[step], {"step": step})

        header("kinnikureward_uptime_seconds")
        add_metric("kinnikureward_uptime_seconds", round(time.time() - self._start_time, 3))

        if self._latency_count > 0:
            header("kinnikureward_submission_seconds")
            cumulative = 0
            for bucket in self.LATENCY_BUCKETS:
                cumulative += self._latency_counts[bucket]
                lines.append(f'kinnikureward_submission_seconds_bucket{{le="{bucket}"}} {cumulative}')
            cumulative += self._latency_counts[float("inf")]
            lines.append(f'kinnikureward_submission_seconds_bucket{{le="+Inf"}} {cumulative}')
            lines.append(f"kinnikureward_submission_seconds_sum {self._latency_sum}")
            lines.append(f"kinnikureward_submission_seconds_count {self._latency_count}")

        return "\n".join(lines) + "\n"

    def get_stats(self) -> Dict[str, Any]:
        """
        Get metrics as a dictionary (for JSON API).
        """
        return {
            "requests": dict(self._requests),
            "rewards_announced": self._announced,
            "tokens_issued": self._tokens_issued,
            "calories": self._calories,
            "message_fallbacks": self._message_fallbacks,
            "ledger_failures": dict(self._ledger_failures),
            "uptime_seconds": time.time() - self._start_time,
        }
