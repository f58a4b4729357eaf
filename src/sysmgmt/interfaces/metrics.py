"""Metrics sink for health checks."""

import abc

# pylint: disable=too-few-public-methods


class MetricsRecorder(abc.ABC):
    """Contract for recording health check measurements."""

    @abc.abstractmethod
    def record_health_check(
        self, api_name: str, issuer: str, success: bool, response_time_ms: int
    ) -> None:
        """Record the outcome and latency of one check."""
