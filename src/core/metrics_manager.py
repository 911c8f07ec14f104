import logging
from typing import Dict, Optional, Sequence

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Histogram,
    Summary,
    generate_latest,
)

logger = logging.getLogger(__name__)

ENDPOINT_LABEL = "endpoint"
STATUS_CODE_LABEL = "status_code"
HOST_LABEL = "host"
LABEL_NAMES = (ENDPOINT_LABEL, STATUS_CODE_LABEL, HOST_LABEL)

SUMMARY_NAME = "api_endpoint_latency"
HISTOGRAM_NAME = "api_endpoint_latency_histogram"

# Upper bounds in milliseconds
DEFAULT_LATENCY_BUCKETS_MS = (
    0, 10, 25, 50, 100, 150, 200, 250, 300, 400, 500,
    750, 1000, 1500, 2000, 3000, 5000, 10000,
)


class MetricsManager:
    """
    Owns the endpoint latency aggregations shared by the probe loop and the exporter.

    Both metrics live on a registry private to this manager rather than the process-wide
    default, so several managers can coexist. prometheus_client metrics synchronise
    internally, which is what makes concurrent scrapes and probe writes safe.
    """

    def __init__(
        self,
        registry: Optional[CollectorRegistry] = None,
        buckets: Sequence[float] = DEFAULT_LATENCY_BUCKETS_MS,
    ):
        """
        Initialize the MetricsManager and register its Prometheus metrics.

        Args:
            registry: Registry to register the metrics on. A fresh one is created when omitted.
            buckets: Histogram bucket upper bounds in milliseconds.
        """
        self.registry = registry if registry is not None else CollectorRegistry()
        self.LATENCY_SUMMARY = Summary(
            SUMMARY_NAME,
            "API endpoint latency in milliseconds",
            LABEL_NAMES,
            registry=self.registry,
        )
        self.LATENCY_HISTOGRAM = Histogram(
            HISTOGRAM_NAME,
            "API endpoint latency distribution in milliseconds",
            LABEL_NAMES,
            buckets=buckets,
            registry=self.registry,
        )
        logger.info("MetricsManager initialized.")

    def observe(self, labels: Dict[str, str], latency_ms: float):
        """
        Record one latency sample under the same labels in both aggregations.
        """
        self.LATENCY_SUMMARY.labels(**labels).observe(latency_ms)
        self.LATENCY_HISTOGRAM.labels(**labels).observe(latency_ms)
        logger.debug(f"Observed {latency_ms}ms for {labels}")

    def sample_count(self, labels: Dict[str, str]) -> int:
        """
        Number of histogram samples recorded under a label set (0 if none yet).
        """
        value = self.registry.get_sample_value(f"{HISTOGRAM_NAME}_count", labels)
        return int(value or 0)

    def export(self):
        """
        Render every metric on the registry in the Prometheus text exposition format.

        Returns:
            tuple[bytes, str]: The payload and its content type.
        """
        return generate_latest(self.registry), CONTENT_TYPE_LATEST
