"""
Output self-statistics.

Kept on a dedicated CollectorRegistry so they never mix with the
process_* / python_gc_* collectors of the default registry.
"""

from prometheus_client import CollectorRegistry, Counter, Gauge

PREFIX = "ycmon_output_"

OUTPUT_REGISTRY = CollectorRegistry()

WRITES_TOTAL = Counter(
    f"{PREFIX}writes_total",
    "Batches handed to the output, by outcome",
    labelnames=["status"],
    registry=OUTPUT_REGISTRY,
)

POINTS_WRITTEN_TOTAL = Counter(
    f"{PREFIX}points_written_total",
    "Metric points accepted by the ingestion endpoint",
    registry=OUTPUT_REGISTRY,
)

FIELDS_SKIPPED_TOTAL = Counter(
    f"{PREFIX}fields_skipped_total",
    "Fields dropped because their value is not numeric",
    registry=OUTPUT_REGISTRY,
)

TOKEN_REFRESHES_TOTAL = Counter(
    f"{PREFIX}token_refreshes_total",
    "IAM token refreshes from the metadata service",
    registry=OUTPUT_REGISTRY,
)

METRIC_OUTSIDE_WINDOW = Gauge(
    f"{PREFIX}metric_outside_window",
    "Metrics rejected for falling outside the accepted time window",
    registry=OUTPUT_REGISTRY,
)
