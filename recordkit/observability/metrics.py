"""
Prometheus metrics collection for recordkit

This module provides metrics instrumentation for monitoring
validation throughput, data quality, and rule evaluation health.
"""
import time

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)


# Global registry for metrics
REGISTRY = CollectorRegistry()


# =======================
# RUN METRICS
# =======================

records_validated_total = Counter(
    name="recordkit_records_validated_total",
    documentation="Total number of record validation runs",
    labelnames=["record", "status"],  # status: valid, invalid
    registry=REGISTRY,
)

validation_duration_seconds = Histogram(
    name="recordkit_validation_duration_seconds",
    documentation="Time spent running the validation pipeline for one record",
    labelnames=["record"],
    buckets=[0.0001, 0.0005, 0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0],
    registry=REGISTRY,
)

# =======================
# DATA QUALITY METRICS
# =======================

field_errors_total = Counter(
    name="recordkit_field_errors_total",
    documentation="Total number of field errors recorded during validation",
    labelnames=["record", "field", "kind"],
    registry=REGISTRY,
)

evaluation_failures_total = Counter(
    name="recordkit_evaluation_failures_total",
    documentation="Total number of rule expressions that raised or returned an unusable result",
    labelnames=["record", "option"],
    registry=REGISTRY,
)


# =======================
# HELPER FUNCTIONS
# =======================

def generate_metrics() -> bytes:
    """
    Generate Prometheus metrics in text format

    Returns:
        Metrics in Prometheus text format
    """
    return generate_latest(REGISTRY)


def increment_counter(counter: Counter, value: float = 1.0, **labels) -> None:
    """
    Increment a counter metric

    Args:
        counter: Prometheus Counter metric
        value: Amount to increment (default: 1.0)
        **labels: Label values for the metric
    """
    counter.labels(**labels).inc(value)


def record_session_metrics(session) -> None:
    """
    Record outcome metrics for a finished validation session.

    Nested sessions are counted under their own record name.

    Args:
        session: A staged ValidationSession
    """
    record = session.definition.name
    status = "valid" if session.valid else "invalid"
    increment_counter(records_validated_total, record=record, status=status)

    for error in session.errors:
        increment_counter(field_errors_total, record=record, field=error.field, kind=error.kind.value)

    for child in session.iter_children():
        record_session_metrics(child)


class track_duration:
    """
    Context manager observing the elapsed time of a block on a histogram

    The duration is observed whether or not the block raises.

    Usage:
        with track_duration(validation_duration_seconds, record="Person"):
            session = run_pipeline(definition, data)
    """

    def __init__(self, histogram: Histogram, **labels):
        self.child = histogram.labels(**labels)
        self.started = 0.0

    def __enter__(self):
        self.started = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.child.observe(time.perf_counter() - self.started)
        return False
