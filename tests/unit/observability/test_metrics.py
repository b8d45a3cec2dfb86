"""Tests for Prometheus metrics."""

from prometheus_client import REGISTRY

from auditmirror.observability.metrics import (
    QUEUE_DEPTH,
    TABLES_CREATED,
    TASK_LATENCY,
    TASKS_DROPPED,
    TASKS_PROCESSED,
    TASKS_SUBMITTED,
)


def sample(name: str, labels: dict[str, str] | None = None) -> float:
    return REGISTRY.get_sample_value(name, labels or {}) or 0.0


class TestCounters:
    """Tests for the dispatch and schema counters."""

    def test_submitted(self) -> None:
        before = sample("auditmirror_tasks_submitted_total", {"table": "metrics_orders"})
        TASKS_SUBMITTED.labels(table="metrics_orders").inc()
        after = sample("auditmirror_tasks_submitted_total", {"table": "metrics_orders"})
        assert after == before + 1

    def test_dropped_by_reason(self) -> None:
        labels = {"table": "metrics_orders", "reason": "closed"}
        before = sample("auditmirror_tasks_dropped_total", labels)
        TASKS_DROPPED.labels(**labels).inc()
        assert sample("auditmirror_tasks_dropped_total", labels) == before + 1

    def test_processed_by_outcome(self) -> None:
        labels = {"table": "metrics_orders", "outcome": "failed"}
        before = sample("auditmirror_tasks_processed_total", labels)
        TASKS_PROCESSED.labels(**labels).inc()
        assert sample("auditmirror_tasks_processed_total", labels) == before + 1

    def test_tables_created(self) -> None:
        before = sample("auditmirror_tables_created_total", {"dialect": "mysql"})
        TABLES_CREATED.labels(dialect="mysql").inc()
        assert sample("auditmirror_tables_created_total", {"dialect": "mysql"}) == before + 1


class TestLatencyAndDepth:
    """Tests for the histogram and gauge."""

    def test_latency_observed(self) -> None:
        labels = {"table": "metrics_latency"}
        before = sample("auditmirror_task_latency_seconds_count", labels)
        TASK_LATENCY.labels(**labels).observe(0.02)
        assert sample("auditmirror_task_latency_seconds_count", labels) == before + 1

    def test_queue_depth(self) -> None:
        QUEUE_DEPTH.set(7)
        assert sample("auditmirror_queue_depth") == 7
        QUEUE_DEPTH.set(0)
