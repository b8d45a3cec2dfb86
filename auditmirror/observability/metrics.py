"""Prometheus metrics for the audit pipeline.

The drop counter is the observable side of the queue's drop policy.
"""

from prometheus_client import Counter, Gauge, Histogram

# Dispatch metrics
TASKS_SUBMITTED = Counter(
    "auditmirror_tasks_submitted_total",
    "Total number of audit tasks submitted",
    labelnames=["table"],
)

TASKS_DROPPED = Counter(
    "auditmirror_tasks_dropped_total",
    "Audit tasks discarded because the queue was full or closed",
    labelnames=["table", "reason"],
)

TASKS_PROCESSED = Counter(
    "auditmirror_tasks_processed_total",
    "Audit tasks taken off the queue by a worker",
    labelnames=["table", "outcome"],
)

TASK_LATENCY = Histogram(
    "auditmirror_task_latency_seconds",
    "Time a worker spends writing one audit row",
    labelnames=["table"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

QUEUE_DEPTH = Gauge(
    "auditmirror_queue_depth",
    "Tasks waiting in the dispatch queue",
)

# Schema metrics
TABLES_CREATED = Counter(
    "auditmirror_tables_created_total",
    "Audit tables created on demand",
    labelnames=["dialect"],
)
