"""Prometheus metrics for the purge engine.

Purge results are not persisted anywhere; these counters and the log lines
are the only record of what a pass removed.
"""

from prometheus_client import Counter, Histogram

purge_runs_total = Counter(
    "foms_purge_runs_total",
    "Purge runs by trigger and outcome",
    ["trigger", "outcome"]  # trigger: scheduler|admin|celery, outcome: success|failed|invalid
)

purged_entities_total = Counter(
    "foms_purged_entities_total",
    "Soft-deleted entities permanently removed",
    ["kind"]  # kind: vault|midpoint|cable
)

photo_file_deletions_total = Counter(
    "foms_photo_file_deletions_total",
    "Photo file deletion attempts during purge",
    ["outcome"]  # outcome: deleted|missing|error
)

purge_duration_seconds = Histogram(
    "foms_purge_duration_seconds",
    "Wall time of one purge run in seconds",
    buckets=[0.05, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 300.0]
)
