"""Prometheus metrics for monitoring the feedback analysis backend."""

from prometheus_client import Counter, Histogram

# Counter for completed analyses
ANALYSES_TOTAL = Counter(
    'sentiflow_analyses_total',
    'Total number of feedback items analyzed',
    ['source', 'sentiment']
)

# Counter for degraded analyses
ANALYSIS_FAILURES_TOTAL = Counter(
    'sentiflow_analysis_failures_total',
    'Total number of analyses that fell back to default values',
    ['stage']  # e.g., stage='item', 'chunk', 'emotion_theme', 'theme'
)

# Counter for outbound Workers AI calls
REMOTE_CALLS_TOTAL = Counter(
    'sentiflow_remote_calls_total',
    'Total number of outbound calls to Workers AI',
    ['endpoint', 'status']  # e.g., endpoint='classification', status='success'
)

# Histogram for per-item analysis latency
ITEM_ANALYSIS_LATENCY = Histogram(
    'sentiflow_item_analysis_latency_seconds',
    'Latency of analyzing a single feedback item',
    ['source'],
    buckets=[0.1, 0.5, 1, 2.5, 5, 10, 30, 60]
)

# Counters for batch admission
BATCH_ITEMS_ADMITTED = Counter(
    'sentiflow_batch_items_admitted_total',
    'Total number of batch items admitted for analysis'
)

BATCH_ITEMS_DROPPED = Counter(
    'sentiflow_batch_items_dropped_total',
    'Total number of batch items dropped by the admission cap'
)

# Counter for database operations
DATABASE_OPERATIONS_TOTAL = Counter(
    'sentiflow_db_operations_total',
    'Total number of database operations',
    ['operation', 'status']  # e.g., operation='upsert_analysis_batch', status='success'
)
