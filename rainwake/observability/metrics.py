"""Prometheus metrics definitions."""

from prometheus_client import Counter, Gauge

# Decision metrics
DECISIONS = Counter(
    "rainwake_decisions_total",
    "Total number of weather decisions",
    ["outcome"],
)

# Forecast metrics
FORECAST_FETCHES = Counter(
    "rainwake_forecast_fetches_total",
    "Forecast lookups by where the data came from",
    ["source"],
)

# Alarm metrics
ALARMS_SCHEDULED = Counter(
    "rainwake_alarms_scheduled_total",
    "Alarm scheduling outcomes",
    ["result", "exact"],
)

PRE_CHECK_RESCHEDULES = Counter(
    "rainwake_pre_check_reschedules_total",
    "Pre-check alarm self-reschedules",
    ["status"],
)

# Notification metrics
NOTIFICATIONS = Counter(
    "rainwake_notifications_total",
    "Notifications rendered",
    ["kind", "status"],
)

CONSECUTIVE_FAILURES = Gauge(
    "rainwake_consecutive_failures",
    "Consecutive weather check failures today",
)

# Orchestrator metrics
RECHECK_RUNS = Counter(
    "rainwake_recheck_runs_total",
    "Periodic weather check job runs",
    ["result"],
)
