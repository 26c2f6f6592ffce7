"""
Prometheus Metrics Registration.

Custom metrics for tool invocations and OAuth token refreshes.
"""

from prometheus_client import Counter, Histogram

# ============================================================================
# COUNTERS
# ============================================================================

tool_invocations_total = Counter(
    "tool_invocations_total",
    "Total tool invocations",
    ["tool_id", "outcome"],  # success, setup_needed, or an error kind
)

oauth_refresh_total = Counter(
    "oauth_refresh_total",
    "OAuth token refresh attempts",
    ["provider", "status"],  # success, stale, failure
)

# ============================================================================
# HISTOGRAMS
# ============================================================================

tool_invocation_duration = Histogram(
    "tool_invocation_duration_seconds",
    "Tool invocation duration",
    ["tool_id"],
    buckets=(0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0),
)
