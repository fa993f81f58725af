"""
Prometheus Metrics Collection for vulnfeed

Metrics are registered on the default registry so a process embedding the
updaters can expose them with prometheus_client's own HTTP server.
"""

import logging
import time
from contextlib import contextmanager
from importlib.metadata import version as get_version

from prometheus_client import Counter, Gauge, Histogram, Info

logger = logging.getLogger(__name__)

# =============================================================================
# Application Info Metrics
# =============================================================================

try:
    APP_VERSION = get_version("vulnfeed")
except Exception:
    APP_VERSION = "unknown"

app_info = Info("vulnfeed_app", "Application information")
app_info.info(
    {
        "version": APP_VERSION,
        "app_name": "vulnfeed",
    }
)

# =============================================================================
# External Feed Metrics
# =============================================================================

external_api_requests_total = Counter(
    "vulnfeed_external_requests_total",
    "Total external feed requests by service",
    ["service"],
)

external_api_errors_total = Counter(
    "vulnfeed_external_errors_total",
    "Total external feed errors by service",
    ["service"],
)

external_api_duration_seconds = Histogram(
    "vulnfeed_external_duration_seconds",
    "External feed request duration in seconds",
    ["service"],
    buckets=(0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0, 300.0),
)

feed_unchanged_total = Counter(
    "vulnfeed_feed_unchanged_total",
    "Total conditional fetches answered as unchanged",
    ["updater"],
)

feed_bytes_spooled_total = Counter(
    "vulnfeed_feed_bytes_spooled_total",
    "Total decompressed bytes written to spool files",
    ["updater"],
)

# =============================================================================
# Parse Metrics
# =============================================================================

vulnerabilities_parsed_total = Counter(
    "vulnfeed_vulnerabilities_parsed_total",
    "Total vulnerability records produced by updater",
    ["updater"],
)

enrichments_parsed_total = Counter(
    "vulnfeed_enrichments_parsed_total",
    "Total enrichment records produced by enricher",
    ["enricher"],
)

records_skipped_total = Counter(
    "vulnfeed_records_skipped_total",
    "Total feed records skipped by reason",
    ["reason"],
)

parse_duration_seconds = Histogram(
    "vulnfeed_parse_duration_seconds",
    "Feed parse duration in seconds",
    ["updater"],
    buckets=(0.1, 0.5, 1, 2, 5, 10, 30, 60, 120),
)

# =============================================================================
# Worker Metrics
# =============================================================================

worker_queue_size = Gauge(
    "vulnfeed_worker_queue_size",
    "Current number of updater jobs in the worker queue",
)

worker_active_count = Gauge(
    "vulnfeed_worker_active_count",
    "Number of workers currently running an updater",
)

updater_runs_total = Counter(
    "vulnfeed_updater_runs_total",
    "Total updater runs by outcome",
    ["status"],
)

updater_run_duration_seconds = Histogram(
    "vulnfeed_updater_run_duration_seconds",
    "Updater run duration in seconds",
    buckets=(1, 5, 10, 30, 60, 120, 300, 600, 1800),
)


@contextmanager
def track_parse(updater: str):
    """Record the duration of a parse step for one updater."""
    start_time = time.time()
    try:
        yield
    finally:
        parse_duration_seconds.labels(updater=updater).observe(time.time() - start_time)
