"""
Prometheus metrics configuration
"""
import os

from prometheus_client import (CONTENT_TYPE_LATEST, REGISTRY,
                               CollectorRegistry, Counter, Histogram, Info,
                               generate_latest)
from prometheus_client.multiprocess import MultiProcessCollector


def _exposition_registry():
    """Registry to expose: aggregated over workers when running multiprocess"""
    if not os.environ.get('PROMETHEUS_MULTIPROC_DIR'):
        return REGISTRY
    registry = CollectorRegistry()
    MultiProcessCollector(registry)
    return registry

# ============================================================================
# HTTP Request Metrics
# ============================================================================

http_requests_total = Counter(
    'http_requests_total',
    'Total number of HTTP requests',
    ['method', 'endpoint', 'status_code']
)

http_request_duration_seconds = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint', 'status_code'],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0)
)

http_errors_total = Counter(
    'http_errors_total',
    'Total number of HTTP errors',
    ['method', 'endpoint', 'status_code', 'error_type']
)

# ============================================================================
# Database Metrics
# ============================================================================

db_queries_total = Counter(
    'db_queries_total',
    'Total number of database queries',
    ['operation', 'table']
)

db_query_duration_seconds = Histogram(
    'db_query_duration_seconds',
    'Database query duration in seconds',
    ['operation', 'table'],
    buckets=(0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0)
)

# ============================================================================
# BOM pipeline Metrics
# ============================================================================

bom_documents_total = Counter(
    'bom_documents_total',
    'BOM documents processed by the import endpoint',
    ['status']  # status: 'imported', 'failed'
)

bom_modules_imported_total = Counter(
    'bom_modules_imported_total',
    'BOM entries created from imported modules'
)

catalog_fetches_total = Counter(
    'catalog_fetches_total',
    'Remote catalog fetches',
    ['catalog', 'status']  # catalog: 'module', 'global'; status: 'success', 'error'
)

catalog_fetch_duration_seconds = Histogram(
    'catalog_fetch_duration_seconds',
    'Remote catalog fetch duration in seconds',
    ['catalog'],
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0)
)

composite_source_failures_total = Counter(
    'composite_source_failures_total',
    'Composite record sources that could not be fetched',
    ['source']  # source: 'service', 'automation', 'catalog'
)

reports_rendered_total = Counter(
    'reports_rendered_total',
    'Compliance reports rendered',
    ['format']  # format: 'pdf', 'markdown'
)

report_render_duration_seconds = Histogram(
    'report_render_duration_seconds',
    'Compliance report render duration in seconds',
    ['format'],
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0)
)

app_info = Info(
    'architecture_builder',
    'Architecture Builder application information'
)
app_info.info({'version': '0.1.0'})


def get_metrics():
    """
    Get Prometheus metrics in text format

    Returns:
        bytes: Metrics in Prometheus text format
    """
    return generate_latest(_exposition_registry())


def get_metrics_content_type():
    return CONTENT_TYPE_LATEST
