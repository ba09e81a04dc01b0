"""
Prometheus metrics for transfer reconciliation.

record_outcome_metrics is an OutcomeBus subscriber; serve_metrics exposes
the default registry when a metrics port is configured.
"""

import logging

from prometheus_client import Counter, Histogram, start_http_server

from .outcomes import TransferOutcomeEvent

logger = logging.getLogger("transfer_metrics")

TRANSFER_OUTCOMES = Counter(
    'transfer_outcomes_total',
    'Transferred calls by reconciliation outcome',
    ['call_type', 'outcome']
)
MATCH_DELTA_SECONDS = Histogram(
    'transfer_match_delta_seconds',
    'Distance between anchor event and matched inbound call',
    ['call_type'],
    buckets=(1, 5, 15, 30, 60, 120, 300, 900, 3600)
)


def record_outcome_metrics(event: TransferOutcomeEvent) -> None:
    """Count the outcome and observe the match distance when there is one."""
    TRANSFER_OUTCOMES.labels(
        call_type=event.call_type,
        outcome=event.outcome.value,
    ).inc()
    if event.delta_ms is not None and event.source_call_id is not None:
        MATCH_DELTA_SECONDS.labels(call_type=event.call_type).observe(event.delta_ms / 1000)


def serve_metrics(port: int) -> bool:
    """Start the Prometheus HTTP server if port > 0."""
    if port <= 0:
        return False
    start_http_server(port)
    logger.info(f"Prometheus metrics server started on :{port}")
    return True
