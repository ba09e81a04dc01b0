"""
Transfer Reconciliation Pass

This module runs one reconciliation pass over a time window: it loads
outbound, inbound and campaign calls from the database, reconciles all
three shapes against the inbound pool, and puts agent names on the
resolved extensions.

Features:
- Single-window batch pass, independent of any previous run
- Outcome events to logs, Prometheus and (optionally) Kafka
- Per-outcome summary at the end of the pass

Usage:
    python -m callrecon.services.transfer_pass

Author: CallRecon Team
Date: 2026-10-18
"""

import datetime as dt
import logging
from collections import Counter
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from callrecon.common.config import settings
from callrecon.common.db import get_session, init_engine
from .agent_directory import (
    attach_agent_names, fetch_calls_by_filter, get_agent_names_by_extensions,
)
from .metrics import record_outcome_metrics, serve_metrics
from .outcome_publisher import KafkaOutcomePublisher
from .outcomes import OutcomeBus, TransferOutcomeEvent, log_outcome
from .queue_map import MatcherConfig
from .transfer_enricher import (
    process_campaign_transfers, process_inbound_transfers, process_outbound_transfers,
)

logger = logging.getLogger("transfer_pass")


def run_transfer_pass(
    session: Session,
    start: Optional[dt.datetime],
    end: Optional[dt.datetime],
    config: Optional[MatcherConfig] = None,
    bus: Optional[OutcomeBus] = None,
    max_workers: int = 1,
) -> Dict[str, List[dict]]:
    """
    Reconcile every call in a window.

    Args:
        session: Database session
        start: Window start (inclusive)
        end: Window end (inclusive)
        config: Matching configuration
        bus: Outcome event bus
        max_workers: Threads used per call shape

    Returns:
        Dict[str, List[dict]]: Annotated records keyed by call type
    """
    outbound = fetch_calls_by_filter(session, 'outbound', start, end)
    inbound = fetch_calls_by_filter(session, 'inbound', start, end)
    campaign = fetch_calls_by_filter(session, 'campaign', start, end)
    logger.info(
        f"Loaded outbound={len(outbound)} inbound={len(inbound)} "
        f"campaign={len(campaign)} for {start} -> {end}"
    )

    results = {
        'outbound': process_outbound_transfers(outbound, inbound, config, bus, max_workers),
        'inbound': process_inbound_transfers(inbound, inbound, config, bus, max_workers),
        'campaign': process_campaign_transfers(campaign, inbound, config, bus, max_workers),
    }

    extensions = {
        record.get('transfer_agent_extension')
        for records in results.values()
        for record in records
        if isinstance(record, dict)
    }
    names = get_agent_names_by_extensions(session, extensions)

    return {
        call_type: attach_agent_names(records, names)
        for call_type, records in results.items()
    }


def main() -> Dict[str, int]:
    """
    Run a pass over the last ``pass_lookback_hours``.

    Returns:
        Dict[str, int]: Count of records per outcome
    """
    logging.basicConfig(level=settings.log_level)
    init_engine()
    serve_metrics(settings.metrics_port)

    summary: Counter = Counter()

    def count_outcome(event: TransferOutcomeEvent) -> None:
        summary[event.outcome.value] += 1

    bus = OutcomeBus([log_outcome, record_outcome_metrics, count_outcome])
    publisher = None
    if settings.publish_outcomes:
        publisher = KafkaOutcomePublisher()
        bus.subscribe(publisher)

    end = dt.datetime.now(dt.timezone.utc).replace(microsecond=0)
    start = end - dt.timedelta(hours=settings.pass_lookback_hours)

    with get_session() as session:
        results = run_transfer_pass(
            session,
            start,
            end,
            config=MatcherConfig.from_settings(settings),
            bus=bus,
            max_workers=settings.match_max_workers,
        )

    if publisher is not None:
        publisher.flush()

    total = sum(len(records) for records in results.values())
    logger.info(f"Transfer pass done: {total} calls, outcomes={dict(summary)}")
    return dict(summary)


if __name__ == '__main__':
    main()
