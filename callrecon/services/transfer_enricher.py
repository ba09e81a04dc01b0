"""
Transfer Enricher Service

This service stamps call records with the agent who ultimately answered a
transfer. Outbound, inbound and campaign calls share one pipeline that is
parameterized by a CallProfile:

- scan the history for the last transfer and its anchor
- direct (non-queue) transfers are final immediately
- queue transfers are mapped to the callee number the queue rings, matched
  against the inbound pool and resolved to the answering agent's extension

Input records are never modified; every result is a copy with the derived
transfer_* fields added.

Author: CallRecon Team
Date: 2026-10-18
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, List, Optional, Sequence, Tuple

from callrecon.common.exceptions import RecordShapeError
from .agent_extractor import extract_agent_extension
from .history_scanner import (
    CAMPAIGN_PROFILE, INBOUND_PROFILE, OUTBOUND_PROFILE,
    CallProfile, ScanStatus, scan_record,
)
from .inbound_matcher import call_id_of, match_inbound
from .outcomes import MatchOutcome, OutcomeBus, TransferOutcomeEvent, default_bus
from .queue_map import MatcherConfig

logger = logging.getLogger("transfer_enricher")

AGENT_EXTENSION_LABEL = 'Transfer to Agent Extension'


def _set_agent_extension(record: dict, extension: str) -> None:
    record['transfer_extension'] = extension
    record['transfer_agent_extension'] = extension
    record[AGENT_EXTENSION_LABEL] = extension


def reconcile_record(
    call: Any,
    inbound_calls: Sequence[dict],
    profile: CallProfile,
    config: MatcherConfig,
) -> Tuple[dict, Optional[TransferOutcomeEvent]]:
    """
    Reconcile one call record.

    Args:
        call: Source record
        inbound_calls: Candidate pool (read only)
        profile: Call shape vocabulary
        config: Matching configuration

    Returns:
        Tuple[dict, TransferOutcomeEvent]: Annotated copy, and the outcome
        event (None when the call has no transfer)

    Raises:
        RecordShapeError: If the record is not a mapping
    """
    if not isinstance(call, dict):
        raise RecordShapeError(
            "call record is not a mapping", {'type': type(call).__name__}
        )

    processed = dict(call)
    call_id = call_id_of(call)
    scan = scan_record(call, profile, config.millis_threshold)

    if scan.status is ScanStatus.NO_TRANSFER:
        return processed, None

    extension = scan.extension
    processed['transfer_event'] = True

    if scan.status is ScanStatus.DIRECT:
        _set_agent_extension(processed, extension)
        processed['transfer_match_outcome'] = MatchOutcome.DIRECT_TRANSFER.value
        return processed, TransferOutcomeEvent(
            call_id=call_id,
            call_type=profile.call_type,
            outcome=MatchOutcome.DIRECT_TRANSFER,
            transfer_extension=extension,
        )

    processed['transfer_queue_extension'] = extension
    processed['transfer_extension'] = extension
    expected_callee = config.resolve_callee(extension)

    if scan.status is ScanStatus.NO_ANCHOR:
        processed['transfer_match_outcome'] = MatchOutcome.NO_ANCHOR.value
        return processed, TransferOutcomeEvent(
            call_id=call_id,
            call_type=profile.call_type,
            outcome=MatchOutcome.NO_ANCHOR,
            queue_extension=extension,
            expected_callee=expected_callee,
            transfer_extension=extension,
        )

    # An inbound record never matches its own transfer.
    candidates = [
        candidate for candidate in inbound_calls
        if call_id is None or call_id_of(candidate) != call_id
    ]
    match = match_inbound(scan.anchor.last_attempt, expected_callee, candidates, config)
    agent_extension = extract_agent_extension(match.call) if match else None

    if agent_extension:
        outcome = MatchOutcome.FALLBACK_MATCHED if match.fallback else MatchOutcome.MATCHED
        source_call_id = call_id_of(match.call)
        _set_agent_extension(processed, agent_extension)
        processed['transfer_source_call_id'] = source_call_id
    else:
        default_agent = config.default_agent_for(extension)
        source_call_id = None
        if default_agent:
            outcome = MatchOutcome.DEFAULTED
            _set_agent_extension(processed, default_agent)
        else:
            outcome = MatchOutcome.UNMATCHED

    processed['transfer_match_outcome'] = outcome.value
    return processed, TransferOutcomeEvent(
        call_id=call_id,
        call_type=profile.call_type,
        outcome=outcome,
        queue_extension=extension,
        expected_callee=expected_callee,
        transfer_extension=processed['transfer_extension'],
        source_call_id=source_call_id,
        delta_ms=match.delta_ms if match else None,
    )


def _reconcile_safely(
    call: Any,
    inbound_calls: Sequence[dict],
    profile: CallProfile,
    config: MatcherConfig,
) -> Tuple[Any, Optional[TransferOutcomeEvent]]:
    try:
        return reconcile_record(call, inbound_calls, profile, config)
    except Exception as ex:
        logger.error(
            f"[{profile.call_type}] call_id={call_id_of(call)} left unreconciled: {ex}"
        )
        return (dict(call) if isinstance(call, dict) else call), None


def enrich_transfers(
    calls: Any,
    inbound_calls: Any,
    profile: CallProfile,
    config: Optional[MatcherConfig] = None,
    bus: Optional[OutcomeBus] = None,
    max_workers: int = 1,
) -> Any:
    """
    Reconcile a batch of calls against an inbound pool.

    Args:
        calls: Source records
        inbound_calls: Candidate inbound records (read only)
        profile: Call shape vocabulary
        config: Matching configuration, defaults to MatcherConfig()
        bus: Outcome event bus, defaults to the logging bus
        max_workers: >1 spreads records over a thread pool

    Returns:
        list: Annotated copies in input order, or ``calls`` unchanged if
        either argument is not a list/tuple
    """
    if not isinstance(calls, (list, tuple)) or not isinstance(inbound_calls, (list, tuple)):
        logger.warning(
            f"[{profile.call_type}] skipping batch: expected lists, got "
            f"{type(calls).__name__} and {type(inbound_calls).__name__}"
        )
        return calls

    config = config or MatcherConfig()
    bus = bus if bus is not None else default_bus()

    if max_workers > 1 and len(calls) > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            results = list(executor.map(
                lambda call: _reconcile_safely(call, inbound_calls, profile, config),
                calls,
            ))
    else:
        results = [_reconcile_safely(call, inbound_calls, profile, config) for call in calls]

    processed: List[Any] = []
    for record, event in results:
        processed.append(record)
        if event is not None:
            bus.publish(event)

    logger.debug(
        f"[{profile.call_type}] reconciled {len(processed)} calls "
        f"against {len(inbound_calls)} inbound candidates"
    )
    return processed


def process_outbound_transfers(outbound_calls, inbound_calls, config=None, bus=None, max_workers=1):
    """Outbound agent calls: transfer events in agent_history, anchored on hold_start."""
    return enrich_transfers(outbound_calls, inbound_calls, OUTBOUND_PROFILE, config, bus, max_workers)


def process_inbound_transfers(inbound_calls_to_process, all_inbound_calls, config=None, bus=None, max_workers=1):
    """Inbound agent calls re-transferred into a queue."""
    return enrich_transfers(inbound_calls_to_process, all_inbound_calls, INBOUND_PROFILE, config, bus, max_workers)


def process_campaign_transfers(campaign_calls, inbound_calls, config=None, bus=None, max_workers=1):
    """Campaign calls: Transfer events in lead_history, anchored on lead_answer."""
    return enrich_transfers(campaign_calls, inbound_calls, CAMPAIGN_PROFILE, config, bus, max_workers)
