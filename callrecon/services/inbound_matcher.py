"""
Inbound Matcher

This module searches a pool of inbound calls for the leg a queue transfer
landed on. A candidate matches when its callee_id_number equals the number
the queue is expected to ring and its called_time lies within the match
window around the anchor event. When nothing lies inside the window, the
closest identifier-only match is used instead, since PBX and CDR clocks are
known to drift apart.

Author: CallRecon Team
Date: 2026-10-18
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple

from callrecon.common.exceptions import HistoryParseError
from callrecon.common.timeutils import to_millis
from .queue_map import MatcherConfig

logger = logging.getLogger("inbound_matcher")


@dataclass(frozen=True)
class InboundMatch:
    """A selected inbound call and how it was found."""
    call: dict
    delta_ms: float
    fallback: bool = False


def call_id_of(record: Any) -> Optional[str]:
    """Call identifier, accepting both callid and call_id."""
    if not isinstance(record, dict):
        return None
    value = record.get('callid') or record.get('call_id')
    return str(value) if value not in (None, '') else None


def decode_raw_data(raw: Any) -> dict:
    """
    Decode an embedded raw_data payload.

    Raises:
        HistoryParseError: If raw_data is text that is not a JSON object
    """
    if raw is None or raw == '':
        return {}
    if isinstance(raw, dict):
        return raw
    if isinstance(raw, str):
        try:
            decoded = json.loads(raw)
        except json.JSONDecodeError as ex:
            raise HistoryParseError("raw_data is not valid JSON", {'error': str(ex)}) from ex
        if isinstance(decoded, dict):
            return decoded
    raise HistoryParseError("raw_data is not an object", {'type': type(raw).__name__})


def callee_identifier(call: dict) -> Optional[str]:
    """
    Callee number of an inbound call.

    Read from callee_id_number, then from raw_data. An unreadable raw_data
    means the identifier is absent for this call.
    """
    value = call.get('callee_id_number')
    if value in (None, ''):
        try:
            value = decode_raw_data(call.get('raw_data')).get('callee_id_number')
        except HistoryParseError as ex:
            logger.debug(f"call_id={call_id_of(call)} raw_data unreadable: {ex.message}")
            return None
    if value in (None, ''):
        return None
    return str(value).strip() or None


def called_time_ms(call: dict, threshold: int) -> Optional[float]:
    """called_time (or timestamp) of a call in milliseconds."""
    return to_millis(call.get('called_time') or call.get('timestamp'), threshold)


def _closest(
    candidates: List[Tuple[dict, float]],
    anchor_ms: float,
) -> Tuple[dict, float]:
    # sorted() is stable, so equal distances keep pool order.
    ranked = sorted(candidates, key=lambda item: abs(item[1] - anchor_ms))
    call, call_ms = ranked[0]
    return call, abs(call_ms - anchor_ms)


def match_inbound(
    anchor_timestamp: Any,
    expected_callee: Optional[str],
    candidates: Sequence[dict],
    config: Optional[MatcherConfig] = None,
) -> Optional[InboundMatch]:
    """
    Pick the inbound call a queue transfer was answered on.

    Args:
        anchor_timestamp: hold_start / lead_answer time, seconds or ms
        expected_callee: callee_id_number the queue rings, None if the
            queue is unmapped (time-only matching, no fallback)
        candidates: Inbound call pool; never modified
        config: Matching configuration

    Returns:
        InboundMatch: The closest candidate, or None
    """
    config = config or MatcherConfig()
    anchor_ms = to_millis(anchor_timestamp, config.millis_threshold)
    if anchor_ms is None or not candidates:
        return None

    expected = str(expected_callee) if expected_callee not in (None, '') else None

    identified: List[Tuple[dict, float]] = []
    for call in candidates:
        if not isinstance(call, dict):
            continue
        if expected is not None and callee_identifier(call) != expected:
            continue
        call_ms = called_time_ms(call, config.millis_threshold)
        if call_ms is None:
            continue
        identified.append((call, call_ms))

    in_window = [
        (call, call_ms) for call, call_ms in identified
        if abs(call_ms - anchor_ms) <= config.window_ms
    ]
    if in_window:
        call, delta = _closest(in_window, anchor_ms)
        return InboundMatch(call=call, delta_ms=delta)

    if expected is None or not identified:
        return None

    call, delta = _closest(identified, anchor_ms)
    logger.debug(
        f"No inbound call within {config.window_ms}ms for callee={expected}; "
        f"using call_id={call_id_of(call)} delta={delta / 1000:.1f}s"
    )
    return InboundMatch(call=call, delta_ms=delta, fallback=True)
