"""
Event History Scanner

This module reads a call's event history and locates the transfer that
matters for reconciliation together with its temporal anchor.

Features:
- Tolerant parsing of history events (JSON text, mixed timestamp units,
  numeric extensions)
- Call profiles describing the agent-call and campaign-call vocabularies
- Last-transfer / last-anchor-at-or-before selection

Author: CallRecon Team
Date: 2026-10-18
"""

import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, List, Optional, Sequence, Tuple

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from callrecon.common.exceptions import HistoryParseError
from callrecon.common.timeutils import MILLIS_THRESHOLD, to_millis
from .extensions import is_queue_extension

logger = logging.getLogger("history_scanner")


class HistoryEvent(BaseModel):
    """
    One entry of an agent_history / lead_history collection.

    Labels may sit in any of type, event or kind depending on the export.
    first_name / last_name are carried for diagnostics only.
    """

    model_config = ConfigDict(extra='allow', populate_by_name=True)

    type: Optional[str] = None
    event: Optional[str] = None
    kind: Optional[str] = None
    ext: Optional[str] = Field(None, validation_alias=AliasChoices('ext', 'extension'))
    last_attempt: Optional[float] = Field(
        None, validation_alias=AliasChoices('last_attempt', 'timestamp')
    )
    first_name: Optional[str] = None
    last_name: Optional[str] = None

    @field_validator('type', 'event', 'kind', 'ext', 'first_name', 'last_name', mode='before')
    @classmethod
    def _as_text(cls, value: Any) -> Optional[str]:
        if value is None or isinstance(value, (dict, list)):
            return None
        text = str(value).strip()
        return text or None

    @field_validator('last_attempt', mode='before')
    @classmethod
    def _as_number(cls, value: Any) -> Optional[float]:
        # Raw value is kept; unit normalization happens in timestamp_ms.
        if to_millis(value) is None:
            return None
        return float(value)

    @property
    def labels(self) -> Tuple[str, ...]:
        return tuple(label for label in (self.type, self.event, self.kind) if label)

    def has_label(self, label: str) -> bool:
        return label in self.labels

    def timestamp_ms(self, threshold: int = MILLIS_THRESHOLD) -> Optional[float]:
        return to_millis(self.last_attempt, threshold)


def decode_history(raw: Any) -> List[Any]:
    """
    Turn a stored history value into a list of raw entries.

    Raises:
        HistoryParseError: If the value is JSON text that does not decode
            to a list, or is some other non-collection type
    """
    if raw is None or raw == '':
        return []
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as ex:
            raise HistoryParseError("history is not valid JSON", {'error': str(ex)}) from ex
    if isinstance(raw, (list, tuple)):
        return list(raw)
    raise HistoryParseError(
        "history is not a list", {'type': type(raw).__name__}
    )


def parse_history(raw: Any) -> List[HistoryEvent]:
    """
    Parse a history collection, keeping stored order.

    Malformed history text yields an empty list; individual entries that
    are not mappings are skipped.
    """
    try:
        entries = decode_history(raw)
    except HistoryParseError as ex:
        logger.warning(f"Ignoring unreadable history: {ex.message} {ex.details}")
        return []

    events = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        try:
            events.append(HistoryEvent.model_validate(entry))
        except ValidationError as ex:
            logger.debug(f"Skipping history entry {entry!r}: {ex}")
    return events


def _is_agent_transfer(event: HistoryEvent) -> bool:
    labels = event.labels
    return bool(labels) and all(label == 'transfer' for label in labels)


def _is_campaign_transfer(event: HistoryEvent) -> bool:
    return event.has_label('Transfer') and is_queue_extension(event.ext)


@dataclass(frozen=True)
class CallProfile:
    """
    Describes how one call shape encodes transfers.

    Attributes:
        call_type: Tag used in logs and outcome events
        history_fields: Record fields holding the history, first present wins
        is_transfer: Predicate selecting transfer events
        anchor_label: Label of the event used as the temporal anchor
    """
    call_type: str
    history_fields: Tuple[str, ...]
    is_transfer: Callable[[HistoryEvent], bool]
    anchor_label: str

    def history_of(self, record: dict) -> Any:
        for name in self.history_fields:
            value = record.get(name)
            if value not in (None, '', []):
                return value
        return None


OUTBOUND_PROFILE = CallProfile(
    call_type='outbound',
    history_fields=('agent_history', 'event_history'),
    is_transfer=_is_agent_transfer,
    anchor_label='hold_start',
)

INBOUND_PROFILE = CallProfile(
    call_type='inbound',
    history_fields=('agent_history', 'event_history'),
    is_transfer=_is_agent_transfer,
    anchor_label='hold_start',
)

CAMPAIGN_PROFILE = CallProfile(
    call_type='campaign',
    history_fields=('lead_history',),
    is_transfer=_is_campaign_transfer,
    anchor_label='lead_answer',
)


class ScanStatus(str, Enum):
    NO_TRANSFER = 'no_transfer'
    DIRECT = 'direct'
    NO_ANCHOR = 'no_anchor'
    ANCHORED = 'anchored'


@dataclass(frozen=True)
class TransferScan:
    """Result of scanning one history."""
    status: ScanStatus
    transfer: Optional[HistoryEvent] = None
    anchor: Optional[HistoryEvent] = None

    @property
    def extension(self) -> Optional[str]:
        return self.transfer.ext if self.transfer is not None else None


def scan_transfer(
    events: Sequence[HistoryEvent],
    profile: CallProfile,
    threshold: int = MILLIS_THRESHOLD,
) -> TransferScan:
    """
    Find the authoritative transfer and its anchor in a history.

    The last transfer by time wins. The anchor is the latest event carrying
    the profile's anchor label whose time is at or before the transfer.

    Args:
        events: Parsed history events, any order
        profile: Call shape vocabulary
        threshold: Seconds/milliseconds boundary

    Returns:
        TransferScan: NO_TRANSFER, DIRECT (non-queue target), NO_ANCHOR
        or ANCHORED
    """
    transfers = [
        event for event in events
        if profile.is_transfer(event)
        and event.ext
        and event.timestamp_ms(threshold) is not None
    ]
    if not transfers:
        return TransferScan(ScanStatus.NO_TRANSFER)

    # Stable sort: equal timestamps keep stored order, so the later entry wins.
    transfers.sort(key=lambda event: event.timestamp_ms(threshold))
    transfer = transfers[-1]

    if not is_queue_extension(transfer.ext):
        return TransferScan(ScanStatus.DIRECT, transfer=transfer)

    transfer_ms = transfer.timestamp_ms(threshold)
    anchors = [
        event for event in events
        if event.has_label(profile.anchor_label)
        and event.timestamp_ms(threshold) is not None
        and event.timestamp_ms(threshold) <= transfer_ms
    ]
    if not anchors:
        return TransferScan(ScanStatus.NO_ANCHOR, transfer=transfer)

    anchors.sort(key=lambda event: event.timestamp_ms(threshold))
    return TransferScan(ScanStatus.ANCHORED, transfer=transfer, anchor=anchors[-1])


def scan_record(
    record: dict,
    profile: CallProfile,
    threshold: int = MILLIS_THRESHOLD,
) -> TransferScan:
    """Parse a record's history for the profile and scan it."""
    return scan_transfer(parse_history(profile.history_of(record)), profile, threshold)
