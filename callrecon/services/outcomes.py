"""
Transfer Match Outcomes

This module defines the structured events emitted once per transferred
record and the bus that fans them out to subscribers (logging, Prometheus,
Kafka). Subscribers observe results only; nothing they do feeds back into
matching.

Author: CallRecon Team
Date: 2026-10-18
"""

import logging
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Callable, List, Optional

logger = logging.getLogger("transfer_outcomes")


class MatchOutcome(str, Enum):
    MATCHED = 'matched'
    FALLBACK_MATCHED = 'fallback_matched'
    UNMATCHED = 'unmatched'
    DEFAULTED = 'defaulted'
    DIRECT_TRANSFER = 'direct_transfer'
    NO_ANCHOR = 'no_anchor'


@dataclass(frozen=True)
class TransferOutcomeEvent:
    """Outcome of reconciling one transferred call."""
    call_id: Optional[str]
    call_type: str
    outcome: MatchOutcome
    queue_extension: Optional[str] = None
    expected_callee: Optional[str] = None
    transfer_extension: Optional[str] = None
    source_call_id: Optional[str] = None
    delta_ms: Optional[float] = None

    def to_dict(self) -> dict:
        data = asdict(self)
        data['outcome'] = self.outcome.value
        return data


Subscriber = Callable[[TransferOutcomeEvent], None]


class OutcomeBus:
    """Synchronous fan-out of outcome events."""

    def __init__(self, subscribers: Optional[List[Subscriber]] = None):
        self._subscribers: List[Subscriber] = list(subscribers or [])

    def subscribe(self, subscriber: Subscriber) -> None:
        self._subscribers.append(subscriber)

    def publish(self, event: TransferOutcomeEvent) -> None:
        for subscriber in self._subscribers:
            try:
                subscriber(event)
            except Exception as ex:
                logger.error(
                    f"Outcome subscriber {getattr(subscriber, '__name__', subscriber)!r} "
                    f"failed for call_id={event.call_id}: {ex}"
                )


def log_outcome(event: TransferOutcomeEvent) -> None:
    """Logging subscriber."""
    level = logging.WARNING if event.outcome in (
        MatchOutcome.UNMATCHED, MatchOutcome.NO_ANCHOR
    ) else logging.INFO
    logger.log(
        level,
        f"call_id={event.call_id} type={event.call_type} outcome={event.outcome.value} "
        f"queue={event.queue_extension} callee={event.expected_callee} "
        f"ext={event.transfer_extension} source={event.source_call_id}"
    )


def default_bus() -> OutcomeBus:
    """Bus with only the logging subscriber attached."""
    return OutcomeBus([log_outcome])
