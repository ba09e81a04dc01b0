"""
Kafka publisher for transfer outcome events.

Each event is produced as JSON keyed by the source call id so consumers
see all outcomes of one call on one partition.
"""

import json
import logging
from typing import Optional

from callrecon.common.config import settings
from .kafka_producer import delivery_report, get_producer
from .outcomes import TransferOutcomeEvent

logger = logging.getLogger("outcome_publisher")


class KafkaOutcomePublisher:
    """OutcomeBus subscriber producing to the outcomes topic."""

    def __init__(self, producer=None, topic: Optional[str] = None):
        self.producer = producer if producer is not None else get_producer()
        self.topic = topic or settings.topic_transfer_outcomes
        self.published = 0

    def __call__(self, event: TransferOutcomeEvent) -> None:
        self.producer.produce(
            self.topic,
            key=event.call_id or '',
            value=json.dumps(event.to_dict()),
            on_delivery=delivery_report,
        )
        # Serve delivery callbacks without blocking
        self.producer.poll(0)
        self.published += 1

    def flush(self, timeout: float = 10.0) -> int:
        """Flush pending messages; returns the number still queued."""
        remaining = self.producer.flush(timeout)
        if remaining:
            logger.warning(f"{remaining} outcome messages not delivered to {self.topic}")
        return remaining
