"""
Kafka Producer Management

Process-wide Kafka producer for transfer outcome events, plus the delivery
report callback attached to every outcome message.

Author: CallRecon Team
Date: 2026-10-18
"""

import logging

from confluent_kafka import Producer

from callrecon.common.config import settings

logger = logging.getLogger("kafka_producer")

_producer = None


def get_producer() -> Producer:
    """
    Get the shared producer, creating it on first use.

    Returns:
        confluent_kafka.Producer: Producer bound to settings.kafka_bootstrap
    """
    global _producer

    if _producer is None:
        _producer = Producer({
            'bootstrap.servers': settings.kafka_bootstrap,
            'client.id': 'callrecon-outcomes',
            'enable.idempotence': True,
            'retries': 5,
            'retry.backoff.ms': 100,
            'queue.buffering.max.ms': 100,
        })
        logger.info(f"Kafka producer connected to {settings.kafka_bootstrap}")

    return _producer


def reset_producer() -> None:
    """Drop the shared producer; the next get_producer() builds a new one."""
    global _producer
    _producer = None


def delivery_report(err, msg) -> None:
    """Log messages the broker rejected or that timed out."""
    if err is not None:
        logger.error(
            f"Delivery failed topic={msg.topic()} key={msg.key()!r}: {err}"
        )
