"""
Configuration Management

This module provides application-wide configuration settings using
Pydantic Settings for the CallRecon transfer reconciliation system.

Environment variables are loaded from .env file and can be overridden
by system environment variables. Mapping settings (queue tables) accept
JSON, e.g. QUEUE_DEFAULT_AGENTS='{"8001": "1002"}'.

Author: CallRecon Team
Date: 2026-10-18
"""

from typing import Dict

from pydantic_settings import BaseSettings


# Queue extension -> callee_id_number expected on the inbound leg
DEFAULT_QUEUE_CALLEE_MAP: Dict[str, str] = {
    '8000': '7020',
    '8001': '7014',
    '8002': '7015',
    '8003': '7016',
    '8004': '7012',
    '8005': '7017',
    '8006': '7018',
    '8007': '7019',
    '8008': '7021',
    '8009': '7034',
    '8010': '7023',
    '8011': '7028',
    '8012': '7029',
    '8013': '7031',
    '8014': '7033',
    '8015': '7030',
    '8016': '7013',
    '8017': '7011',
    '8018': '7010',
    '8019': '7008',
}


class Settings(BaseSettings):
    """
    Application configuration settings.

    All settings can be overridden via environment variables.
    Settings are loaded from .env file by default.
    """

    # Database configuration
    database_url: str | None = None
    db_pool_size: int = 10
    db_max_overflow: int = 20

    # Kafka configuration
    kafka_bootstrap: str = "localhost:9092"
    topic_transfer_outcomes: str = "transfers.outcomes"
    publish_outcomes: bool = False

    # Prometheus metrics port (if >0 then enabled)
    metrics_port: int = 0

    # Matching configuration
    match_window_ms: int = 120_000      # +/- window around the anchor event
    millis_threshold: int = 10_000_000_000  # below this a timestamp is seconds
    queue_callee_map: Dict[str, str] = dict(DEFAULT_QUEUE_CALLEE_MAP)
    queue_default_agents: Dict[str, str] = {}
    match_max_workers: int = 1

    # Pass runner configuration
    pass_lookback_hours: int = 24
    log_level: str = "INFO"

    class Config:
        """Pydantic configuration."""
        env_file = ".env"


# Global settings instance
settings = Settings()
