"""Pytest configuration and fixtures."""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from callrecon.common.db import Base
from callrecon.common import models  # noqa: F401 - registers tables
from callrecon.services.outcomes import OutcomeBus
from callrecon.services.queue_map import MatcherConfig

# Base call time, Unix seconds
T0 = 1_792_317_600


@pytest.fixture
def matcher_config():
    """Default matching configuration."""
    return MatcherConfig()


@pytest.fixture
def recorded_events():
    """Outcome bus that keeps every event it receives."""
    events = []
    return OutcomeBus([events.append]), events


@pytest.fixture
def make_outbound():
    """Factory for outbound calls transferred to a queue."""
    def _create(callid="out-1", queue="8001", hold_at=T0, transfer_at=T0 + 5, **extra):
        history = []
        if hold_at is not None:
            history.append({
                "type": "agent", "event": "hold_start", "ext": "1001",
                "last_attempt": hold_at, "first_name": "Ana", "last_name": "Lee",
            })
        history.append({
            "type": "transfer", "event": "transfer", "ext": queue,
            "last_attempt": transfer_at,
        })
        record = {
            "callid": callid,
            "call_type": "outbound",
            "called_time": (hold_at or transfer_at) - 60,
            "agent_history": history,
        }
        record.update(extra)
        return record
    return _create


@pytest.fixture
def make_inbound():
    """Factory for inbound candidate calls."""
    def _create(callid="in-1", callee="7014", called_time=T0 + 10, agent_ext="1002", **extra):
        record = {
            "callid": callid,
            "call_type": "inbound",
            "called_time": called_time,
            "callee_id_number": callee,
            "agent_history": [
                {"type": "agent", "event": "answer", "ext": agent_ext}
            ] if agent_ext else [],
        }
        record.update(extra)
        return record
    return _create


@pytest.fixture
def db_session():
    """In-memory SQLite session with the CallRecon schema."""
    engine = create_engine("sqlite://")
    Base.metadata.create_all(engine)
    with Session(engine) as session:
        yield session
    engine.dispose()
