"""Tests for storage lookups and the reconciliation pass."""

import datetime as dt
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from conftest import T0

from callrecon.common import db
from callrecon.common.config import settings
from callrecon.common.init_db import create_tables
from callrecon.common.models import AgentDetail, CallRecord
from callrecon.services import transfer_pass
from callrecon.services.agent_directory import (
    attach_agent_names,
    fetch_calls_by_filter,
    get_agent_name_by_extension,
    get_agent_names_by_extensions,
)
from callrecon.services.outcomes import OutcomeBus


def _utc(seconds):
    return dt.datetime.fromtimestamp(seconds, tz=dt.timezone.utc)


def _seed_transfer(session, base=T0):
    session.add_all([
        CallRecord(
            callid="out-1",
            call_type="outbound",
            called_time=base - 60,
            agent_history=[
                {"type": "agent", "event": "hold_start", "ext": "1001", "last_attempt": base},
                {"type": "transfer", "event": "transfer", "ext": "8001", "last_attempt": base + 5},
            ],
        ),
        CallRecord(
            callid="in-1",
            call_type="inbound",
            called_time=(base + 10) * 1000,
            callee_id_number="7014",
            agent_history=[{"type": "agent", "event": "answer", "ext": "1002"}],
        ),
        CallRecord(
            callid="camp-1",
            call_type="campaign",
            called_time=base - 30,
            lead_history=[{"type": "lead_answer", "last_attempt": base}],
        ),
        AgentDetail(extension="1002", agent_name="Bo Chen"),
    ])
    session.commit()


class TestFetchCallsByFilter:
    """Test suite for call record queries."""

    @pytest.fixture(autouse=True)
    def seed(self, db_session):
        db_session.add_all([
            CallRecord(callid="s-in", call_type="inbound", called_time=T0),
            CallRecord(callid="ms-in", call_type="inbound", called_time=(T0 + 100) * 1000),
            CallRecord(callid="old-in", call_type="inbound", called_time=T0 - 7200),
            CallRecord(callid="old-ms", call_type="inbound", called_time=(T0 - 7200) * 1000),
            CallRecord(callid="s-out", call_type="outbound", called_time=T0 + 5),
        ])
        db_session.commit()

    def test_filters_by_call_type(self, db_session):
        records = fetch_calls_by_filter(db_session, call_type="outbound")

        assert [record["callid"] for record in records] == ["s-out"]

    def test_window_accepts_seconds_and_milliseconds(self, db_session):
        """Test both storage units are compared against the same window."""
        records = fetch_calls_by_filter(
            db_session, "inbound", start=_utc(T0 - 60), end=_utc(T0 + 3600)
        )

        assert {record["callid"] for record in records} == {"s-in", "ms-in"}

    def test_open_ended_window(self, db_session):
        records = fetch_calls_by_filter(db_session, "inbound", start=_utc(T0 - 60))

        assert {record["callid"] for record in records} == {"s-in", "ms-in"}

    def test_records_are_engine_shaped(self, db_session):
        [record] = fetch_calls_by_filter(db_session, "outbound")

        assert isinstance(record, dict)
        assert record["called_time"] == T0 + 5
        assert record["agent_history"] is None


class TestAgentNames:
    """Test suite for agent directory lookups."""

    @pytest.fixture(autouse=True)
    def seed(self, db_session):
        db_session.add_all([
            AgentDetail(extension="1002", agent_name="Bo Chen"),
            AgentDetail(extension="1003", agent_name="Ana Lee"),
        ])
        db_session.commit()

    def test_single_lookup(self, db_session):
        assert get_agent_name_by_extension(db_session, 1002) == "Bo Chen"
        assert get_agent_name_by_extension(db_session, "9999") is None
        assert get_agent_name_by_extension(db_session, None) is None

    def test_batched_lookup(self, db_session):
        names = get_agent_names_by_extensions(db_session, ["1002", "1003", "9999", None])

        assert names == {"1002": "Bo Chen", "1003": "Ana Lee"}

    def test_lookup_failure_degrades(self):
        """Test a database error yields no names instead of raising."""
        session = MagicMock()
        session.execute.side_effect = OperationalError("select", {}, Exception("gone"))
        session.scalars.side_effect = OperationalError("select", {}, Exception("gone"))

        assert get_agent_names_by_extensions(session, ["1002"]) == {}
        assert get_agent_name_by_extension(session, "1002") is None

    def test_attach_agent_names(self):
        records = [
            {"callid": "a", "transfer_agent_extension": "1002"},
            {"callid": "b", "transfer_agent_extension": "4040"},
            {"callid": "c"},
            "junk",
        ]

        named = attach_agent_names(records, {"1002": "Bo Chen"})

        assert named[0]["transfer_agent_name"] == "Bo Chen"
        assert "transfer_agent_name" not in named[1]
        assert "transfer_agent_name" not in named[2]
        assert named[3] == "junk"
        assert "transfer_agent_name" not in records[0]


class TestTransferPass:
    """Test suite for the batch reconciliation pass."""

    def test_run_transfer_pass(self, db_session, recorded_events):
        bus, events = recorded_events
        _seed_transfer(db_session)

        results = transfer_pass.run_transfer_pass(db_session, None, None, bus=bus)

        [outbound] = results["outbound"]
        assert outbound["transfer_extension"] == "1002"
        assert outbound["transfer_source_call_id"] == "in-1"
        assert outbound["transfer_agent_name"] == "Bo Chen"
        assert "transfer_event" not in results["inbound"][0]
        assert "transfer_event" not in results["campaign"][0]
        assert [event.outcome.value for event in events] == ["matched"]

    def test_pass_respects_window(self, db_session):
        _seed_transfer(db_session)

        results = transfer_pass.run_transfer_pass(
            db_session, _utc(T0 + 3600), _utc(T0 + 7200), bus=OutcomeBus()
        )

        assert results == {"outbound": [], "inbound": [], "campaign": []}


@pytest.fixture
def configured_database(tmp_path, monkeypatch):
    """File-backed SQLite database wired into the engine singleton."""
    monkeypatch.setattr(settings, "database_url", f"sqlite:///{tmp_path / 'calls.db'}")
    db.reset_engine()
    yield
    db.reset_engine()


class TestDatabaseSetup:
    """Test suite for engine setup and the pass entry point."""

    def test_init_engine_requires_url(self, monkeypatch):
        monkeypatch.setattr(settings, "database_url", None)
        db.reset_engine()

        with pytest.raises(RuntimeError, match="DATABASE_URL"):
            db.init_engine()

    def test_create_tables(self, configured_database):
        create_tables()

        with db.get_session() as session:
            assert fetch_calls_by_filter(session) == []

    def test_main_runs_over_lookback_window(self, configured_database, monkeypatch):
        monkeypatch.setattr(settings, "metrics_port", 0)
        monkeypatch.setattr(settings, "publish_outcomes", False)
        create_tables()
        now = dt.datetime.now(dt.timezone.utc).timestamp() - 600
        with db.get_session() as session:
            _seed_transfer(session, base=now)

        summary = transfer_pass.main()

        assert summary == {"matched": 1}
