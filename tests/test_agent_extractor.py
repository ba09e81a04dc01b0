"""Unit tests for agent extension extraction."""

import json

import pytest

from callrecon.services.agent_extractor import extract_agent_extension


class TestExtractAgentExtension:
    """Test suite for extract_agent_extension precedence."""

    def test_first_history_entry_with_extension(self):
        """Test the first entry carrying ext wins, in stored order."""
        call = {
            "agent_history": [
                {"event": "ring", "first_name": "Queue"},
                {"event": "answer", "ext": "1002", "last_attempt": 50},
                {"event": "answer", "ext": "1003", "last_attempt": 10},
            ],
            "agent_answered_ext": "1999",
        }

        assert extract_agent_extension(call) == "1002"

    def test_history_stored_as_json_text(self):
        call = {"agent_history": json.dumps([{"event": "answer", "ext": 1004}])}

        assert extract_agent_extension(call) == "1004"

    @pytest.mark.parametrize("field,value", [
        ("agent_answered_ext", "1010"),
        ("agent_ext", "1011"),
        ("extension", "1012"),
    ])
    def test_flat_fields(self, field, value):
        assert extract_agent_extension({"agent_history": [], field: value}) == value

    def test_flat_field_precedence(self):
        call = {"agent_ext": "1011", "extension": "1012", "agent_answered_ext": "1010"}

        assert extract_agent_extension(call) == "1010"

    def test_empty_values_are_skipped(self):
        call = {"agent_history": [{"ext": ""}], "agent_answered_ext": "", "agent_ext": 1011}

        assert extract_agent_extension(call) == "1011"

    def test_result_is_string(self):
        assert extract_agent_extension({"extension": 1012}) == "1012"

    def test_nothing_found(self):
        assert extract_agent_extension({"agent_history": [{"event": "answer"}]}) is None

    def test_non_mapping(self):
        assert extract_agent_extension(None) is None
