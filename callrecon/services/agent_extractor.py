"""
Agent extension extraction from a matched inbound call.
"""

from typing import Optional

from .history_scanner import parse_history

# Flat fields checked after the history, in order.
AGENT_EXTENSION_FIELDS = ('agent_answered_ext', 'agent_ext', 'extension')


def extract_agent_extension(call: dict) -> Optional[str]:
    """
    Extension of the agent who answered an inbound call.

    The first history entry (stored order) carrying an extension wins,
    then agent_answered_ext, agent_ext and extension.

    Returns:
        str: The extension as a string, or None
    """
    if not isinstance(call, dict):
        return None

    for name in ('agent_history', 'event_history'):
        for event in parse_history(call.get(name)):
            if event.ext:
                return event.ext

    for name in AGENT_EXTENSION_FIELDS:
        value = call.get(name)
        if value not in (None, ''):
            text = str(value).strip()
            if text:
                return text

    return None
