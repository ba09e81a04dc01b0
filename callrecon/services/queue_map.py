"""
Queue to callee mapping and matcher configuration.

A queue transfer re-enters the PBX as a new inbound call whose
callee_id_number is fixed per queue. MatcherConfig carries that table,
together with the other matching knobs, as an immutable value that is
passed into the engine explicitly.

Author: CallRecon Team
Date: 2026-10-18
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional

from callrecon.common.config import DEFAULT_QUEUE_CALLEE_MAP, Settings
from callrecon.common.timeutils import MILLIS_THRESHOLD

DEFAULT_MATCH_WINDOW_MS = 2 * 60 * 1000


def _frozen(mapping: Optional[Mapping[str, str]]) -> Mapping[str, str]:
    return MappingProxyType({str(k): str(v) for k, v in (mapping or {}).items()})


@dataclass(frozen=True)
class MatcherConfig:
    """
    Immutable matching configuration.

    Attributes:
        queue_callee_map: queue extension -> expected inbound callee_id_number
        default_agents: queue extension -> agent extension used when no
            inbound leg yields one (empty unless configured)
        window_ms: allowed |called_time - anchor| for the primary pass
        millis_threshold: seconds/milliseconds boundary for timestamps
    """
    queue_callee_map: Mapping[str, str] = field(
        default_factory=lambda: _frozen(DEFAULT_QUEUE_CALLEE_MAP)
    )
    default_agents: Mapping[str, str] = field(default_factory=lambda: _frozen({}))
    window_ms: int = DEFAULT_MATCH_WINDOW_MS
    millis_threshold: int = MILLIS_THRESHOLD

    def __post_init__(self):
        # Callers may hand in plain dicts; freeze copies of them.
        object.__setattr__(self, 'queue_callee_map', _frozen(self.queue_callee_map))
        object.__setattr__(self, 'default_agents', _frozen(self.default_agents))

    @classmethod
    def from_settings(cls, settings: Settings) -> 'MatcherConfig':
        """Build the config from application settings."""
        return cls(
            queue_callee_map=settings.queue_callee_map,
            default_agents=settings.queue_default_agents,
            window_ms=settings.match_window_ms,
            millis_threshold=settings.millis_threshold,
        )

    def resolve_callee(self, queue_extension) -> Optional[str]:
        """Expected callee_id_number for a queue, None when unmapped."""
        if queue_extension is None:
            return None
        return self.queue_callee_map.get(str(queue_extension))

    def default_agent_for(self, queue_extension) -> Optional[str]:
        """Configured fallback agent extension for a queue, if any."""
        if queue_extension is None:
            return None
        return self.default_agents.get(str(queue_extension))
