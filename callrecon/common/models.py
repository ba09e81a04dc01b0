"""
SQLAlchemy Database Models

This module defines the database schema read by the CallRecon storage
collaborators: raw telephony call records (outbound, inbound and campaign
legs with their JSON histories) and the agent directory used to put names
on resolved extensions.

Author: CallRecon Team
Date: 2026-10-18
"""

from sqlalchemy import (
    JSON, BigInteger, Column, DateTime, Float, Integer, String
)
from sqlalchemy.sql import func

from callrecon.common.db import Base


class CallRecord(Base):
    """
    Represents one telephony session as exported by the PBX.

    Histories and raw_data are stored as JSON exactly as received;
    the matching engine normalizes them at read time.
    """
    __tablename__ = 'call_records'

    # Primary fields
    id = Column(BigInteger().with_variant(Integer, 'sqlite'), primary_key=True, autoincrement=True)
    callid = Column(String(64), unique=True, nullable=False)
    call_type = Column(
        String(16),
        nullable=False,
        index=True,
        comment='Direction tag: outbound, inbound, campaign'
    )
    called_time = Column(
        Float,
        index=True,
        comment='Unix time of the call, seconds or milliseconds'
    )

    # Party identifiers
    caller_id_number = Column(String(32))
    callee_id_number = Column(String(32), index=True)

    # Event histories
    agent_history = Column(JSON, comment='Agent-leg events (outbound/inbound)')
    lead_history = Column(JSON, comment='Lead events (campaign)')
    raw_data = Column(JSON)

    # Flat agent extension fields
    agent_answered_ext = Column(String(16))
    agent_ext = Column(String(16))
    extension = Column(String(16))

    # Audit fields
    created_at = Column(DateTime, server_default=func.now())

    def to_record(self) -> dict:
        """Return the plain dict shape consumed by the matching engine."""
        return {
            'callid': self.callid,
            'call_type': self.call_type,
            'called_time': self.called_time,
            'caller_id_number': self.caller_id_number,
            'callee_id_number': self.callee_id_number,
            'agent_history': self.agent_history,
            'lead_history': self.lead_history,
            'raw_data': self.raw_data,
            'agent_answered_ext': self.agent_answered_ext,
            'agent_ext': self.agent_ext,
            'extension': self.extension,
        }


class AgentDetail(Base):
    """
    Represents a call center agent reachable on an extension.
    """
    __tablename__ = 'agent_details'

    # Primary fields
    id = Column(BigInteger().with_variant(Integer, 'sqlite'), primary_key=True, autoincrement=True)
    extension = Column(String(16), unique=True, nullable=False)

    # Agent information
    agent_name = Column(String(128))

    # Audit fields
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(
        DateTime,
        server_default=func.now(),
        onupdate=func.now()
    )
