"""
Call and Agent Lookups

This module implements the storage lookups that surround a matching pass:
fetching call records as plain dicts and putting agent names on resolved
extensions. Nothing here takes part in matching decisions.

Author: CallRecon Team
Date: 2026-10-18
"""

import logging
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from sqlalchemy import and_, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from callrecon.common.models import AgentDetail, CallRecord
from callrecon.common.timeutils import MILLIS_THRESHOLD

logger = logging.getLogger("agent_directory")


def _called_between(start, end, scale):
    if scale == 1:
        bounds = [CallRecord.called_time < MILLIS_THRESHOLD]
    else:
        bounds = [CallRecord.called_time >= MILLIS_THRESHOLD]
    if start is not None:
        bounds.append(CallRecord.called_time >= start.timestamp() * scale)
    if end is not None:
        bounds.append(CallRecord.called_time <= end.timestamp() * scale)
    return and_(*bounds)


def fetch_calls_by_filter(
    session: Session,
    call_type: Optional[str] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> List[dict]:
    """
    Fetch call records as engine-shaped dicts.

    Args:
        session: Database session
        call_type: outbound, inbound or campaign; None for all
        start: Inclusive lower bound on called_time
        end: Inclusive upper bound on called_time

    Returns:
        List[dict]: Records ordered by called_time
    """
    stmt = select(CallRecord)
    if call_type:
        stmt = stmt.where(CallRecord.call_type == call_type)
    if start is not None or end is not None:
        # called_time is stored in seconds or milliseconds; accept both.
        stmt = stmt.where(or_(
            _called_between(start, end, 1),
            _called_between(start, end, 1000),
        ))
    stmt = stmt.order_by(CallRecord.called_time, CallRecord.id)

    return [row.to_record() for row in session.scalars(stmt)]


def get_agent_name_by_extension(session: Session, extension) -> Optional[str]:
    """
    Agent name for an extension.

    Returns:
        str: Agent name, or None if unknown or the lookup failed
    """
    if not extension:
        return None
    try:
        return session.scalars(
            select(AgentDetail.agent_name)
            .where(AgentDetail.extension == str(extension))
            .limit(1)
        ).first()
    except SQLAlchemyError as ex:
        logger.error(f"Agent lookup failed for extension {extension}: {ex}")
        return None


def get_agent_names_by_extensions(session: Session, extensions: Iterable) -> Dict[str, str]:
    """
    Batched agent name lookup.

    Returns:
        Dict[str, str]: extension -> agent name for the extensions found
    """
    wanted = sorted({str(ext) for ext in extensions or [] if ext})
    if not wanted:
        return {}
    try:
        rows = session.execute(
            select(AgentDetail.extension, AgentDetail.agent_name)
            .where(AgentDetail.extension.in_(wanted))
        )
        return {extension: name for extension, name in rows if name}
    except SQLAlchemyError as ex:
        logger.error(f"Agent lookup failed for {len(wanted)} extensions: {ex}")
        return {}


def attach_agent_names(records: List[dict], names: Dict[str, str]) -> List[dict]:
    """Copies of records with transfer_agent_name set where the agent is known."""
    named = []
    for record in records:
        if not isinstance(record, dict):
            named.append(record)
            continue
        record = dict(record)
        name = names.get(str(record.get('transfer_agent_extension') or ''))
        if name:
            record['transfer_agent_name'] = name
        named.append(record)
    return named
