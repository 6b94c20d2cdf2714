"""
Case resolution service

Finds or creates the single open support case for an external channel
identity (Telegram chat id or Vapi call id).
"""
import logging
from datetime import datetime
from sqlalchemy.orm import Session
from typing import Optional
from academy_support.models.case import SupportCase, Channel, CaseStatus, AgentPersona, OPEN_STATUSES

logger = logging.getLogger(__name__)


def find_open_case(db: Session, channel: Channel, external_id: str) -> Optional[SupportCase]:
    """Most recently created active/escalated case for the identity, if any"""
    return db.query(SupportCase).filter(
        SupportCase.channel == channel,
        SupportCase.external_id == str(external_id),
        SupportCase.status.in_(OPEN_STATUSES)
    ).order_by(SupportCase.created_at.desc()).first()


def resolve_case(
    db: Session,
    channel: Channel,
    external_id: str,
    display_name: Optional[str] = None,
    telegram_user_id: Optional[int] = None,
    vapi_call_id: Optional[str] = None,
    user_id: Optional[str] = None
) -> SupportCase:
    """
    Get the open case for an identity, creating one if none exists

    No locking: simultaneous first messages from one identity can each
    create a case.
    """
    case = find_open_case(db, channel, external_id)
    if case:
        logger.debug("Found existing case %s for %s:%s", case.id, channel.value, external_id)
        return case

    case = SupportCase(
        channel=channel,
        external_id=str(external_id),
        telegram_user_id=telegram_user_id,
        telegram_username=display_name,
        vapi_call_id=vapi_call_id,
        user_id=user_id,
        status=CaseStatus.ACTIVE,
        current_agent=AgentPersona.MORPHEUS
    )
    db.add(case)
    db.commit()
    db.refresh(case)

    logger.info("Created new case %s for %s:%s", case.id, channel.value, external_id)
    return case


def touch_case(db: Session, case: SupportCase) -> SupportCase:
    """Record inbound activity on the case"""
    case.updated_at = datetime.utcnow()
    db.commit()
    return case
