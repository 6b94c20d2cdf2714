"""
Case message log
"""
from sqlalchemy.orm import Session
from typing import Optional, Dict, Any, List
from academy_support.models.case import CaseMessage, MessageSender, MessageType
import uuid


def log_message(
    db: Session,
    case_id: uuid.UUID,
    sender: MessageSender,
    content: str,
    channel_message_id: Optional[str] = None,
    message_type: MessageType = MessageType.TEXT,
    metadata: Optional[Dict[str, Any]] = None
) -> CaseMessage:
    """Append one message row to the case"""
    message = CaseMessage(
        case_id=case_id,
        sender=sender,
        content=content,
        channel_message_id=str(channel_message_id) if channel_message_id is not None else None,
        message_type=message_type,
        message_metadata=metadata or {}
    )
    db.add(message)
    db.commit()
    db.refresh(message)
    return message


def recent_messages(
    db: Session,
    case_id: uuid.UUID,
    limit: int,
    exclude_id: Optional[uuid.UUID] = None
) -> List[CaseMessage]:
    """Latest messages for the case in chronological order"""
    query = db.query(CaseMessage).filter(CaseMessage.case_id == case_id)
    if exclude_id is not None:
        query = query.filter(CaseMessage.id != exclude_id)
    latest = query.order_by(CaseMessage.created_at.desc()).limit(limit).all()
    return list(reversed(latest))
