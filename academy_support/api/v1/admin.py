"""
Admin console API: cases, messages, operator replies, telemetry and calls
"""
import html
import logging
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any
from datetime import datetime
import uuid

from academy_support.api.deps import require_admin
from academy_support.core.database import get_db
from academy_support.core.errors import ChannelDeliveryError, InvalidTransition
from academy_support.models.call import Call
from academy_support.models.case import (
    SupportCase, CaseMessage, Channel, CaseStatus, AgentPersona, MessageSender, MessageType
)
from academy_support.models.telemetry import TelemetryEvent, TelemetrySource, TelemetryLevel
from academy_support.services.agent_router import AgentRouter
from academy_support.services.case_resolver import touch_case
from academy_support.services.message_log import log_message
from academy_support.services.personas import TEMPLATES
from academy_support.services.sanitizer import sanitize_text
from academy_support.services.telegram_client import TelegramClient, get_telegram_client
from academy_support.services.telemetry_service import log_telemetry

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_admin)])


class CaseUpdateRequest(BaseModel):
    current_agent: Optional[AgentPersona] = None
    status: Optional[CaseStatus] = None


class OperatorReplyRequest(BaseModel):
    text: str = Field(min_length=1)


class CaseResponse(BaseModel):
    id: uuid.UUID
    channel: str
    external_id: str
    telegram_username: Optional[str]
    case_type: Optional[str]
    priority: str
    status: str
    current_agent: str
    summary: Optional[str]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class CaseMessageResponse(BaseModel):
    id: uuid.UUID
    sender: str
    content: str
    message_type: str
    channel_message_id: Optional[str]
    metadata: Optional[Dict[str, Any]]
    created_at: datetime


def _case_response(case: SupportCase) -> CaseResponse:
    return CaseResponse(
        id=case.id,
        channel=case.channel.value,
        external_id=case.external_id,
        telegram_username=case.telegram_username,
        case_type=case.case_type.value if case.case_type else None,
        priority=case.priority.value,
        status=case.status.value,
        current_agent=case.current_agent.value,
        summary=case.summary,
        created_at=case.created_at,
        updated_at=case.updated_at
    )


def _message_response(message: CaseMessage) -> CaseMessageResponse:
    return CaseMessageResponse(
        id=message.id,
        sender=message.sender.value,
        content=message.content,
        message_type=message.message_type.value,
        channel_message_id=message.channel_message_id,
        metadata=message.message_metadata,
        created_at=message.created_at
    )


def _get_case_or_404(db: Session, case_id: uuid.UUID) -> SupportCase:
    case = db.query(SupportCase).filter(SupportCase.id == case_id).first()
    if not case:
        raise HTTPException(status_code=404, detail="Case not found")
    return case


@router.get("/cases", response_model=List[CaseResponse])
async def list_cases(
    status: Optional[CaseStatus] = None,
    channel: Optional[Channel] = None,
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db)
):
    """List support cases, most recently updated first"""
    query = db.query(SupportCase)
    if status:
        query = query.filter(SupportCase.status == status)
    if channel:
        query = query.filter(SupportCase.channel == channel)
    cases = query.order_by(SupportCase.updated_at.desc()).limit(limit).all()
    return [_case_response(case) for case in cases]


@router.get("/cases/{case_id}/messages", response_model=List[CaseMessageResponse])
async def list_case_messages(
    case_id: uuid.UUID,
    db: Session = Depends(get_db)
):
    """Case thread in chronological order"""
    _get_case_or_404(db, case_id)
    messages = db.query(CaseMessage).filter(
        CaseMessage.case_id == case_id
    ).order_by(CaseMessage.created_at).all()
    return [_message_response(message) for message in messages]


@router.patch("/cases/{case_id}", response_model=CaseResponse)
async def update_case(
    case_id: uuid.UUID,
    request: CaseUpdateRequest,
    db: Session = Depends(get_db)
):
    """Reassign the agent persona or change the case status"""
    case = _get_case_or_404(db, case_id)
    try:
        state = AgentRouter(db).assign(case, persona=request.current_agent, status=request.status)
    except InvalidTransition as e:
        raise HTTPException(status_code=409, detail=str(e))

    log_telemetry(
        db,
        TelemetrySource.ADMIN,
        "case_updated",
        payload={"status": state.status.value, "current_agent": state.persona.value},
        case_id=case.id
    )
    return _case_response(case)


@router.post("/cases/{case_id}/reply", response_model=CaseMessageResponse)
async def reply_to_case(
    case_id: uuid.UUID,
    request: OperatorReplyRequest,
    db: Session = Depends(get_db),
    telegram: TelegramClient = Depends(get_telegram_client)
):
    """
    Post a human operator reply

    The reply is logged first; for Telegram cases it is then delivered to
    the chat. A failed delivery answers 502 and leaves the logged message.
    """
    case = _get_case_or_404(db, case_id)
    text = sanitize_text(request.text)
    if not text:
        raise HTTPException(status_code=400, detail="Invalid payload")

    message = log_message(db, case.id, MessageSender.OPERATOR, text, message_type=MessageType.TEXT)
    touch_case(db, case)

    if case.channel == Channel.TELEGRAM:
        try:
            result = await telegram.send_message(
                int(case.external_id),
                TEMPLATES["operator_reply"].format(text=html.escape(text, quote=False))
            )
        except ChannelDeliveryError as e:
            logger.error("Operator reply delivery failed for case %s: %s", case.id, e)
            log_telemetry(
                db,
                TelemetrySource.ADMIN,
                "send_failed",
                payload={"error": str(e), "details": e.details},
                level=TelemetryLevel.ERROR,
                case_id=case.id
            )
            raise HTTPException(status_code=502, detail="Failed to send message")

        if result.get("message_id") is not None:
            message.channel_message_id = str(result["message_id"])
            db.commit()

    return _message_response(message)


@router.get("/telemetry")
async def list_telemetry(
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db)
):
    """Latest telemetry events"""
    events = db.query(TelemetryEvent).order_by(
        TelemetryEvent.created_at.desc()
    ).limit(limit).all()
    return [
        {
            "id": str(event.id),
            "source": event.source.value,
            "level": event.level.value,
            "event_key": event.event_key,
            "payload": event.payload,
            "case_id": str(event.case_id) if event.case_id else None,
            "created_at": event.created_at.isoformat()
        }
        for event in events
    ]


@router.get("/calls")
async def list_calls(
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db)
):
    """Voice calls, newest first"""
    calls = db.query(Call).order_by(Call.created_at.desc()).limit(limit).all()
    return [
        {
            "id": str(call.id),
            "vapi_call_id": call.vapi_call_id,
            "direction": call.direction.value,
            "status": call.status.value,
            "phone_number": call.phone_number,
            "started_at": call.started_at.isoformat() if call.started_at else None,
            "ended_at": call.ended_at.isoformat() if call.ended_at else None,
            "duration_seconds": call.duration_seconds,
            "consent_confirmed": call.consent_confirmed,
            "recording_url": call.recording_url
        }
        for call in calls
    ]
