"""
Vapi voice call handling: call records, IVR menus and function calls
"""
import logging
from datetime import datetime
from sqlalchemy.orm import Session
from typing import Dict, Any, Optional
from academy_support.models.call import Call, CallDirection, CallStatus
from academy_support.models.case import Channel, CaseType, CasePriority, MessageSender, MessageType
from academy_support.models.telemetry import TelemetrySource, TelemetryLevel
from academy_support.schemas.vapi import VapiEvent
from academy_support.services.case_resolver import resolve_case
from academy_support.services.intent_classifier import classify_intent
from academy_support.services.message_log import log_message
from academy_support.services.sanitizer import sanitize_text
from academy_support.services.telemetry_service import log_telemetry

logger = logging.getLogger(__name__)

# Spoken menu intents and tool parameters -> case type
CASE_TYPE_ALIASES = {
    "academy": CaseType.ONBOARDING,
    "academy_support": CaseType.ONBOARDING,
    "education": CaseType.ONBOARDING,
    "admissions": CaseType.ONBOARDING,
    "advocacy": CaseType.TRUST,
    "compliance": CaseType.TRUST,
    "technical": CaseType.TECH,
    "support": CaseType.GENERAL,
}

ACK = {"type": "ack"}


def get_main_menu() -> Dict[str, Any]:
    return {
        "message": (
            "Welcome to iRise Academy and Legacy Trust Foundation.\n\n"
            "For education and admissions, press 1 or say \"education\".\n"
            "For advocacy support, press 2 or say \"advocacy\".\n"
            "To update your trust or file compliance documents, press 3 or say \"trust\".\n"
            "For general iRise Nation information, press 4 or say \"general\".\n\n"
            "Please note: This call may be recorded for quality and training purposes. "
            "By continuing, you consent to recording."
        ),
        "options": [
            {"digit": "1", "intent": "academy", "label": "Education & Admissions"},
            {"digit": "2", "intent": "advocacy", "label": "Advocacy Support"},
            {"digit": "3", "intent": "trust", "label": "Trust & Compliance"},
            {"digit": "4", "intent": "general", "label": "General Information"},
        ],
    }


def get_academy_sub_menu() -> Dict[str, Any]:
    return {
        "message": (
            "For our privacy policy and code of conduct, press 1.\n"
            "For available courses and programs, press 2.\n"
            "To speak with a course ambassador, press 3.\n"
            "To return to the main menu, press 0."
        ),
        "options": [
            {"digit": "1", "intent": "privacy_conduct", "label": "Privacy & Conduct"},
            {"digit": "2", "intent": "courses", "label": "Courses & Programs"},
            {"digit": "3", "intent": "ambassador", "label": "Speak to Ambassador"},
            {"digit": "0", "intent": "main_menu", "label": "Main Menu"},
        ],
    }


def upsert_call(db: Session, vapi_call_id: str, **fields) -> Call:
    """Create or update the call record for a Vapi call id"""
    call = db.query(Call).filter(Call.vapi_call_id == vapi_call_id).first()
    if call:
        for key, value in fields.items():
            setattr(call, key, value)
    else:
        call = Call(vapi_call_id=vapi_call_id, **fields)
        db.add(call)
    db.commit()
    db.refresh(call)
    return call


def resolve_case_type(value: Optional[str], summary: Optional[str]) -> CaseType:
    """Case type from a tool parameter, falling back to classifying the summary"""
    if value:
        normalized = value.strip().lower()
        if normalized in CASE_TYPE_ALIASES:
            return CASE_TYPE_ALIASES[normalized]
        try:
            return CaseType(normalized)
        except ValueError:
            pass
    return classify_intent(summary).case_type


def _parse_direction(value: Optional[str]) -> CallDirection:
    try:
        return CallDirection((value or "inbound").lower())
    except ValueError:
        return CallDirection.INBOUND


def _parse_priority(value: Optional[str]) -> CasePriority:
    try:
        return CasePriority((value or "normal").lower())
    except ValueError:
        return CasePriority.NORMAL


def handle_vapi_event(db: Session, event: VapiEvent) -> Dict[str, Any]:
    """
    Handle one Vapi server event

    Returns the JSON body for the webhook response: an ack, a spoken
    response, or a function result.
    """
    call_id = event.call_id
    logger.info("Vapi event: %s, call: %s", event.type, call_id)

    if event.type in ("call.started", "call-start"):
        phone = event.call.customer.number if event.call and event.call.customer else None
        upsert_call(
            db,
            call_id,
            provider="vapi",
            direction=_parse_direction(event.call.direction if event.call else None),
            status=CallStatus.IN_PROGRESS,
            phone_number=phone,
            started_at=datetime.utcnow(),
            consent_confirmed=False
        )
        log_telemetry(db, TelemetrySource.VAPI, "call_started", {"callId": call_id, "phone": phone})
        return {"type": "response", "response": get_main_menu()["message"]}

    if event.type in ("call.ended", "call-end"):
        transcript = event.transcript or (event.call.transcript if event.call else None)
        duration = (event.call.duration if event.call else None) or event.durationSeconds
        upsert_call(
            db,
            call_id,
            status=CallStatus.COMPLETED,
            ended_at=datetime.utcnow(),
            duration_seconds=int(duration) if duration is not None else None,
            transcript=transcript,
            recording_url=event.recordingUrl or (event.call.recordingUrl if event.call else None)
        )
        log_telemetry(db, TelemetrySource.VAPI, "call_ended", {
            "callId": call_id,
            "duration": duration,
            "hasTranscript": bool(transcript),
        })
        return ACK

    if event.type in ("transcript", "conversation-update"):
        if event.transcript:
            log_telemetry(db, TelemetrySource.VAPI, "transcript_update", {
                "callId": call_id,
                "role": event.role,
                "content": event.transcript[:200],
            })
        return ACK

    if event.type == "function-call":
        return {"type": "function-result", "result": _handle_function_call(db, event)}

    if event.type == "status-update":
        log_telemetry(db, TelemetrySource.VAPI, "status_update", {"callId": call_id, "status": event.status})
        return ACK

    if event.type == "error":
        log_telemetry(
            db, TelemetrySource.VAPI, "call_error",
            {"callId": call_id, "error": str(event.error)[:500]},
            level=TelemetryLevel.ERROR
        )
        upsert_call(db, call_id, status=CallStatus.FAILED)
        return ACK

    logger.info("Unhandled Vapi event type: %s", event.type)
    return ACK


def _handle_function_call(db: Session, event: VapiEvent) -> Dict[str, Any]:
    name = event.functionCall.name if event.functionCall else None
    parameters = event.functionCall.parameters if event.functionCall else {}
    call_id = event.call_id

    if name == "get_menu":
        return get_main_menu()

    if name == "handle_menu_selection":
        selection = str(parameters.get("selection") or parameters.get("digit") or "")
        if selection == "1":
            return get_academy_sub_menu()
        if selection == "0":
            return get_main_menu()
        return {"message": "Thank you for your selection. A team member will follow up shortly."}

    if name == "create_support_case":
        summary = sanitize_text(parameters.get("summary")) or "Inbound voice call"
        case = resolve_case(db, Channel.VAPI_VOICE, call_id, vapi_call_id=call_id)
        if parameters.get("case_type") or case.case_type is None:
            case.case_type = resolve_case_type(parameters.get("case_type"), summary)
        case.priority = _parse_priority(parameters.get("priority"))
        case.summary = summary
        db.commit()

        log_message(
            db,
            case.id,
            MessageSender.SYSTEM,
            f"Voice case opened: {summary}",
            message_type=MessageType.SYSTEM_NOTE,
            metadata={"callId": call_id, "function": name}
        )
        log_telemetry(db, TelemetrySource.VAPI, "case_created", {"callId": call_id}, case_id=case.id)
        return {"success": True, "caseId": str(case.id)}

    if name == "confirm_consent":
        upsert_call(db, call_id, consent_confirmed=True)
        return {"message": "Thank you for confirming. How may I assist you today?"}

    logger.warning("Unknown Vapi function: %s", name)
    return {"error": "Unknown function"}
