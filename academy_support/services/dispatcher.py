"""
Conversation dispatcher

Per-request pipeline for one inbound channel message:
case resolution -> inbound log -> command transition or classification and
reply generation -> reply log. The caller delivers the returned reply.
"""
import logging
from dataclasses import dataclass
from typing import Optional
import uuid

from sqlalchemy.orm import Session

from academy_support.models.case import (
    SupportCase, Channel, CaseStatus, AgentPersona, MessageSender, MessageType
)
from academy_support.models.telemetry import TelemetrySource, TelemetryLevel
from academy_support.services.agent_router import AgentRouter, Command, parse_command
from academy_support.services.case_resolver import resolve_case, touch_case
from academy_support.services.intent_classifier import classify_intent
from academy_support.services.message_log import log_message, recent_messages
from academy_support.services.response_generator import ResponseGenerator
from academy_support.services.sanitizer import preview
from academy_support.services.telemetry_service import log_telemetry

logger = logging.getLogger(__name__)


@dataclass
class InboundMessage:
    """Channel-neutral inbound text, already validated and sanitized"""
    channel: Channel
    external_id: str
    text: str
    display_name: Optional[str] = None
    channel_message_id: Optional[str] = None
    telegram_user_id: Optional[int] = None
    user_id: Optional[str] = None


@dataclass
class DispatchResult:
    case_id: uuid.UUID
    reply: str
    reply_sender: MessageSender
    status: CaseStatus
    agent: AgentPersona
    command: Optional[Command] = None
    is_fallback: bool = False


class Dispatcher:
    """Routes inbound messages through commands or persona replies"""

    def __init__(self, db: Session, response_generator: ResponseGenerator):
        self.db = db
        self.responses = response_generator
        self.router = AgentRouter(db)

    async def handle(self, inbound: InboundMessage) -> DispatchResult:
        logger.info(
            "Inbound %s message from %s: %s",
            inbound.channel.value, inbound.display_name or inbound.external_id, preview(inbound.text)
        )
        case = resolve_case(
            self.db,
            inbound.channel,
            inbound.external_id,
            display_name=inbound.display_name,
            telegram_user_id=inbound.telegram_user_id,
            user_id=inbound.user_id
        )
        touch_case(self.db, case)

        command = parse_command(inbound.text)
        if command is not None:
            return self._handle_command(case, command, inbound)
        return await self._handle_text(case, inbound)

    def _handle_command(self, case: SupportCase, command: Command, inbound: InboundMessage) -> DispatchResult:
        outcome = self.router.apply(case, command, display_name=inbound.display_name)

        log_message(
            self.db,
            case.id,
            MessageSender.USER,
            inbound.text,
            channel_message_id=inbound.channel_message_id,
            message_type=MessageType.COMMAND,
            metadata={"command": command.value, "note": outcome.note}
        )

        reply = self.responses.template(outcome.template_key, **outcome.template_context)
        log_message(
            self.db,
            case.id,
            outcome.reply_sender,
            reply,
            message_type=MessageType.TEXT,
            metadata={"template": outcome.template_key}
        )

        return DispatchResult(
            case_id=case.id,
            reply=reply,
            reply_sender=outcome.reply_sender,
            status=outcome.state.status,
            agent=outcome.state.persona,
            command=command
        )

    async def _handle_text(self, case: SupportCase, inbound: InboundMessage) -> DispatchResult:
        intent = classify_intent(inbound.text)
        user_message = log_message(
            self.db,
            case.id,
            MessageSender.USER,
            inbound.text,
            channel_message_id=inbound.channel_message_id,
            metadata={"intent": intent.case_type.value, "keyword": intent.keyword}
        )

        # Advisory tag only; routing stays with the current persona
        if case.case_type is None:
            case.case_type = intent.case_type
            self.db.commit()

        persona = AgentPersona(case.current_agent)
        history = recent_messages(
            self.db, case.id, self.responses.history_limit, exclude_id=user_message.id
        )
        generated = await self.responses.generate_reply(persona, inbound.text, history)

        if generated.is_fallback:
            log_telemetry(
                self.db,
                TelemetrySource.DISPATCHER,
                "generation_failed",
                payload={"persona": persona.value, "error": generated.error},
                level=TelemetryLevel.ERROR,
                case_id=case.id
            )

        sender = MessageSender(persona.value)
        log_message(
            self.db,
            case.id,
            sender,
            generated.text,
            metadata={"fallback": generated.is_fallback}
        )

        return DispatchResult(
            case_id=case.id,
            reply=generated.text,
            reply_sender=sender,
            status=CaseStatus(case.status),
            agent=persona,
            is_fallback=generated.is_fallback
        )
