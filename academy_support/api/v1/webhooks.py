"""
Channel webhooks: Telegram bot updates and Vapi voice events
"""
import html
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from academy_support.api.deps import (
    get_response_generator,
    parse_payload,
    verify_telegram_secret,
    verify_vapi_secret,
)
from academy_support.core.database import get_db
from academy_support.core.errors import ChannelDeliveryError
from academy_support.models.case import Channel
from academy_support.models.telemetry import TelemetrySource, TelemetryLevel
from academy_support.schemas.telegram import TelegramUpdate, TelegramMessage, TelegramCallbackQuery
from academy_support.schemas.vapi import VapiEvent
from academy_support.services.dispatcher import Dispatcher, DispatchResult, InboundMessage
from academy_support.services.response_generator import ResponseGenerator
from academy_support.services.sanitizer import sanitize_text
from academy_support.services.telegram_client import TelegramClient, get_telegram_client
from academy_support.services.telemetry_service import log_telemetry
from academy_support.services.voice_service import handle_vapi_event

logger = logging.getLogger(__name__)

router = APIRouter()

ACK = {"ok": True}


def _inbound_from_message(message: TelegramMessage) -> Optional[InboundMessage]:
    text = sanitize_text(message.text or message.caption)
    if not text:
        return None
    user = message.from_user
    return InboundMessage(
        channel=Channel.TELEGRAM,
        external_id=str(message.chat.id),
        text=text,
        display_name=user.display_name if user else None,
        channel_message_id=str(message.message_id),
        telegram_user_id=user.id if user else None
    )


def _inbound_from_callback(callback: TelegramCallbackQuery) -> Optional[InboundMessage]:
    """Inline buttons carry a command string in their callback data"""
    data = sanitize_text(callback.data)
    if not callback.message or not data.startswith("/"):
        return None
    return InboundMessage(
        channel=Channel.TELEGRAM,
        external_id=str(callback.message.chat.id),
        text=data,
        display_name=callback.from_user.display_name,
        telegram_user_id=callback.from_user.id
    )


async def _deliver(db: Session, telegram: TelegramClient, chat_id: str, result: DispatchResult) -> None:
    """Send the reply; failures become telemetry, never request errors"""
    # Templates are HTML; generated text is plain and must not be parsed as markup
    text = result.reply if result.command is not None else html.escape(result.reply, quote=False)
    try:
        await telegram.send_message(int(chat_id), text)
    except ChannelDeliveryError as e:
        logger.error("Failed to deliver reply for case %s: %s", result.case_id, e)
        log_telemetry(
            db,
            TelemetrySource.TELEGRAM,
            "send_failed",
            payload={"chat_id": chat_id, "error": str(e), "details": e.details},
            level=TelemetryLevel.ERROR,
            case_id=result.case_id
        )


@router.post("/telegram", dependencies=[Depends(verify_telegram_secret)])
async def telegram_webhook(
    request: Request,
    db: Session = Depends(get_db),
    responses: ResponseGenerator = Depends(get_response_generator),
    telegram: TelegramClient = Depends(get_telegram_client)
):
    """
    Telegram Bot API webhook

    Always acknowledges accepted updates with 200 so Telegram does not
    redeliver them; reply delivery problems are recorded as telemetry.
    """
    update = await parse_payload(request, TelegramUpdate)

    inbound = None
    if update.callback_query:
        callback = update.callback_query
        inbound = _inbound_from_callback(callback)
        try:
            await telegram.answer_callback_query(callback.id)
        except ChannelDeliveryError as e:
            logger.warning("Failed to answer callback query %s: %s", callback.id, e)
    elif update.message:
        inbound = _inbound_from_message(update.message)
        if inbound is None:
            log_telemetry(
                db,
                TelemetrySource.TELEGRAM,
                "non_text_message",
                payload={"chat_id": update.message.chat.id, "update_id": update.update_id}
            )

    if inbound is None:
        return ACK

    result = await Dispatcher(db, responses).handle(inbound)
    await _deliver(db, telegram, inbound.external_id, result)
    return ACK


@router.post("/vapi", dependencies=[Depends(verify_vapi_secret)])
async def vapi_webhook(
    request: Request,
    db: Session = Depends(get_db)
):
    """
    Vapi server webhook

    Returns an ack, a spoken response for call start, or a
    function-result body for tool invocations.
    """
    event = await parse_payload(request, VapiEvent)
    return handle_vapi_event(db, event)
