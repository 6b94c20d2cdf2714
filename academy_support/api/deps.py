"""
Shared API dependencies: webhook authentication, payload parsing and
injected clients
"""
import hmac
import logging
from typing import Optional, Type, TypeVar

from fastapi import Depends, Header, HTTPException, Request
from pydantic import BaseModel, ValidationError

from academy_support.core.config import settings
from academy_support.services.ai_client import get_ai_client
from academy_support.services.response_generator import ResponseGenerator, TextGenerator

logger = logging.getLogger(__name__)

PayloadModel = TypeVar("PayloadModel", bound=BaseModel)


def _secrets_match(provided: Optional[str], expected: str) -> bool:
    if not provided:
        return False
    return hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8"))


def _check_shared_secret(provided: Optional[str], expected: str, channel: str) -> None:
    if not expected:
        logger.warning("%s webhook secret not configured, accepting unauthenticated request", channel)
        return
    if not _secrets_match(provided, expected):
        logger.warning("Unauthorized %s webhook request", channel)
        raise HTTPException(status_code=401, detail="Unauthorized")


def verify_telegram_secret(
    x_telegram_bot_api_secret_token: Optional[str] = Header(default=None)
) -> None:
    _check_shared_secret(x_telegram_bot_api_secret_token, settings.TELEGRAM_WEBHOOK_SECRET, "Telegram")


def verify_vapi_secret(x_vapi_secret: Optional[str] = Header(default=None)) -> None:
    _check_shared_secret(x_vapi_secret, settings.VAPI_WEBHOOK_SECRET, "Vapi")


def require_admin(authorization: Optional[str] = Header(default=None)) -> None:
    """Bearer token check for the admin API; no configured token means no access"""
    token = None
    if authorization and authorization.startswith("Bearer "):
        token = authorization[len("Bearer "):].strip()
    if not settings.ADMIN_API_TOKEN or not _secrets_match(token, settings.ADMIN_API_TOKEN):
        raise HTTPException(status_code=401, detail="Unauthorized")


async def parse_payload(request: Request, model: Type[PayloadModel]) -> PayloadModel:
    """Parse and validate a JSON body; any problem is a generic 400"""
    try:
        body = await request.json()
        return model.model_validate(body)
    except (ValueError, ValidationError) as e:
        logger.info("Rejected %s payload: %s", model.__name__, e.__class__.__name__)
        raise HTTPException(status_code=400, detail="Invalid payload")


def get_text_generator() -> TextGenerator:
    return get_ai_client()


def get_response_generator(
    text_generator: TextGenerator = Depends(get_text_generator)
) -> ResponseGenerator:
    return ResponseGenerator(text_generator)
