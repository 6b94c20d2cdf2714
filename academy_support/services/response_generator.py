"""
Response generation

Command replies come from fixed templates. Free-text replies are delegated
to an injected text generator; any GenerationError is replaced by the
persona's fallback apology so the user always gets an answer.
"""
import logging
from dataclasses import dataclass
from typing import Optional, Protocol, Sequence

from academy_support.core.config import settings
from academy_support.core.errors import GenerationError
from academy_support.models.case import AgentPersona, CaseMessage
from academy_support.services.personas import TEMPLATES, get_persona
from academy_support.services.sanitizer import preview

logger = logging.getLogger(__name__)


class TextGenerator(Protocol):
    async def generate(self, persona: AgentPersona, history: Sequence[CaseMessage], message: str) -> str:
        ...


@dataclass
class GeneratedReply:
    text: str
    is_fallback: bool = False
    error: Optional[str] = None


class ResponseGenerator:
    """Builds persona replies from templates or the text generator"""

    def __init__(self, text_generator: TextGenerator, history_limit: Optional[int] = None):
        self.text_generator = text_generator
        self.history_limit = min(history_limit or settings.HISTORY_LIMIT, 20)

    def template(self, key: str, **context) -> str:
        """Render a fixed reply template"""
        return TEMPLATES[key].format(**context)

    def recent_history(self, history: Sequence[CaseMessage]) -> Sequence[CaseMessage]:
        """Most recent messages, chronological, capped at the history limit"""
        return list(history)[-self.history_limit:]

    async def generate_reply(
        self,
        persona: AgentPersona,
        message: str,
        history: Sequence[CaseMessage]
    ) -> GeneratedReply:
        """Generate a free-text reply; never raises GenerationError"""
        profile = get_persona(persona)
        try:
            text = await self.text_generator.generate(profile.persona, self.recent_history(history), message)
        except GenerationError as e:
            logger.warning("Generation failed for %s, using fallback: %s", profile.persona.value, e)
            return GeneratedReply(text=profile.fallback_reply, is_fallback=True, error=str(e))

        if not text or not text.strip():
            return GeneratedReply(text=profile.fallback_reply, is_fallback=True, error="empty reply")

        logger.debug("%s reply: %s", profile.display_name, preview(text))
        return GeneratedReply(text=text.strip())
