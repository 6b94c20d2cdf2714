"""
AI client for persona reply generation (OpenAI-compatible chat completions)
"""
import logging
import httpx
from typing import List, Optional, Sequence
from academy_support.core.config import settings
from academy_support.core.errors import GenerationError
from academy_support.models.case import AgentPersona, CaseMessage
from academy_support.services.personas import get_persona, build_system_prompt

logger = logging.getLogger(__name__)


class AIClient:
    """Abstraction for AI gateway completions"""

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.base_url = (base_url or settings.AI_GATEWAY_URL).rstrip("/")
        self.api_key = settings.AI_GATEWAY_API_KEY if api_key is None else api_key
        self.model = model or settings.AI_MODEL
        self.max_tokens = max_tokens or settings.AI_MAX_TOKENS
        self.client = httpx.AsyncClient(timeout=settings.AI_TIMEOUT_SECONDS, transport=transport)

    async def generate(
        self,
        persona: AgentPersona,
        history: Sequence[CaseMessage],
        message: str
    ) -> str:
        """
        Generate a persona reply to the user's message

        Raises:
            GenerationError: on network errors, timeouts, non-2xx responses
                or a response without reply text
        """
        profile = get_persona(persona)
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        payload = {
            "model": self.model,
            "messages": self._build_messages(build_system_prompt(profile, history), message),
            "max_tokens": self.max_tokens,
            "temperature": profile.temperature
        }

        try:
            response = await self.client.post(
                f"{self.base_url}/chat/completions",
                json=payload,
                headers=headers
            )
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise GenerationError(f"AI gateway request failed: {e}") from e
        except ValueError as e:
            raise GenerationError("AI gateway returned invalid JSON") from e

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise GenerationError("AI gateway response has no choices") from e

        if not isinstance(content, str) or not content.strip():
            raise GenerationError("AI gateway returned an empty reply")
        return content.strip()

    @staticmethod
    def _build_messages(system_prompt: str, message: str) -> List[dict]:
        return [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": message},
        ]

    async def close(self):
        """Close HTTP client"""
        await self.client.aclose()


# Singleton instance
_ai_client: Optional[AIClient] = None


def get_ai_client() -> AIClient:
    """Get singleton AI client instance"""
    global _ai_client
    if _ai_client is None:
        _ai_client = AIClient()
    return _ai_client
