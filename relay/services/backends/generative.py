from typing import Optional

from relay.logging_config import get_logger
from relay.services.backends.base import NOT_UNDERSTOOD_RESPONSE, BackendAdapter
from relay.services.llm import LLMProvider

logger = get_logger("backends.generative")


class GenerativeTextBackend(BackendAdapter):
    """Single free-form completion per message; no conversation history is sent."""

    name = "openai"

    def __init__(self, provider: LLMProvider, model: Optional[str] = None, timeout_seconds: Optional[float] = None):
        self.provider = provider
        self.model = model
        self.timeout_seconds = timeout_seconds

    async def respond(self, text: str, session_id: str) -> str:
        response = await self.provider.generate(
            [{"role": "user", "content": text}],
            model=self.model,
            timeout_seconds=self.timeout_seconds,
        )
        content = (response.content or "").strip()
        if not content:
            logger.warning("Empty completion, using not-understood reply", extra={"context": {"model": response.model}})
            return NOT_UNDERSTOOD_RESPONSE
        return content
