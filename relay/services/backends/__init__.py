from relay.config import Settings
from relay.services.backends.base import NOT_UNDERSTOOD_RESPONSE, BackendAdapter
from relay.services.backends.generative import GenerativeTextBackend
from relay.services.backends.intent import IntentBackend
from relay.services.llm import OpenAIProvider


def create_backend(settings: Settings) -> BackendAdapter:
    """Select the reply backend configured by BOT_BACKEND."""
    if settings.bot_backend == "dialogflow":
        return IntentBackend(
            project_id=settings.dialogflow_project_id,
            access_token=settings.dialogflow_access_token,
            language_code=settings.dialogflow_language_code,
            timeout_seconds=settings.dialogflow_timeout_seconds,
        )
    provider = OpenAIProvider(api_key=settings.openai_api_key, default_model=settings.openai_model)
    return GenerativeTextBackend(provider, timeout_seconds=settings.openai_timeout_seconds)


__all__ = [
    "NOT_UNDERSTOOD_RESPONSE",
    "BackendAdapter",
    "GenerativeTextBackend",
    "IntentBackend",
    "create_backend",
]
