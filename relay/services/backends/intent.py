from typing import Optional
from urllib.parse import quote

import httpx

from relay.errors import BackendError
from relay.logging_config import get_logger
from relay.services.backends.base import NOT_UNDERSTOOD_RESPONSE, BackendAdapter

logger = get_logger("backends.intent")


class IntentBackend(BackendAdapter):
    """Dialogflow ES intent detection over the v2 REST API.

    The sender id is used as the Dialogflow session id, so the agent keeps its
    own contexts per user independently of the local session store. Text that
    matches no intent lands on the agent's fallback intent in the same request.
    """

    name = "dialogflow"
    BASE_URL = "https://dialogflow.googleapis.com/v2"

    def __init__(
        self,
        project_id: str,
        access_token: str,
        language_code: str = "en",
        timeout_seconds: float = 15.0,
        base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.project_id = project_id
        self.access_token = access_token
        self.language_code = language_code
        self.timeout_seconds = timeout_seconds
        self.base_url = (base_url or self.BASE_URL).rstrip("/")
        self._transport = transport

    def session_url(self, session_id: str) -> str:
        session = quote(session_id, safe="")
        return f"{self.base_url}/projects/{self.project_id}/agent/sessions/{session}:detectIntent"

    async def respond(self, text: str, session_id: str) -> str:
        payload = {"queryInput": {"text": {"text": text, "languageCode": self.language_code}}}
        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds, transport=self._transport) as client:
                response = await client.post(
                    self.session_url(session_id),
                    headers={
                        "Authorization": f"Bearer {self.access_token}",
                        "Content-Type": "application/json",
                    },
                    json=payload,
                )
        except httpx.HTTPError as e:
            logger.error(f"Dialogflow transport error: {e}")
            raise BackendError(self.name, str(e)) from e

        if response.status_code != 200:
            logger.error(f"Dialogflow error: status={response.status_code}, body={response.text[:500]}")
            raise BackendError(self.name, response.text[:200], status_code=response.status_code)

        try:
            data = response.json()
        except ValueError as e:
            raise BackendError(self.name, "response is not JSON", status_code=response.status_code) from e

        query_result = data.get("queryResult") or {}
        intent = query_result.get("intent") or {}
        logger.info(
            "Intent detected",
            extra={
                "context": {
                    "intent": intent.get("displayName"),
                    "fallback": bool(intent.get("isFallback")),
                    "confidence": query_result.get("intentDetectionConfidence"),
                }
            },
        )

        reply = (query_result.get("fulfillmentText") or "").strip()
        return reply or NOT_UNDERSTOOD_RESPONSE
