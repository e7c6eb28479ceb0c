import json
from typing import Optional

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import PlainTextResponse
from pydantic import ValidationError

from relay.errors import MalformedPayloadError, VerificationError
from relay.logging_config import get_logger
from relay.schemas.whatsapp import WebhookAck, WhatsAppWebhook
from relay.services.relay_service import RelayService

logger = get_logger("webhook")

router = APIRouter()


def get_relay_service(request: Request) -> RelayService:
    return request.app.state.relay


def verify_subscription(mode: Optional[str], token: Optional[str], challenge: Optional[str], expected: str) -> str:
    """Return the challenge to echo, or raise VerificationError."""
    if mode == "subscribe" and token and token == expected:
        return challenge or ""
    raise VerificationError(f"Webhook verification failed (mode={mode})")


async def parse_webhook_body(request: Request) -> Optional[dict]:
    """
    Parse webhook body with tolerant decoding.
    Returns dict or None for an empty or undecodable body.
    """
    raw = await request.body()
    if not raw.strip():
        return None
    try:
        body = json.loads(raw.decode("utf-8", errors="replace"))
    except ValueError:
        logger.warning("Failed to decode WhatsApp webhook payload")
        return None
    return body if isinstance(body, dict) else None


@router.get("/whatsapp/webhook", response_class=PlainTextResponse)
async def verify_webhook(request: Request):
    params = request.query_params
    try:
        challenge = verify_subscription(
            params.get("hub.mode"),
            params.get("hub.verify_token"),
            params.get("hub.challenge"),
            request.app.state.settings.whatsapp_cloud_api_verification,
        )
    except VerificationError as e:
        logger.warning(str(e))
        return PlainTextResponse("Verification Failed", status_code=status.HTTP_403_FORBIDDEN)

    logger.info("Webhook verified")
    return PlainTextResponse(challenge)


@router.post("/whatsapp/webhook", response_model=WebhookAck)
async def receive_webhook(request: Request, relay: RelayService = Depends(get_relay_service)):
    """
    Handle WhatsApp message deliveries.
    Always acknowledges with 200 so the platform does not retry and amplify failures.
    """
    try:
        body = await parse_webhook_body(request)
        if body is None:
            return WebhookAck(success=True, message="Empty payload")

        inbound = WhatsAppWebhook.model_validate(body).to_inbound()
    except (MalformedPayloadError, ValidationError) as e:
        logger.debug(f"Nothing to answer: {e}")
        return WebhookAck(success=True, message="No actionable message")

    try:
        delivered = await relay.handle(inbound)
    except Exception as e:
        logger.error(f"WhatsApp webhook error: {e}", exc_info=True)
        return WebhookAck(success=True, message="Processing failed")

    return WebhookAck(success=True, message=f"Processed, {delivered} message(s) sent")
