from typing import Optional, Sequence

import httpx

from relay.errors import DeliveryError
from relay.logging_config import get_logger
from relay.services.actions import OutboundAction, SendMenu, SendText
from relay.services.alert_service import alert_error
from relay.services.menu_catalog import MenuOption
from relay.services.result import Result

logger = get_logger("whatsapp_service")

# WhatsApp Cloud API limits for interactive reply buttons.
MAX_REPLY_BUTTONS = 3
MAX_BUTTON_TITLE_LENGTH = 20

MENU_PROMPT = "Please choose an option by tapping a button or typing its number:"
MENU_FOOTER = "Type 'menu' at any time to see this list again."


def build_text_payload(to: str, body: str) -> dict:
    return {
        "messaging_product": "whatsapp",
        "recipient_type": "individual",
        "to": to,
        "type": "text",
        "text": {"body": body},
    }


def build_button_payload(
    to: str,
    body_text: str,
    buttons: Sequence[dict],
    footer_text: Optional[str] = None,
    header_image_url: Optional[str] = None,
) -> dict:
    """Interactive reply-button message. ``buttons`` are ``{"id", "title"}`` dicts."""
    if not buttons:
        raise ValueError("Interactive button message needs at least one button")
    if len(buttons) > MAX_REPLY_BUTTONS:
        raise ValueError(f"At most {MAX_REPLY_BUTTONS} reply buttons are allowed, got {len(buttons)}")

    interactive: dict = {
        "type": "button",
        "body": {"text": body_text},
        "action": {
            "buttons": [
                {"type": "reply", "reply": {"id": b["id"], "title": b["title"][:MAX_BUTTON_TITLE_LENGTH]}}
                for b in buttons
            ]
        },
    }
    if header_image_url:
        interactive["header"] = {"type": "image", "image": {"link": header_image_url}}
    if footer_text:
        interactive["footer"] = {"text": footer_text}

    return {
        "messaging_product": "whatsapp",
        "recipient_type": "individual",
        "to": to,
        "type": "interactive",
        "interactive": interactive,
    }


def build_menu_payload(to: str, options: Sequence[MenuOption], header_image_url: Optional[str] = None) -> dict:
    """Menu as a button message: every option in the body, the first ones as buttons."""
    listing = "\n".join(f"{option.id}. {option.label}" for option in options)
    buttons = [{"id": option.id, "title": option.label} for option in options[:MAX_REPLY_BUTTONS]]
    return build_button_payload(
        to,
        f"{MENU_PROMPT}\n\n{listing}",
        buttons,
        footer_text=MENU_FOOTER,
        header_image_url=header_image_url,
    )


class WhatsAppMessenger:
    """Sends messages through the WhatsApp Cloud API. One attempt per message, no retries."""

    def __init__(
        self,
        messages_url: str,
        access_token: str,
        header_image_url: Optional[str] = None,
        timeout_seconds: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.messages_url = messages_url
        self.access_token = access_token
        self.header_image_url = header_image_url
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    async def _post(self, to: str, payload: dict) -> str:
        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds, transport=self._transport) as client:
                response = await client.post(
                    self.messages_url,
                    headers={
                        "Authorization": f"Bearer {self.access_token}",
                        "Content-Type": "application/json",
                    },
                    json=payload,
                )
        except httpx.HTTPError as e:
            raise DeliveryError(to, str(e)) from e

        if response.status_code >= 300:
            raise DeliveryError(to, response.text[:200], status_code=response.status_code)

        try:
            data = response.json()
        except ValueError:
            data = {}
        messages = data.get("messages") or [{}]
        message_id = messages[0].get("id") or ""
        logger.info(
            "WhatsApp message sent",
            extra={"context": {"to": to, "type": payload.get("type"), "message_id": message_id}},
        )
        return message_id

    async def _deliver(self, to: str, payload: dict) -> Result[str]:
        try:
            return Result.success(await self._post(to, payload))
        except DeliveryError as e:
            logger.error(
                f"WhatsApp API error: {e}",
                extra={"context": {"to": to, "status_code": e.status_code}},
            )
            await alert_error("WhatsApp send failed", {"to": to, "error": str(e)})
            return Result.from_exception(e, "delivery_error")

    async def send_text(self, to: str, body: str) -> Result[str]:
        return await self._deliver(to, build_text_payload(to, body))

    async def send_menu(self, to: str, options: Sequence[MenuOption]) -> Result[str]:
        return await self._deliver(to, build_menu_payload(to, options, self.header_image_url))

    async def send(self, action: OutboundAction) -> Result[str]:
        if isinstance(action, SendMenu):
            return await self.send_menu(action.to, action.options)
        if isinstance(action, SendText):
            return await self.send_text(action.to, action.body)
        raise TypeError(f"Unsupported outbound action: {action!r}")
