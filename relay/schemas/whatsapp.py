"""WhatsApp Cloud API webhook envelope.

Only the fields the relay reads are modelled; everything else is ignored.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from relay.errors import MalformedPayloadError
from relay.services.actions import InboundMessage


class _Lenient(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class WhatsAppText(_Lenient):
    body: Optional[str] = None


class WhatsAppReply(_Lenient):
    id: str
    title: Optional[str] = None


class WhatsAppInteractive(_Lenient):
    type: Optional[str] = None  # button_reply, list_reply
    button_reply: Optional[WhatsAppReply] = None
    list_reply: Optional[WhatsAppReply] = None


class WhatsAppButton(_Lenient):
    """Quick-reply button tap on a template message."""

    payload: Optional[str] = None
    text: Optional[str] = None


class WhatsAppMessage(_Lenient):
    id: Optional[str] = None
    from_: str = Field(alias="from")
    timestamp: Optional[str] = None
    type: Optional[str] = "text"
    text: Optional[WhatsAppText] = None
    interactive: Optional[WhatsAppInteractive] = None
    button: Optional[WhatsAppButton] = None

    def user_text(self) -> Optional[str]:
        """Text the user typed, or the id of the button/list row they tapped."""
        if self.type == "text" and self.text:
            return self.text.body
        if self.type == "interactive" and self.interactive:
            reply = self.interactive.button_reply or self.interactive.list_reply
            return reply.id if reply else None
        if self.type == "button" and self.button:
            return self.button.payload or self.button.text
        return None


class WhatsAppValue(_Lenient):
    messaging_product: Optional[str] = None
    messages: List[WhatsAppMessage] = Field(default_factory=list)
    statuses: List[dict] = Field(default_factory=list)


class WhatsAppChange(_Lenient):
    field: Optional[str] = None
    value: Optional[WhatsAppValue] = None


class WhatsAppEntry(_Lenient):
    id: Optional[str] = None
    changes: List[WhatsAppChange] = Field(default_factory=list)


class WhatsAppWebhook(_Lenient):
    object: Optional[str] = None
    entry: List[WhatsAppEntry] = Field(default_factory=list)

    def first_message(self) -> Optional[WhatsAppMessage]:
        if not self.entry or not self.entry[0].changes:
            return None
        value = self.entry[0].changes[0].value
        if value is None or not value.messages:
            return None
        return value.messages[0]

    def to_inbound(self) -> InboundMessage:
        """Normalize to ``(sender, text)``. Raises MalformedPayloadError if there is nothing to answer."""
        message = self.first_message()
        if message is None:
            raise MalformedPayloadError("No message in webhook payload")
        text = message.user_text()
        if not text or not text.strip():
            raise MalformedPayloadError(f"No usable text in {message.type} message")
        return InboundMessage(sender=message.from_, text=text, message_id=message.id)


class WebhookAck(BaseModel):
    success: bool
    message: str
