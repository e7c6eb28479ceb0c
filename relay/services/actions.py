from dataclasses import dataclass
from typing import Union

from relay.services.menu_catalog import MenuOption


@dataclass(frozen=True)
class InboundMessage:
    sender: str
    text: str
    message_id: str | None = None


@dataclass(frozen=True)
class SendText:
    to: str
    body: str


@dataclass(frozen=True)
class SendMenu:
    to: str
    options: tuple[MenuOption, ...]


OutboundAction = Union[SendText, SendMenu]
