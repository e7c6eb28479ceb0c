import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from relay.services.menu_catalog import MenuCatalog, MenuOption

GREETING_WORDS = frozenset({"start", "hello", "hi", "hey", "wassup"})
MENU_WORD = "menu"

# Anything that looks like the user tried to pick a number: "7", "0", "-1", "2.5".
NUMERIC_TOKEN = re.compile(r"^[+-]?\d+(?:[.,]\d+)?$")


class CommandKind(str, Enum):
    GREETING = "greeting"
    OPTION = "option"
    EXIT = "exit"
    MENU = "menu"
    INVALID_OPTION = "invalid_option"
    FREE_TEXT = "free_text"


@dataclass(frozen=True)
class Command:
    kind: CommandKind
    text: str
    option: Optional[MenuOption] = None


def normalize(text: str) -> str:
    return (text or "").strip().casefold()


def classify(text: str, catalog: MenuCatalog) -> Command:
    """Classify raw user input once, against the fixed vocabulary and the catalog."""
    normalized = normalize(text)

    if normalized in GREETING_WORDS:
        return Command(CommandKind.GREETING, text)
    if normalized == MENU_WORD:
        return Command(CommandKind.MENU, text)

    if NUMERIC_TOKEN.match(normalized):
        if normalized == catalog.exit_id:
            return Command(CommandKind.EXIT, text, catalog.by_id(normalized))
        option = catalog.by_id(normalized)
        if option is None:
            return Command(CommandKind.INVALID_OPTION, text)
        return Command(CommandKind.OPTION, text, option)

    return Command(CommandKind.FREE_TEXT, text)
