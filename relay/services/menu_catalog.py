from dataclasses import dataclass
from typing import Iterable, Iterator, Optional


@dataclass(frozen=True)
class MenuOption:
    id: str
    label: str
    intent_key: str


DEFAULT_OPTIONS = (
    MenuOption(id="1", label="About Us", intent_key="about us"),
    MenuOption(id="2", label="Our Services", intent_key="services"),
    MenuOption(id="3", label="Pricing", intent_key="pricing"),
    MenuOption(id="4", label="Opening Hours", intent_key="opening hours"),
    MenuOption(id="5", label="Contact Support", intent_key="contact support"),
    MenuOption(id="6", label="Exit", intent_key="exit"),
)

DEFAULT_EXIT_ID = "6"


class MenuCatalog:
    """Ordered, read-only set of selectable menu options."""

    def __init__(self, options: Iterable[MenuOption] = DEFAULT_OPTIONS, exit_id: str = DEFAULT_EXIT_ID):
        self._options = tuple(options)
        self._by_id: dict[str, MenuOption] = {}
        for option in self._options:
            if option.id in self._by_id:
                raise ValueError(f"Duplicate menu option id: {option.id}")
            self._by_id[option.id] = option
        if exit_id not in self._by_id:
            raise ValueError(f"Exit option {exit_id} is not in the catalog")
        self.exit_id = exit_id

    def __iter__(self) -> Iterator[MenuOption]:
        return iter(self._options)

    def __len__(self) -> int:
        return len(self._options)

    @property
    def options(self) -> tuple[MenuOption, ...]:
        return self._options

    def by_id(self, option_id: str) -> Optional[MenuOption]:
        return self._by_id.get(option_id)
