from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from .errors import CatalogError

logger = logging.getLogger(__name__)

MIN_RANK = 0
MAX_RANK = 10
MIN_LEVEL = 1
MAX_LEVEL = 10

Ranks = Tuple[int, int, int, int]  # top, right, bottom, left

BUNDLED_CATALOG = os.path.join(os.path.dirname(__file__), "data", "cards.json")


class Element(Enum):
    FIRE = "fire"
    ICE = "ice"
    THUNDER = "thunder"
    EARTH = "earth"
    POISON = "poison"
    WIND = "wind"
    WATER = "water"
    HOLY = "holy"

    @classmethod
    def parse(cls, name: Optional[str]) -> Optional['Element']:
        """Maps a catalog element name (any case) to an Element; None stays None."""
        if name is None:
            return None
        try:
            return cls(str(name).strip().lower())
        except ValueError:
            raise CatalogError(f"unknown element: {name!r}") from None


ELEMENTS: Tuple[Element, ...] = tuple(Element)


@dataclass(frozen=True)
class Card:
    """Immutable catalog entry with its four directional base ranks."""
    id: int
    name: str
    level: int
    top: int
    right: int
    bottom: int
    left: int
    element: Optional[Element] = None

    def ranks(self) -> Ranks:
        return (self.top, self.right, self.bottom, self.left)

    def rank_label(self) -> str:
        """Compact 'T R B L' label; a rank of 10 is printed as 'A'."""
        return " ".join("A" if r == MAX_RANK else str(r) for r in self.ranks())


def _check_rank(card_id: int, value: object) -> int:
    if not isinstance(value, int) or isinstance(value, bool) or not MIN_RANK <= value <= MAX_RANK:
        raise CatalogError(f"card {card_id}: rank out of range: {value!r}")
    return value


def card_from_json(obj: Dict[str, object]) -> Card:
    """Builds a Card from one entry of the catalog JSON (powTop-style asset keys)."""
    try:
        card_id = int(obj["id"])  # type: ignore[arg-type]
        name = str(obj["name"])
        level = int(obj.get("level", MIN_LEVEL))  # type: ignore[arg-type]
        top = _check_rank(card_id, obj["powTop"])
        right = _check_rank(card_id, obj["powRight"])
        bottom = _check_rank(card_id, obj["powBottom"])
        left = _check_rank(card_id, obj["powLeft"])
    except (KeyError, TypeError, ValueError) as e:
        raise CatalogError(f"bad card entry {obj!r}: {e}") from e
    if not MIN_LEVEL <= level <= MAX_LEVEL:
        raise CatalogError(f"card {card_id}: level out of range: {level}")
    element = Element.parse(obj.get("element"))  # type: ignore[arg-type]
    return Card(id=card_id, name=name, level=level, top=top, right=right,
                bottom=bottom, left=left, element=element)


def card_to_json(card: Card) -> Dict[str, object]:
    return {
        "id": card.id,
        "name": card.name,
        "level": card.level,
        "powTop": card.top,
        "powRight": card.right,
        "powBottom": card.bottom,
        "powLeft": card.left,
        "element": card.element.value if card.element is not None else None,
    }


class CardCatalog:
    """
    Read-only id -> Card lookup, loaded once before the core is constructed.
    Iteration follows ascending card id.
    """

    def __init__(self, cards: Iterable[Card]):
        by_id: Dict[int, Card] = {}
        for card in cards:
            if card.id in by_id:
                raise CatalogError(f"duplicate card id: {card.id}")
            by_id[card.id] = card
        if not by_id:
            raise CatalogError("catalog is empty")
        self._cards = dict(sorted(by_id.items()))

    def get(self, card_id: int) -> Card:
        try:
            return self._cards[card_id]
        except KeyError:
            raise CatalogError(f"unknown card id: {card_id}") from None

    def by_levels(self, levels: Iterable[int]) -> List[Card]:
        wanted = set(levels)
        return [c for c in self._cards.values() if c.level in wanted]

    def __contains__(self, card_id: object) -> bool:
        return card_id in self._cards

    def __iter__(self) -> Iterator[Card]:
        return iter(self._cards.values())

    def __len__(self) -> int:
        return len(self._cards)


def load_catalog(path: str) -> CardCatalog:
    """Loads a card catalog JSON file ({"cards": [...]})."""
    logger.debug("loading card catalog from %s", path)
    with open(path, "r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise CatalogError(f"{path}: invalid JSON: {e}") from e
    entries = data.get("cards") if isinstance(data, dict) else None
    if not isinstance(entries, list):
        raise CatalogError(f"{path}: expected an object with a 'cards' list")
    return CardCatalog(card_from_json(entry) for entry in entries)


_default: Optional[CardCatalog] = None


def default_catalog() -> CardCatalog:
    """Returns the process-wide catalog (TRIAD_CATALOG or the bundled file), loading it on first use."""
    global _default
    if _default is None:
        _default = load_catalog(os.getenv("TRIAD_CATALOG") or BUNDLED_CATALOG)
    return _default
