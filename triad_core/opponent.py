from __future__ import annotations

import logging
import random
from typing import List, Optional

from .ai import Ai, AiEvent, MAX_DIFFICULTY, MIN_DIFFICULTY, SEARCH_COOLDOWN
from .board import BoardState, Side
from .cards import Card, CardCatalog, MAX_LEVEL, MIN_LEVEL
from .deal import random_hand

logger = logging.getLogger(__name__)

LEVELS = MAX_LEVEL - MIN_LEVEL + 1


class Opponent:
    """The computer player: which card levels it deals from, and its search."""

    def __init__(self, catalog: CardCatalog, side: Side = Side.RED, cooldown: float = SEARCH_COOLDOWN):
        self.catalog = catalog
        self.side = side
        self.cooldown = cooldown
        self.card_enabled: List[bool] = [True] * LEVELS
        self.ai = Ai(side, MIN_DIFFICULTY, cooldown)

    def cards(self) -> List[bool]:
        return list(self.card_enabled)

    def enabled_levels(self) -> List[int]:
        return [MIN_LEVEL + i for i, on in enumerate(self.card_enabled) if on]

    def toggle_cards(self, n: int) -> bool:
        """Flips level flag n (0-based); the last enabled level stays on. Returns whether it changed."""
        if not 0 <= n < LEVELS:
            return False
        if self.card_enabled[n] and sum(self.card_enabled) <= 1:
            return False
        self.card_enabled[n] = not self.card_enabled[n]
        return True

    @property
    def difficulty(self) -> int:
        return self.ai.difficulty

    def set_difficulty(self, value: int) -> None:
        self.ai.difficulty = min(value, MAX_DIFFICULTY)

    def cycle_difficulty(self) -> int:
        """Menu cycle 1 -> 2 -> 3 -> 1."""
        current = self.difficulty
        self.set_difficulty(1 if current >= 3 else current + 1)
        return self.difficulty

    def clear(self) -> None:
        self.ai = Ai(self.side, MIN_DIFFICULTY, self.cooldown)
        self.card_enabled = [True] * LEVELS

    def new_hand(self, rng: random.Random) -> List[Card]:
        hand = random_hand(self.catalog, self.enabled_levels(), rng)
        logger.debug("opponent hand: %s", [c.id for c in hand])
        return hand

    def think(self, dt: float, board: BoardState) -> Optional[AiEvent]:
        return self.ai.think(dt, board)

    def join(self, timeout: Optional[float] = None) -> None:
        self.ai.join(timeout)
