from __future__ import annotations

import random
from typing import Iterable, List, Optional

from .board import BoardState, HAND_SIZE, Side
from .cards import Card, CardCatalog, ELEMENTS, Element
from .errors import CatalogError
from .ranks import BOARD_CELLS

ELEMENT_PROBABILITY = 0.3


def populate_elements(rng: random.Random) -> List[Optional[Element]]:
    """Draws the elemental tiles: one guaranteed cell, then each other cell with probability 0.3."""
    tiles: List[Optional[Element]] = [None] * BOARD_CELLS
    guaranteed = rng.randrange(BOARD_CELLS)
    for cell in range(BOARD_CELLS):
        if cell == guaranteed or rng.random() < ELEMENT_PROBABILITY:
            tiles[cell] = rng.choice(ELEMENTS)
    return tiles


def coin_flip(rng: random.Random) -> Side:
    """Picks the side that moves first."""
    return Side.RED if rng.random() > 0.5 else Side.BLUE


def random_hand(catalog: CardCatalog, levels: Iterable[int], rng: random.Random) -> List[Card]:
    """Five cards drawn with replacement from the catalog cards of the given levels."""
    pool = catalog.by_levels(levels)
    if not pool:
        raise CatalogError("no cards available for the enabled levels")
    return [rng.choice(pool) for _ in range(HAND_SIZE)]


def reset_board(board: BoardState, rng: random.Random) -> None:
    """Clears the grid and, under the elemental rule, draws fresh tiles."""
    board.cells = [None] * BOARD_CELLS
    board.tiles = populate_elements(rng) if board.rules.elemental else [None] * BOARD_CELLS


def deal_sudden_death(board: BoardState, rng: random.Random) -> None:
    """Sends every board card back to its owner and redraws the tiles for the replay."""
    board.return_cards_to_owners()
    if board.rules.elemental:
        board.set_tiles(populate_elements(rng))
