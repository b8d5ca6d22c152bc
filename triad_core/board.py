from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum, IntEnum
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .cards import Card, Element, MAX_RANK, Ranks
from .errors import InvariantViolation
from .ranks import (
    BOARD_CELLS,
    BOARD_SIDE,
    OPPOSITE,
    compare_normal,
    compare_plus,
    compare_same,
    neighbors,
)
from .rules import Rules

HAND_SIZE = 5
WALL_RANK = MAX_RANK


class Side(Enum):
    RED = "red"
    BLUE = "blue"

    def other(self) -> 'Side':
        return Side.BLUE if self is Side.RED else Side.RED


# Red is the computer player, Blue the human.
AI_SIDE = Side.RED
HUMAN_SIDE = Side.BLUE


class Outcome(Enum):
    WIN = "win"
    LOSE = "lose"
    DRAW = "draw"


class ElementalEffect(Enum):
    NONE = 0
    BONUS = 1
    MALUS = -1


class CheckStatus(Enum):
    UNCHECKED = "unchecked"  # freshly placed, all rules apply
    CHAINED = "chained"      # captured by Same/Plus, rechecked without combo rules
    CHECKED = "checked"


class Combo(Enum):
    NONE = "none"
    PLUS = "plus"
    SAME = "same"
    COMBO = "combo"


class Direction(IntEnum):
    TOP = 0
    RIGHT = 1
    BOTTOM = 2
    LEFT = 3


@dataclass(frozen=True)
class Flip:
    """One captured card: its cell, the side of the capturer it was hit from, and why."""
    cell: int
    direction: Direction
    combo: Combo = Combo.NONE

def elemental_effect(card: Card, tile: Optional[Element]) -> ElementalEffect:
    """Bonus when the tile matches the card's element, Malus for any other tile, None without a tile."""
    if tile is None:
        return ElementalEffect.NONE
    if card.element == tile:
        return ElementalEffect.BONUS
    return ElementalEffect.MALUS


@dataclass
class PlacedCard:
    """
    A card in play, in a hand or on the board.

    owner never changes; controller flips on capture. status drives the
    capture-check passes once the card sits on the board.
    """
    card: Card
    owner: Side
    controller: Side
    effect: ElementalEffect = ElementalEffect.NONE
    status: CheckStatus = CheckStatus.CHECKED
    revealed: bool = True

    @classmethod
    def dealt(cls, card: Card, side: Side, revealed: bool = True) -> 'PlacedCard':
        return cls(card=card, owner=side, controller=side, revealed=revealed)

    def ranks(self) -> Ranks:
        return self.card.ranks()

    def effective_ranks(self) -> Ranks:
        delta = self.effect.value
        t, r, b, l = (max(0, rank + delta) for rank in self.card.ranks())
        return (t, r, b, l)

    def copy(self) -> 'PlacedCard':
        return replace(self)


class Hand:
    """Five slots of cards plus the focus/selection used while picking."""

    def __init__(self, side: Side, slots: Optional[Sequence[Optional[PlacedCard]]] = None):
        self.side = side
        self.slots: List[Optional[PlacedCard]] = list(slots) if slots is not None else [None] * HAND_SIZE
        if len(self.slots) != HAND_SIZE:
            raise InvariantViolation(f"a hand holds exactly {HAND_SIZE} slots, got {len(self.slots)}")
        self.focus: Optional[int] = None
        self.selected: Optional[int] = None

    @classmethod
    def from_cards(cls, side: Side, cards: Iterable[Card], revealed: bool = True) -> 'Hand':
        hand = cls(side)
        for slot, card in enumerate(cards):
            hand.add_card(card, slot, revealed)
        return hand

    def _check_slot(self, slot: int) -> None:
        if not 0 <= slot < HAND_SIZE:
            raise InvariantViolation(f"hand slot out of range: {slot}")

    def add_card(self, card: Card, slot: int, revealed: bool = True) -> PlacedCard:
        self._check_slot(slot)
        placed = PlacedCard.dealt(card, self.side, revealed)
        self.slots[slot] = placed
        return placed

    def add_placed(self, placed: PlacedCard) -> int:
        """Puts a card back into the first free slot and returns that slot."""
        for slot, current in enumerate(self.slots):
            if current is None:
                self.slots[slot] = placed
                self.selected = None
                return slot
        raise InvariantViolation(f"{self.side.value} hand is full")

    def occupied(self) -> List[int]:
        return [slot for slot, c in enumerate(self.slots) if c is not None]

    def count(self) -> int:
        return sum(1 for c in self.slots if c is not None)

    def is_empty(self) -> bool:
        return self.count() == 0

    def first_occupied(self) -> Optional[int]:
        for slot, c in enumerate(self.slots):
            if c is not None:
                return slot
        return None

    def set_focus(self, slot: int) -> bool:
        """Moves the focus; returns True when it changed. Ignored while a card is selected."""
        self._check_slot(slot)
        if self.selected is not None or self.focus == slot:
            return False
        self.focus = slot
        return True

    def reset_focus(self) -> None:
        self.focus = None

    def select(self, slot: int) -> None:
        self._check_slot(slot)
        card = self.slots[slot]
        if card is None:
            raise InvariantViolation(f"cannot select empty {self.side.value} hand slot {slot}")
        card.revealed = True
        self.selected = slot

    def select_focused(self) -> None:
        if self.focus is None:
            raise InvariantViolation("no focused card to select")
        self.select(self.focus)

    def clear_selected(self) -> None:
        self.selected = None

    def take(self, slot: int) -> PlacedCard:
        self._check_slot(slot)
        card = self.slots[slot]
        if card is None:
            raise InvariantViolation(f"{self.side.value} hand slot {slot} is empty")
        self.slots[slot] = None
        if self.focus == slot:
            self.focus = None
        return card

    def take_selected(self) -> PlacedCard:
        if self.selected is None:
            raise InvariantViolation("no card is selected")
        slot = self.selected
        self.clear_selected()
        return self.take(slot)

    def copy(self) -> 'Hand':
        hand = Hand(self.side, [c.copy() if c is not None else None for c in self.slots])
        hand.focus = self.focus
        hand.selected = self.selected
        return hand


class BoardState:
    """
    The 3x3 grid, its elemental tiles and both hands.

    Plain values only, so clone() yields a fully detached snapshot for look-ahead.
    """

    def __init__(
        self,
        rules: Optional[Rules] = None,
        tiles: Optional[Sequence[Optional[Element]]] = None,
        red_hand: Optional[Hand] = None,
        blue_hand: Optional[Hand] = None,
    ):
        self.rules = rules or Rules()
        self.cells: List[Optional[PlacedCard]] = [None] * BOARD_CELLS
        self.tiles: List[Optional[Element]] = [None] * BOARD_CELLS
        if tiles is not None:
            self.set_tiles(tiles)
        self.hands: Dict[Side, Hand] = {
            Side.RED: red_hand or Hand(Side.RED),
            Side.BLUE: blue_hand or Hand(Side.BLUE),
        }

    @property
    def red_hand(self) -> Hand:
        return self.hands[Side.RED]

    @property
    def blue_hand(self) -> Hand:
        return self.hands[Side.BLUE]

    def hand(self, side: Side) -> Hand:
        return self.hands[side]

    def set_hand(self, hand: Hand) -> None:
        self.hands[hand.side] = hand

    def set_tiles(self, tiles: Sequence[Optional[Element]]) -> None:
        """Assigns the round's elemental tiles; only valid on an empty board."""
        if len(tiles) != BOARD_CELLS:
            raise InvariantViolation(f"expected {BOARD_CELLS} tiles, got {len(tiles)}")
        if any(c is not None for c in self.cells):
            raise InvariantViolation("tiles are fixed once cards are on the board")
        self.tiles = list(tiles)

    def clone(self) -> 'BoardState':
        board = BoardState(self.rules, self.tiles, self.red_hand.copy(), self.blue_hand.copy())
        board.cells = [c.copy() if c is not None else None for c in self.cells]
        return board

    def _check_cell(self, cell: int) -> None:
        if not 0 <= cell < BOARD_CELLS:
            raise InvariantViolation(f"cell index out of range: {cell}")

    def card_at(self, cell: int) -> Optional[PlacedCard]:
        self._check_cell(cell)
        return self.cells[cell]

    def empty_cells(self) -> List[int]:
        return [i for i, c in enumerate(self.cells) if c is None]

    def occupied_cells(self) -> List[int]:
        return [i for i, c in enumerate(self.cells) if c is not None]

    def is_full(self) -> bool:
        return all(c is not None for c in self.cells)

    def place_card(self, cell: int, placed: PlacedCard) -> None:
        self._check_cell(cell)
        if self.cells[cell] is not None:
            raise InvariantViolation(f"cell {cell} is already occupied")
        placed.effect = elemental_effect(placed.card, self.tiles[cell])
        placed.controller = placed.owner
        placed.status = CheckStatus.UNCHECKED
        placed.revealed = True
        self.cells[cell] = placed

    def play(self, side: Side, slot: int, cell: int) -> List[Flip]:
        """Moves a hand card onto the board and resolves it completely (search and API path)."""
        self._check_cell(cell)
        if self.cells[cell] is not None:
            raise InvariantViolation(f"cell {cell} is already occupied")
        placed = self.hands[side].take(slot)
        self.place_card(cell, placed)
        return self.check_captures(cell, combo=True, recurse=True)

    def _facing_ranks(self, cell: int, side: Side, effective: bool, wall: bool = False) -> List[Optional[int]]:
        """Opposing neighbours' ranks on the edges facing this cell."""
        out: List[Optional[int]] = []
        for direction, idx in enumerate(neighbors(cell)):
            if idx is None:
                out.append(WALL_RANK if wall else None)
                continue
            other = self.cells[idx]
            if other is None or other.controller is side:
                out.append(None)
                continue
            ranks = other.effective_ranks() if effective else other.ranks()
            out.append(ranks[OPPOSITE[direction]])
        return out

    def _capture(self, cell: int, side: Side, chained: bool) -> bool:
        target = self.cells[cell]
        if target is None:
            raise InvariantViolation(f"no card to capture at cell {cell}")
        if target.controller is side:
            return False
        target.controller = side
        if chained:
            target.status = CheckStatus.CHAINED
        return True

    def check_captures(self, cell: int, combo: bool = True, recurse: bool = False) -> List[Flip]:
        """
        Resolves the card at `cell` against its opposing neighbours.

        Same and Plus read base ranks and only run when `combo` is set; Normal
        reads effective (elemental) ranks and always runs. A direction is
        reported as Same before Plus before plain Normal. A Same/Plus capture
        either rechecks the captured card at once with combo=False
        (`recurse=True`) or marks it CHAINED for the next check pass.
        Normal captures never cascade. The checked card ends up CHECKED.
        """
        self._check_cell(cell)
        placed = self.cells[cell]
        if placed is None:
            raise InvariantViolation(f"no card to check at cell {cell}")
        side = placed.controller
        mask = neighbors(cell)
        base = placed.ranks()

        same = [False] * 4
        plus = [False] * 4
        if combo and (self.rules.same or self.rules.plus):
            facing = self._facing_ranks(cell, side, effective=False)
            if self.rules.same:
                if self.rules.same_wall:
                    walled = compare_same(base, self._facing_ranks(cell, side, effective=False, wall=True))
                    same = [hit and mask[i] is not None for i, hit in enumerate(walled)]
                else:
                    same = compare_same(base, facing)
            if self.rules.plus:
                plus = compare_plus(base, facing)
        normal = compare_normal(placed.effective_ranks(), self._facing_ranks(cell, side, effective=True))

        flips: List[Flip] = []
        for i in range(4):
            if not (same[i] or plus[i] or normal[i]):
                continue
            target = mask[i]
            if target is None:
                continue
            kind = Combo.SAME if same[i] else Combo.PLUS if plus[i] else Combo.NONE
            cascades = kind is not Combo.NONE
            if not self._capture(target, side, chained=cascades and not recurse):
                continue
            flips.append(Flip(target, Direction(i), kind))
            if cascades and recurse:
                for chained in self.check_captures(target, combo=False, recurse=True):
                    flips.append(replace(chained, combo=Combo.COMBO))

        placed.status = CheckStatus.CHECKED
        return flips

    def cards_to_check(self) -> List[int]:
        return [i for i, c in enumerate(self.cells) if c is not None and c.status is not CheckStatus.CHECKED]

    def check_cards(self) -> List[Flip]:
        """One check pass over every unchecked card; flips deduplicated by cell."""
        flips: List[Flip] = []
        seen = set()
        for cell in self.cards_to_check():
            placed = self.cells[cell]
            if placed is None or placed.status is CheckStatus.CHECKED:
                continue
            combo = placed.status is CheckStatus.UNCHECKED
            for flip in self.check_captures(cell, combo=combo):
                if not combo:
                    flip = replace(flip, combo=Combo.COMBO)
                if flip.cell in seen:
                    continue
                seen.add(flip.cell)
                flips.append(flip)
        return flips

    def all_cards(self) -> Iterable[PlacedCard]:
        for c in self.cells:
            if c is not None:
                yield c
        for hand in self.hands.values():
            for c in hand.slots:
                if c is not None:
                    yield c

    def score(self) -> Tuple[int, int]:
        """(red, blue) controller counts over board and hands."""
        red = blue = 0
        for c in self.all_cards():
            if c.controller is Side.RED:
                red += 1
            else:
                blue += 1
        return red, blue

    def outcome(self, human: Side = HUMAN_SIDE) -> Outcome:
        red, blue = self.score()
        mine, theirs = (blue, red) if human is Side.BLUE else (red, blue)
        if mine > theirs:
            return Outcome.WIN
        if mine < theirs:
            return Outcome.LOSE
        return Outcome.DRAW

    def return_cards_to_owners(self) -> None:
        """Sudden death: every board card goes back to its owner's hand, uncaptured."""
        for cell, placed in enumerate(self.cells):
            if placed is None:
                continue
            placed.controller = placed.owner
            placed.effect = ElementalEffect.NONE
            placed.status = CheckStatus.CHECKED
            self.hands[placed.owner].add_placed(placed)
            self.cells[cell] = None
        self.tiles = [None] * BOARD_CELLS
        for hand in self.hands.values():
            hand.reset_focus()
            hand.clear_selected()

    def pretty(self) -> str:
        """Generates a human-readable view of the grid (controller, ranks, elemental effect)."""
        lines: List[str] = []
        for r in range(BOARD_SIDE):
            row: List[str] = []
            for c in range(BOARD_SIDE):
                idx = r * BOARD_SIDE + c
                placed = self.cells[idx]
                if placed is not None:
                    mark = {ElementalEffect.BONUS: "+", ElementalEffect.MALUS: "-"}.get(placed.effect, " ")
                    text = f"{placed.controller.value[0].upper()}[{placed.card.rank_label()}]{mark}"
                elif self.tiles[idx] is not None:
                    text = f"{idx}:{self.tiles[idx].value}"  # type: ignore[union-attr]
                else:
                    text = f"{idx}"
                row.append(text.center(14))
            lines.append("|".join(row))
        return "\n".join(lines)
