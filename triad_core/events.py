"""
Inputs consumed by the state machines, events they emit upward, and the
presentation collaborator they drive.

The core never draws or plays audio. It sends fire-and-forget commands to a
Presentation and asks it whether animations are still in flight.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from .board import Combo, Flip, Outcome, Side
from .cards import Element
from .rules import Rule


class Sfx(Enum):
    MOVE = "move"
    SELECT = "select"
    CANCEL = "cancel"
    FANFARE = "fanfare"
    FLIP = "flip"


class EventKind(Enum):
    PLAY_SOUND = "play-sound"
    PLAY = "play"
    GAME_SUMMARY = "game-summary"
    FINISHED = "finished"
    QUIT = "quit"
    CHANGE_RULE = "change-rule"
    CHANGE_DIFFICULTY = "change-difficulty"
    TOGGLE_CARDS = "toggle-cards"


@dataclass(frozen=True)
class Event:
    kind: EventKind
    sfx: Optional[Sfx] = None
    outcome: Optional[Outcome] = None
    sudden_death: bool = False
    rule: Optional[Rule] = None
    index: Optional[int] = None

    @classmethod
    def sound(cls, sfx: Sfx) -> 'Event':
        return cls(EventKind.PLAY_SOUND, sfx=sfx)

    @classmethod
    def summary(cls, outcome: Outcome, sudden_death: bool) -> 'Event':
        return cls(EventKind.GAME_SUMMARY, outcome=outcome, sudden_death=sudden_death)

    @classmethod
    def finished(cls) -> 'Event':
        return cls(EventKind.FINISHED)

    @classmethod
    def play(cls) -> 'Event':
        return cls(EventKind.PLAY)

    @classmethod
    def quit(cls) -> 'Event':
        return cls(EventKind.QUIT)

    @classmethod
    def change_rule(cls, rule: Rule) -> 'Event':
        return cls(EventKind.CHANGE_RULE, rule=rule)

    @classmethod
    def change_difficulty(cls) -> 'Event':
        return cls(EventKind.CHANGE_DIFFICULTY)

    @classmethod
    def toggle_cards(cls, index: int) -> 'Event':
        return cls(EventKind.TOGGLE_CARDS, index=index)

    def is_sound(self, sfx: Sfx) -> bool:
        return self.kind is EventKind.PLAY_SOUND and self.sfx is sfx


class InputKind(Enum):
    FOCUS = "focus"          # hover a hand slot
    SELECT = "select"        # pick up a hand slot
    PLACE = "place"          # drop the selected card on a cell
    CANCEL = "cancel"
    CONFIRM = "confirm"
    PICK_CARD = "pick-card"  # card picker: add a catalog card to the hand
    MENU = "menu"            # menu item picked, carrying the item's Event


@dataclass(frozen=True)
class Input:
    kind: InputKind
    value: Optional[int] = None
    event: Optional[Event] = None

    @classmethod
    def focus(cls, slot: int) -> 'Input':
        return cls(InputKind.FOCUS, slot)

    @classmethod
    def select(cls, slot: int) -> 'Input':
        return cls(InputKind.SELECT, slot)

    @classmethod
    def place(cls, cell: int) -> 'Input':
        return cls(InputKind.PLACE, cell)

    @classmethod
    def cancel(cls) -> 'Input':
        return cls(InputKind.CANCEL)

    @classmethod
    def confirm(cls) -> 'Input':
        return cls(InputKind.CONFIRM)

    @classmethod
    def pick_card(cls, card_id: int) -> 'Input':
        return cls(InputKind.PICK_CARD, card_id)

    @classmethod
    def menu(cls, event: Event) -> 'Input':
        return cls(InputKind.MENU, event=event)


class Presentation:
    """
    Collaborator interface the core drives. Every command is fire-and-forget;
    the *_finished queries gate phase transitions.
    """

    def deal_finished(self) -> bool:
        raise NotImplementedError

    def move_finished(self) -> bool:
        raise NotImplementedError

    def flip_finished(self) -> bool:
        raise NotImplementedError

    def deal_card(self, side: Side, slot: int) -> None:
        pass

    def reveal_card(self, side: Side, slot: int) -> None:
        pass

    def move_card(self, cell: int, side: Side) -> None:
        pass

    def flip_card(self, flip: Flip) -> None:
        pass

    def activate_tiles(self, tiles: Sequence[Optional[Element]]) -> None:
        pass

    def deactivate_tiles(self, cells: Sequence[int]) -> None:
        pass

    def show_banner(self, combo: Combo) -> None:
        pass


class InstantPresentation(Presentation):
    """Completes every animation immediately and records the commands it is sent."""

    def __init__(self) -> None:
        self.commands: List[Tuple[object, ...]] = []
        self.dealing = False
        self.moving = False
        self.flipping = False

    def deal_finished(self) -> bool:
        return not self.dealing

    def move_finished(self) -> bool:
        return not self.moving

    def flip_finished(self) -> bool:
        return not self.flipping

    def deal_card(self, side: Side, slot: int) -> None:
        self.commands.append(("deal", side, slot))

    def reveal_card(self, side: Side, slot: int) -> None:
        self.commands.append(("reveal", side, slot))

    def move_card(self, cell: int, side: Side) -> None:
        self.commands.append(("move", cell, side))

    def flip_card(self, flip: Flip) -> None:
        self.commands.append(("flip", flip))

    def activate_tiles(self, tiles: Sequence[Optional[Element]]) -> None:
        self.commands.append(("activate", tuple(tiles)))

    def deactivate_tiles(self, cells: Sequence[int]) -> None:
        self.commands.append(("deactivate", tuple(cells)))

    def show_banner(self, combo: Combo) -> None:
        self.commands.append(("banner", combo))

    def named(self, name: str) -> List[Tuple[object, ...]]:
        return [c for c in self.commands if c[0] == name]
