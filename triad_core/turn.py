"""
Turn flow for one round, as an explicit phase stack.

The top frame is the active phase. Placing a card replaces the turn frame
with NextTurn and stacks Check and WaitingMove above it, so the round resumes
in the state beneath once those settle. Finish sits at the bottom and is
reached only when the board fills up.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from .ai import Ai, AiEvent, AiEventKind
from .board import BoardState, Combo, Side
from .errors import InvariantViolation
from .events import Event, Input, InputKind, Presentation, Sfx
from .opponent import Opponent
from .rules import Rule

logger = logging.getLogger(__name__)


class State(Enum):
    START = "start"
    RED_TURN = "red-turn"
    BLUE_TURN = "blue-turn"
    NEXT_TURN = "next-turn"
    WAITING_MOVE = "waiting-move"
    WAITING_PICK = "waiting-pick"
    COMBO_CHECK = "combo-check"
    CHECK = "check"
    FINISH = "finish"


class TurnPhase(Enum):
    PICK = "pick"
    PLACE = "place"


@dataclass(frozen=True)
class Frame:
    state: State
    phase: Optional[TurnPhase] = None
    side: Optional[Side] = None

    @classmethod
    def turn(cls, side: Side, phase: TurnPhase = TurnPhase.PICK) -> 'Frame':
        state = State.RED_TURN if side is Side.RED else State.BLUE_TURN
        return cls(state, phase, side)

    @classmethod
    def next_turn(cls, side: Side) -> 'Frame':
        return cls(State.NEXT_TURN, side=side)

    def __str__(self) -> str:
        parts = [self.state.value]
        if self.phase is not None:
            parts.append(self.phase.value)
        elif self.side is not None:
            parts.append(self.side.value)
        return ":".join(parts)


def initial_stack(first: Side = Side.RED) -> List[Frame]:
    return [Frame(State.FINISH), Frame.turn(first), Frame(State.START)]


class TurnStateMachine:
    """
    Drives one round over a BoardState. update() is called once per tick and
    returns at most one Event; it never blocks on the opponent's search.
    The Blue side is played from inputs unless `blue_ai` is given.
    """

    def __init__(self, board: BoardState, opponent: Opponent, presentation: Presentation,
                 blue_ai: Optional[Ai] = None):
        self.board = board
        self.opponent = opponent
        self.presentation = presentation
        self.blue_ai = blue_ai
        self.stack: List[Frame] = initial_stack()

    def active(self) -> Optional[Frame]:
        return self.stack[-1] if self.stack else None

    def _push(self, frame: Frame) -> None:
        logger.debug("push %s", frame)
        self.stack.append(frame)

    def _pop(self) -> Frame:
        frame = self.stack.pop()
        logger.debug("pop %s", frame)
        return frame

    def first_turn(self, side: Side) -> None:
        self.stack = initial_stack(side)
        logger.info("round starts with %s", side.value)

    def wait_for_pick(self) -> None:
        self._push(Frame(State.WAITING_PICK))

    def next_state(self) -> None:
        self._pop()

    def toggle_rule(self, rule: Rule) -> None:
        self.board.rules = self.board.rules.toggled(rule)

    def update(self, dt: float, inp: Optional[Input] = None) -> Optional[Event]:
        frame = self.active()
        if frame is None:
            return Event.finished()
        state = frame.state
        if state is State.WAITING_PICK:
            return None
        if state is State.START:
            return self._start()
        if state is State.BLUE_TURN:
            if self.blue_ai is not None:
                return self._ai_turn(self.blue_ai.think(dt, self.board), Side.BLUE)
            if frame.phase is TurnPhase.PICK:
                return self._blue_pick(inp)
            return self._blue_place(inp)
        if state is State.RED_TURN:
            return self._ai_turn(self.opponent.think(dt, self.board), Side.RED)
        if state is State.NEXT_TURN:
            if frame.side is None:
                raise InvariantViolation("next-turn frame without a side")
            self._pop()
            self._push(Frame.turn(frame.side))
            return None
        if state is State.CHECK:
            return self._check()
        if state is State.COMBO_CHECK:
            return self._combo_check()
        if state is State.WAITING_MOVE:
            if self.presentation.move_finished():
                self.presentation.deactivate_tiles(self.board.occupied_cells())
                self._pop()
            return None
        return self._finish()

    def _start(self) -> Optional[Event]:
        if not self.presentation.deal_finished():
            return None
        self.presentation.activate_tiles(self.board.tiles)
        self._pop()
        if self.board.rules.open:
            hand = self.board.red_hand
            for slot, card in enumerate(hand.slots):
                if card is None:
                    continue
                card.revealed = True
                self.presentation.reveal_card(Side.RED, slot)
            self._push(Frame(State.CHECK))
        return None

    def _blue_pick(self, inp: Optional[Input]) -> Optional[Event]:
        if inp is None:
            return None
        hand = self.board.blue_hand
        if inp.kind not in (InputKind.FOCUS, InputKind.SELECT) or inp.value is None:
            return None
        if not 0 <= inp.value < len(hand.slots) or hand.slots[inp.value] is None:
            return None
        changed = hand.set_focus(inp.value)
        if inp.kind is InputKind.SELECT:
            hand.select(inp.value)
            self._pop()
            self._push(Frame.turn(Side.BLUE, TurnPhase.PLACE))
            return Event.sound(Sfx.MOVE)
        return Event.sound(Sfx.MOVE) if changed else None

    def _blue_place(self, inp: Optional[Input]) -> Optional[Event]:
        if inp is None:
            return None
        hand = self.board.blue_hand
        if inp.kind is InputKind.CANCEL:
            hand.clear_selected()
            self._pop()
            self._push(Frame.turn(Side.BLUE))
            return None
        if inp.kind is not InputKind.PLACE or inp.value is None:
            return None
        cell = inp.value
        if not 0 <= cell < len(self.board.cells) or self.board.cells[cell] is not None:
            return None
        self._put(Side.BLUE, cell)
        return Event.sound(Sfx.MOVE)

    def _ai_turn(self, ai_event: Optional[AiEvent], side: Side) -> Optional[Event]:
        if ai_event is None:
            return None
        if ai_event.kind is AiEventKind.PUT:
            if ai_event.cell is None:
                raise InvariantViolation("put event without a cell")
            self._put(side, ai_event.cell)
        return Event.sound(Sfx.MOVE)

    def _put(self, side: Side, cell: int) -> None:
        placed = self.board.hand(side).take_selected()
        self.board.place_card(cell, placed)
        self.presentation.move_card(cell, side)
        self._pop()
        self._push(Frame.next_turn(side.other()))
        self._push(Frame(State.CHECK))
        self._push(Frame(State.WAITING_MOVE))

    def _show_flips(self, flips) -> None:
        for flip in flips:
            self.presentation.flip_card(flip)

    def _check(self) -> Optional[Event]:
        flips = self.board.check_cards()
        self._show_flips(flips)
        same = any(f.combo is Combo.SAME for f in flips)
        plus = any(f.combo is Combo.PLUS for f in flips)
        if same:
            self.presentation.show_banner(Combo.SAME)
        elif plus:
            self.presentation.show_banner(Combo.PLUS)
        if same or plus:
            self._push(Frame(State.COMBO_CHECK))
        if flips:
            return Event.sound(Sfx.FLIP)
        if not self.presentation.flip_finished():
            return None
        self._pop()
        if self.board.is_full():
            self._pop()
        return None

    def _combo_check(self) -> Optional[Event]:
        if not self.presentation.flip_finished():
            return None
        self._pop()
        if self.board.cards_to_check():
            flips = self.board.check_cards()
            if flips:
                self._show_flips(flips)
                self.presentation.show_banner(Combo.COMBO)
                return Event.sound(Sfx.FLIP)
        return None

    def _finish(self) -> Event:
        outcome = self.board.outcome()
        red, blue = self.board.score()
        logger.debug("finish: red=%d blue=%d outcome=%s", red, blue, outcome.value)
        return Event.summary(outcome, self.board.rules.sudden_death)
