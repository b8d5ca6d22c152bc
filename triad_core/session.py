from __future__ import annotations

import logging
import random
from enum import Enum
from typing import List, Optional

from .ai import Ai, SEARCH_COOLDOWN
from .board import BoardState, Hand, HAND_SIZE, Outcome, Side
from .cards import CardCatalog, default_catalog
from .deal import coin_flip, deal_sudden_death, reset_board
from .events import (
    Event,
    EventKind,
    Input,
    InputKind,
    InstantPresentation,
    Presentation,
    Sfx,
)
from .opponent import Opponent
from .rules import Rules
from .turn import TurnStateMachine, initial_stack

logger = logging.getLogger(__name__)


class Phase(Enum):
    MENU = "menu"
    CARD_PICK = "card-pick"
    COIN_FLIP = "coin-flip"
    PLAY = "play"
    FIN = "fin"


class GameSession:
    """
    Top-level orchestrator: menu, card pick, coin flip, play and the final banner,
    kept as a phase stack on top of the round's TurnStateMachine.
    """

    def __init__(
        self,
        catalog: Optional[CardCatalog] = None,
        presentation: Optional[Presentation] = None,
        rules: Optional[Rules] = None,
        seed: Optional[int] = None,
        rng: Optional[random.Random] = None,
        cooldown: float = SEARCH_COOLDOWN,
        autoplay: bool = False,
    ):
        self.catalog = catalog or default_catalog()
        self.presentation = presentation or InstantPresentation()
        self.rng = rng or random.Random(seed)
        self.opponent = Opponent(self.catalog, cooldown=cooldown)
        self.blue_ai = Ai(Side.BLUE, cooldown=cooldown) if autoplay else None
        self.board = BoardState(rules)
        self.play = TurnStateMachine(self.board, self.opponent, self.presentation, self.blue_ai)
        self.outcome: Optional[Outcome] = None
        self._fanfare_done = False
        self._picked = 0
        self.stack: List[Phase] = []
        self.reset()

    @property
    def rules(self) -> Rules:
        return self.board.rules

    def reset(self) -> None:
        """Back to the menu, keeping rules and opponent settings."""
        self.stack = [Phase.PLAY, Phase.COIN_FLIP, Phase.MENU]
        self.outcome = None
        self._fanfare_done = False
        self._picked = 0

    def phase(self) -> Optional[Phase]:
        return self.stack[-1] if self.stack else None

    def update(self, dt: float, inp: Optional[Input] = None) -> Optional[Event]:
        phase = self.phase()
        if phase is None:
            return Event.quit()
        if phase is Phase.MENU:
            return self._menu(inp)
        if phase is Phase.CARD_PICK:
            return self._card_pick(dt, inp)
        if phase is Phase.COIN_FLIP:
            self._coin_flip()
            return None
        if phase is Phase.PLAY:
            return self._play(dt, inp)
        return self._fin(inp)

    def _menu(self, inp: Optional[Input]) -> Optional[Event]:
        if inp is None or inp.kind is not InputKind.MENU or inp.event is None:
            return None
        event = inp.event
        if event.kind is EventKind.PLAY:
            self._start_round()
            self.stack.pop()
            if self.rules.random:
                self._deal(Side.BLUE, self.opponent.new_hand(self.rng), revealed=True)
                return Event.sound(Sfx.SELECT)
            self.play.wait_for_pick()
            self.stack.append(Phase.CARD_PICK)
            return Event.sound(Sfx.SELECT)
        if event.kind is EventKind.QUIT:
            self.stack.clear()
            return Event.sound(Sfx.CANCEL)
        if event.kind is EventKind.CHANGE_RULE:
            if event.rule is not None:
                self.play.toggle_rule(event.rule)
            return Event.sound(Sfx.SELECT)
        if event.kind is EventKind.CHANGE_DIFFICULTY:
            self.opponent.cycle_difficulty()
            return Event.sound(Sfx.SELECT)
        if event.kind is EventKind.TOGGLE_CARDS:
            if event.index is not None:
                self.opponent.toggle_cards(event.index)
            return Event.sound(Sfx.SELECT)
        logger.debug("menu ignored %s", event.kind.value)
        return None

    def _start_round(self) -> None:
        reset_board(self.board, self.rng)
        self.play.stack = initial_stack()
        self.opponent.ai.reset()
        if self.blue_ai is not None:
            self.blue_ai.reset()
            self.blue_ai.difficulty = self.opponent.difficulty
        self.board.set_hand(Hand(Side.BLUE))
        self._deal(Side.RED, self.opponent.new_hand(self.rng), revealed=False)
        self._picked = 0
        logger.debug("new round: rules=%s difficulty=%d", self.rules.to_json(), self.opponent.difficulty)

    def _deal(self, side: Side, cards, revealed: bool) -> None:
        self.board.set_hand(Hand.from_cards(side, cards, revealed))
        for slot in range(HAND_SIZE):
            self.presentation.deal_card(side, slot)

    def _card_pick(self, dt: float, inp: Optional[Input]) -> Optional[Event]:
        if inp is not None and inp.kind is InputKind.PICK_CARD and inp.value in self.catalog:
            count = self._picked
            self.board.blue_hand.add_card(self.catalog.get(inp.value), count, True)
            self.presentation.deal_card(Side.BLUE, count)
            self._picked += 1
            if count >= HAND_SIZE - 1:
                self.stack.pop()
                self.play.next_state()
            return Event.sound(Sfx.SELECT)
        self.play.update(dt)
        return None

    def _coin_flip(self) -> None:
        first = coin_flip(self.rng)
        self.play.first_turn(first)
        self.opponent.ai.reset()
        if self.blue_ai is not None:
            self.blue_ai.reset()
        self.stack.pop()

    def _play(self, dt: float, inp: Optional[Input]) -> Optional[Event]:
        event = self.play.update(dt, inp)
        if event is None:
            return None
        if event.kind is EventKind.GAME_SUMMARY:
            if event.outcome is Outcome.DRAW and event.sudden_death:
                logger.info("draw under sudden death, replaying with the same cards")
                deal_sudden_death(self.board, self.rng)
                self.stack.append(Phase.COIN_FLIP)
                return None
            red, blue = self.board.score()
            logger.info("game over: %s (red %d, blue %d)", event.outcome.value if event.outcome else "?", red, blue)
            self.outcome = event.outcome
            self.stack.append(Phase.FIN)
        return event

    def _fin(self, inp: Optional[Input]) -> Optional[Event]:
        if not self._fanfare_done:
            self._fanfare_done = True
            if self.outcome is Outcome.WIN:
                return Event.sound(Sfx.FANFARE)
        if inp is not None and inp.kind is InputKind.CONFIRM:
            return Event.finished()
        return None

    def join(self, timeout: Optional[float] = None) -> None:
        """Waits for any background search; used by tests and the CLI on exit."""
        self.opponent.join(timeout)
        if self.blue_ai is not None:
            self.blue_ai.join(timeout)
