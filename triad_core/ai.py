from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from .board import BoardState, Side
from .errors import InvariantViolation, SearchError

logger = logging.getLogger(__name__)

SEARCH_COOLDOWN = 1.0  # seconds between visible AI actions
MIN_DIFFICULTY = 1
MAX_DIFFICULTY = 5
SHORTCUT_SCORE = 5

Score = Tuple[int, int]  # (red, blue)


def own_count(score: Score, side: Side) -> int:
    return score[0] if side is Side.RED else score[1]


@dataclass(frozen=True)
class Move:
    slot: int
    cell: int
    score: int


def solve_recur(turn: Side, board: BoardState, depth: int) -> Score:
    """
    Depth-limited look-ahead. The side to move picks the child maximizing its
    own final count; the first candidate is kept unless a later one is strictly better.
    """
    hand = board.hand(turn)
    if depth < 1 or board.is_full() or hand.is_empty():
        return board.score()

    best: Optional[Score] = None
    for slot in hand.occupied():
        for cell in board.empty_cells():
            child = board.clone()
            child.play(turn, slot, cell)
            score = solve_recur(turn.other(), child, depth - 1)
            if best is None or own_count(score, turn) > own_count(best, turn):
                best = score
    if best is None:
        raise SearchError(f"no move found for {turn.value}")
    return best


def search_slot(side: Side, slot: int, board: BoardState, depth: int) -> Move:
    """Best target cell for one hand slot. With a single empty cell the search is skipped."""
    empty = board.empty_cells()
    if not empty:
        raise SearchError("board is full, nothing to search")
    if len(empty) == 1:
        first = board.hand(side).first_occupied()
        if first is None:
            raise SearchError(f"{side.value} hand is empty")
        return Move(first, empty[0], SHORTCUT_SCORE)

    best: Optional[Move] = None
    for cell in empty:
        child = board.clone()
        child.play(side, slot, cell)
        count = own_count(solve_recur(side.other(), child, depth - 1), side)
        if best is None or count > best.score:
            best = Move(slot, cell, count)
    if best is None:
        raise SearchError(f"no cell found for {side.value} slot {slot}")
    return best


def best_move(side: Side, board: BoardState, depth: int) -> Move:
    """Synchronous fold of search_slot over every occupied slot, lowest slot first."""
    best: Optional[Move] = None
    for slot in board.hand(side).occupied():
        move = search_slot(side, slot, board, depth)
        if best is None or move.score > best.score:
            best = move
    if best is None:
        raise SearchError(f"{side.value} has no card to play")
    return best


class SearchStatus(Enum):
    WAITING = "waiting"
    ACTIVE = "active"
    FINISHED = "finished"


class SearchSlot:
    """Status flag plus result, shared with the worker thread under one lock."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._status = SearchStatus.WAITING
        self._result: Optional[Move] = None

    @property
    def status(self) -> SearchStatus:
        with self._lock:
            return self._status

    def begin(self) -> bool:
        """WAITING -> ACTIVE; False when a search is already in flight or unconsumed."""
        with self._lock:
            if self._status is not SearchStatus.WAITING:
                return False
            self._status = SearchStatus.ACTIVE
            self._result = None
            return True

    def finish(self, move: Move) -> None:
        with self._lock:
            self._result = move
            self._status = SearchStatus.FINISHED

    def fail(self) -> None:
        with self._lock:
            self._result = None
            self._status = SearchStatus.WAITING

    def take(self) -> Optional[Move]:
        """FINISHED -> WAITING, handing back the result."""
        with self._lock:
            if self._status is not SearchStatus.FINISHED:
                return None
            self._status = SearchStatus.WAITING
            result, self._result = self._result, None
            return result


class ActionKind(Enum):
    CHECK = "check"
    PUT_BEST = "put-best"
    PUT = "put"


@dataclass(frozen=True)
class Action:
    kind: ActionKind
    slot: Optional[int] = None
    cell: Optional[int] = None


class AiEventKind(Enum):
    FOCUS = "focus"
    PUT = "put"


@dataclass(frozen=True)
class AiEvent:
    kind: AiEventKind
    cell: Optional[int] = None


class Ai:
    """
    Polled computer player for one side.

    Each turn it queues one search per occupied hand slot, runs them one at a
    time on a daemon thread over a cloned board, keeps the best result and
    then plays it. think() never blocks; a cool-down paces every visible step.
    """

    def __init__(self, side: Side = Side.RED, difficulty: int = MIN_DIFFICULTY,
                 cooldown: float = SEARCH_COOLDOWN):
        self.side = side
        self.difficulty = difficulty
        self.cooldown = cooldown
        self.actions: List[Action] = []
        self.maybe_move: Optional[Move] = None
        self.timer = 0.0
        self.search = SearchSlot()
        self._thread: Optional[threading.Thread] = None

    @property
    def difficulty(self) -> int:
        return self._difficulty

    @difficulty.setter
    def difficulty(self, value: int) -> None:
        self._difficulty = max(MIN_DIFFICULTY, min(int(value), MAX_DIFFICULTY))

    def reset(self) -> None:
        self.actions = []
        self.maybe_move = None
        self.timer = 0.0

    def _plan(self, board: BoardState) -> None:
        self.maybe_move = None
        self.actions = [Action(ActionKind.PUT_BEST)]
        for slot in reversed(board.hand(self.side).occupied()):
            self.actions.append(Action(ActionKind.CHECK, slot=slot))
        logger.debug("%s plans %d slot searches", self.side.value, len(self.actions) - 1)

    def think(self, dt: float, board: BoardState) -> Optional[AiEvent]:
        self.timer -= dt
        if self.timer >= 0.0:
            return None
        if self.search.status is SearchStatus.ACTIVE:
            return None

        if not self.actions:
            self._plan(board)

        hand = board.hand(self.side)
        action = self.actions[-1]

        if action.kind is ActionKind.CHECK:
            if action.slot is None:
                raise InvariantViolation("check action without a hand slot")
            if self.search.begin():
                hand.set_focus(action.slot)
                self._dispatch(action.slot, board)
                self.timer = self.cooldown
                return AiEvent(AiEventKind.FOCUS)
            move = self.search.take()
            if move is None:
                return None
            if self.maybe_move is None or move.score > self.maybe_move.score:
                self.maybe_move = move
            self.actions.pop()
            return None

        if action.kind is ActionKind.PUT_BEST:
            if self.maybe_move is None:
                raise SearchError("no search result to play")
            move = self.maybe_move
            hand.set_focus(move.slot)
            self.timer = self.cooldown
            self.actions[-1] = Action(ActionKind.PUT, slot=move.slot, cell=move.cell)
            return AiEvent(AiEventKind.FOCUS)

        if action.slot is None or action.cell is None:
            raise InvariantViolation("put action without a target")
        hand.set_focus(action.slot)
        hand.select_focused()
        self.actions = []
        logger.debug("%s puts slot %d on cell %d", self.side.value, action.slot, action.cell)
        return AiEvent(AiEventKind.PUT, action.cell)

    def _dispatch(self, slot: int, board: BoardState) -> None:
        snapshot = board.clone()
        depth = self.difficulty
        logger.debug("dispatch search: side=%s slot=%d depth=%d", self.side.value, slot, depth)
        self._thread = threading.Thread(
            target=self._run, args=(slot, snapshot, depth), name=f"triad-search-{slot}", daemon=True
        )
        self._thread.start()

    def _run(self, slot: int, snapshot: BoardState, depth: int) -> None:
        try:
            move = search_slot(self.side, slot, snapshot, depth)
        except Exception:
            logger.exception("search for %s slot %d failed, will retry", self.side.value, slot)
            self.search.fail()
            return
        logger.debug("search result: %s", move)
        self.search.finish(move)

    def join(self, timeout: Optional[float] = None) -> None:
        """Waits for the in-flight search, if any."""
        thread = self._thread
        if thread is not None:
            thread.join(timeout)
