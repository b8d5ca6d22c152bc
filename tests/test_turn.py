import unittest

from game import (
    BoardState,
    Card,
    Combo,
    Direction,
    EventKind,
    Flip,
    Hand,
    Input,
    InstantPresentation,
    Opponent,
    Outcome,
    PlacedCard,
    Rules,
    Sfx,
    Side,
    TurnStateMachine,
    default_catalog,
)
from triad_core.board import CheckStatus
from triad_core.errors import InvariantViolation
from triad_core.turn import Frame, State, TurnPhase


def _card(cid, top, right, bottom, left):
    return Card(id=cid, name=f"c{cid}", level=1, top=top, right=right, bottom=bottom, left=left)


WEAK = _card(1, 1, 1, 1, 1)


class TestTurnStateMachine(unittest.TestCase):
    def setUp(self):
        self.presentation = InstantPresentation()
        self.opponent = Opponent(default_catalog(), cooldown=0.0)

    def tearDown(self):
        self.opponent.join()

    def _machine(self, board, first):
        tm = TurnStateMachine(board, self.opponent, self.presentation)
        tm.first_turn(first)
        return tm

    def _put(self, board, cell, card, side):
        placed = PlacedCard.dealt(card, side)
        board.place_card(cell, placed)
        placed.status = CheckStatus.CHECKED

    def _run(self, tm, until, limit=500):
        events = []
        for _ in range(limit):
            ev = tm.update(0.1)
            self.opponent.join()
            if ev is not None:
                events.append(ev)
                if until(ev):
                    break
        return events

    def test_given_new_machine_when_created_then_stack_starts_with_red_pick(self):
        tm = TurnStateMachine(BoardState(), self.opponent, self.presentation)
        self.assertEqual([f.state for f in tm.stack], [State.FINISH, State.RED_TURN, State.START])
        tm.first_turn(Side.BLUE)
        self.assertEqual(tm.stack[1], Frame.turn(Side.BLUE))

    def test_given_red_card_below_weaker_blue_when_ai_plays_then_flip_is_emitted(self):
        red_card = _card(2, 5, 1, 1, 1)
        board = BoardState(Rules(), red_hand=Hand.from_cards(Side.RED, [red_card] * 5),
                           blue_hand=Hand.from_cards(Side.BLUE, [WEAK] * 4))
        self._put(board, 1, _card(3, 1, 9, 3, 9), Side.BLUE)
        tm = self._machine(board, Side.RED)

        events = self._run(tm, lambda ev: ev.is_sound(Sfx.FLIP))
        self.assertTrue(events[-1].is_sound(Sfx.FLIP))
        self.assertTrue(any(ev.is_sound(Sfx.MOVE) for ev in events))
        self.assertIs(board.cells[1].controller, Side.RED)
        self.assertIsNotNone(board.cells[4])
        self.assertEqual(board.score(), (6, 4))
        self.assertIn(("flip", Flip(1, Direction.TOP, Combo.NONE)), self.presentation.commands)

        # flip settles, then the turn passes to Blue
        self._run(tm, lambda ev: False, limit=3)
        self.assertEqual(tm.active(), Frame.turn(Side.BLUE))

    def test_given_blue_turn_when_focusing_selecting_and_cancelling_then_phases_follow(self):
        board = BoardState(Rules(), red_hand=Hand.from_cards(Side.RED, [WEAK] * 5),
                           blue_hand=Hand.from_cards(Side.BLUE, [WEAK] * 5))
        tm = self._machine(board, Side.BLUE)
        self.assertIsNone(tm.update(0.0))
        self.assertEqual(tm.active(), Frame.turn(Side.BLUE))

        self.assertTrue(tm.update(0.0, Input.focus(2)).is_sound(Sfx.MOVE))
        self.assertIsNone(tm.update(0.0, Input.focus(2)))
        self.assertTrue(tm.update(0.0, Input.select(2)).is_sound(Sfx.MOVE))
        self.assertEqual(tm.active(), Frame.turn(Side.BLUE, TurnPhase.PLACE))
        self.assertEqual(board.blue_hand.selected, 2)

        self.assertIsNone(tm.update(0.0, Input.cancel()))
        self.assertEqual(tm.active(), Frame.turn(Side.BLUE))
        self.assertIsNone(board.blue_hand.selected)

        tm.update(0.0, Input.select(2))
        self.assertTrue(tm.update(0.0, Input.place(4)).is_sound(Sfx.MOVE))
        self.assertIsNone(board.blue_hand.slots[2])
        self.assertIs(board.cells[4].owner, Side.BLUE)
        self.assertEqual([f.state for f in tm.stack],
                         [State.FINISH, State.NEXT_TURN, State.CHECK, State.WAITING_MOVE])
        self.assertEqual(tm.stack[1].side, Side.RED)

    def test_given_occupied_cell_when_placing_then_input_ignored(self):
        board = BoardState(Rules(), red_hand=Hand.from_cards(Side.RED, [WEAK] * 4),
                           blue_hand=Hand.from_cards(Side.BLUE, [WEAK] * 5))
        self._put(board, 4, WEAK, Side.RED)
        tm = self._machine(board, Side.BLUE)
        tm.update(0.0)
        tm.update(0.0, Input.select(0))
        self.assertIsNone(tm.update(0.0, Input.place(4)))
        self.assertEqual(tm.active(), Frame.turn(Side.BLUE, TurnPhase.PLACE))
        self.assertIsNone(tm.update(0.0, Input.place(9)))

    def test_given_animations_in_flight_when_updating_then_phases_wait(self):
        board = BoardState(Rules(), red_hand=Hand.from_cards(Side.RED, [WEAK] * 5),
                           blue_hand=Hand.from_cards(Side.BLUE, [WEAK] * 5))
        tm = self._machine(board, Side.BLUE)
        self.presentation.dealing = True
        tm.update(0.0)
        self.assertEqual(tm.active().state, State.START)
        self.presentation.dealing = False
        tm.update(0.0)
        tm.update(0.0, Input.select(0))
        tm.update(0.0, Input.place(0))

        self.presentation.moving = True
        tm.update(0.0)
        self.assertEqual(tm.active().state, State.WAITING_MOVE)
        self.presentation.moving = False
        tm.update(0.0)
        self.assertEqual(tm.active().state, State.CHECK)
        self.assertIn(("deactivate", (0,)), self.presentation.commands)

        self.presentation.flipping = True
        tm.update(0.0)
        self.assertEqual(tm.active().state, State.CHECK)
        self.presentation.flipping = False
        tm.update(0.0)
        self.assertEqual(tm.active().state, State.NEXT_TURN)

    def test_given_same_combo_when_blue_places_then_combo_check_chains_the_capture(self):
        board = BoardState(Rules(same=True), red_hand=Hand.from_cards(Side.RED, [WEAK] * 2),
                           blue_hand=Hand.from_cards(Side.BLUE, [_card(5, 5, 1, 1, 5)] * 5))
        self._put(board, 0, _card(2, 1, 2, 1, 1), Side.RED)
        self._put(board, 1, _card(3, 1, 1, 5, 9), Side.RED)
        self._put(board, 3, _card(4, 1, 5, 1, 1), Side.RED)
        tm = self._machine(board, Side.BLUE)
        tm.update(0.0)
        tm.update(0.0, Input.select(0))
        tm.update(0.0, Input.place(4))
        self.assertIsNone(tm.update(0.0))  # WaitingMove

        self.assertTrue(tm.update(0.0).is_sound(Sfx.FLIP))
        self.assertEqual(tm.active().state, State.COMBO_CHECK)
        self.assertIs(board.cells[0].controller, Side.RED)

        self.assertTrue(tm.update(0.0).is_sound(Sfx.FLIP))
        self.assertIs(board.cells[0].controller, Side.BLUE)
        self.assertEqual(tm.active().state, State.CHECK)

        self.assertIsNone(tm.update(0.0))
        self.assertEqual(tm.active().state, State.NEXT_TURN)
        self.assertEqual(self.presentation.named("banner"), [("banner", Combo.SAME), ("banner", Combo.COMBO)])
        self.assertEqual(board.score(), (2, 8))

    def test_given_last_cell_when_placed_then_finish_reports_summary(self):
        board = BoardState(Rules(), red_hand=Hand.from_cards(Side.RED, [WEAK]),
                           blue_hand=Hand.from_cards(Side.BLUE, [WEAK]))
        for cell in range(8):
            self._put(board, cell, WEAK, Side.RED if cell % 2 == 0 else Side.BLUE)
        tm = self._machine(board, Side.BLUE)
        tm.update(0.0)
        tm.update(0.0, Input.select(0))
        tm.update(0.0, Input.place(8))
        tm.update(0.0)  # WaitingMove
        tm.update(0.0)  # Check pops itself and the pending NextTurn
        self.assertEqual(tm.stack, [Frame(State.FINISH)])
        ev = tm.update(0.0)
        self.assertIs(ev.kind, EventKind.GAME_SUMMARY)
        self.assertIs(ev.outcome, Outcome.DRAW)
        self.assertFalse(ev.sudden_death)

    def test_given_next_turn_frame_without_side_when_updating_then_invariant_violation(self):
        board = BoardState(Rules(), red_hand=Hand.from_cards(Side.RED, [WEAK] * 5),
                           blue_hand=Hand.from_cards(Side.BLUE, [WEAK] * 5))
        tm = self._machine(board, Side.BLUE)
        tm.stack.append(Frame(State.NEXT_TURN))
        with self.assertRaises(InvariantViolation):
            tm.update(0.0)

    def test_given_open_rule_when_starting_then_red_hand_revealed_and_checked(self):
        board = BoardState(Rules(open=True), red_hand=Hand.from_cards(Side.RED, [WEAK] * 5, revealed=False),
                           blue_hand=Hand.from_cards(Side.BLUE, [WEAK] * 5))
        tm = self._machine(board, Side.BLUE)
        tm.update(0.0)
        self.assertEqual(tm.active().state, State.CHECK)
        self.assertTrue(all(c.revealed for c in board.red_hand.slots))
        self.assertEqual(len(self.presentation.named("reveal")), 5)
        tm.update(0.0)
        self.assertEqual(tm.active(), Frame.turn(Side.BLUE))


if __name__ == '__main__':
    unittest.main(verbosity=2)
