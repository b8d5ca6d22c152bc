from __future__ import annotations

import argparse
import logging
import os
import time
from typing import List, Optional

from .board import Hand
from .cards import CardCatalog, default_catalog, load_catalog
from .errors import TriadError
from .events import Event, EventKind, Input, Sfx
from .rules import Rules
from .session import GameSession, Phase
from .turn import State, TurnPhase

logger = logging.getLogger(__name__)


def _truthy(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in ("1", "true", "yes", "on")


def configure_logging() -> None:
    level = logging.DEBUG if _truthy(os.getenv("TRIAD_DEBUG")) else logging.WARNING
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def format_hand(hand: Hand) -> str:
    parts: List[str] = []
    for slot, placed in enumerate(hand.slots):
        if placed is None:
            parts.append(f"{slot}: --")
        elif not placed.revealed:
            parts.append(f"{slot}: ???")
        else:
            parts.append(f"{slot}: {placed.card.name} [{placed.card.rank_label()}]")
    return "\n".join(parts)


def _prompt_int(prompt: str, lo: int, hi: int, allow_cancel: bool = False) -> Optional[int]:
    while True:
        text = input(prompt).strip().lower()
        if allow_cancel and text == "c":
            return None
        try:
            value = int(text)
        except ValueError:
            print('Could not parse. Try again.')
            continue
        if lo <= value <= hi:
            return value
        print(f'Out of range ({lo}-{hi}). Try again.')


def _human_input(session: GameSession) -> Optional[Input]:
    phase = session.phase()
    if phase is Phase.CARD_PICK:
        ids = [c.id for c in session.catalog]
        for card in session.catalog:
            print(f"  {card.id:3d} L{card.level:<2d} {card.name:<16s} [{card.rank_label()}]"
                  f"{' ' + card.element.value if card.element else ''}")
        card_id = _prompt_int('Pick a card id: ', min(ids), max(ids))
        return Input.pick_card(card_id) if card_id is not None else None
    if phase is Phase.FIN:
        return Input.confirm()
    if phase is not Phase.PLAY or session.blue_ai is not None:
        return None
    frame = session.play.active()
    if frame is None or frame.state is not State.BLUE_TURN:
        return None
    if frame.phase is TurnPhase.PICK:
        print('Your hand:')
        print(format_hand(session.board.blue_hand))
        slot = _prompt_int('Select a hand slot: ', 0, 4)
        return Input.select(slot) if slot is not None else None
    cell = _prompt_int('Place on cell 0-8 (c to cancel): ', 0, 8, allow_cancel=True)
    return Input.cancel() if cell is None else Input.place(cell)


def _print_board(session: GameSession) -> None:
    red, blue = session.board.score()
    print(session.board.pretty())
    print(f'Score: red {red} - blue {blue}')


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(description='Triple Triad rules engine, terminal front-end')
    parser.add_argument('--rules', default='', help='Comma list: open,elemental,random,same,wall,plus,sudden-death')
    parser.add_argument('--difficulty', type=int, default=1, help='Search depth of the opponent (1-5)')
    parser.add_argument('--seed', type=int, default=None, help='RNG seed for deals, tiles and coin flips')
    parser.add_argument('--catalog', default=None, help='Card catalog JSON (defaults to TRIAD_CATALOG or the bundled one)')
    parser.add_argument('--tick', type=float, default=0.1, help='Seconds per update tick')
    parser.add_argument('--autoplay', action='store_true', help='Let the search play the Blue side too')
    args = parser.parse_args(argv)

    configure_logging()
    try:
        catalog: CardCatalog = load_catalog(args.catalog) if args.catalog else default_catalog()
        rules = Rules.from_names(args.rules.split(','))
    except (TriadError, ValueError, OSError) as e:
        parser.error(str(e))

    session = GameSession(catalog=catalog, rules=rules, seed=args.seed, autoplay=args.autoplay)
    session.opponent.set_difficulty(args.difficulty)
    logger.debug("cli session: seed=%s tick=%s autoplay=%s", args.seed, args.tick, args.autoplay)
    session.update(0.0, Input.menu(Event.play()))
    print('Rules:', ', '.join(k for k, v in rules.to_json().items() if v) or 'basic')
    print('Opponent hand:')
    print(format_hand(session.board.red_hand))

    filled = 0
    try:
        while True:
            inp = _human_input(session)
            event = session.update(args.tick, inp)
            if len(session.board.occupied_cells()) != filled:
                filled = len(session.board.occupied_cells())
                print()
                _print_board(session)
            if event is None:
                if inp is None and args.tick > 0:
                    time.sleep(args.tick)
                continue
            if event.is_sound(Sfx.FLIP):
                print('Flip!')
            elif event.kind is EventKind.GAME_SUMMARY:
                red, blue = session.board.score()
                print(f'Game over: {event.outcome.value if event.outcome else "?"} (red {red}, blue {blue})')
            elif event.kind in (EventKind.FINISHED, EventKind.QUIT):
                break
    except (KeyboardInterrupt, EOFError):
        print()
    finally:
        session.join(timeout=1.0)


if __name__ == '__main__':
    main()
