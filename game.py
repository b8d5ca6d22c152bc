from __future__ import annotations

# Facade module that re-exports the Triple Triad core.
# The Flask app, the CLI entry point and tests import from here;
# single-responsibility modules live under triad_core/*.

try:
    from .triad_core.cards import Card, CardCatalog, Element, card_to_json, default_catalog, load_catalog  # type: ignore
    from .triad_core.rules import Rule, Rules  # type: ignore
    from .triad_core.ranks import compare_normal, compare_plus, compare_same, neighbors  # type: ignore
    from .triad_core.board import (  # type: ignore
        BoardState,
        CheckStatus,
        Combo,
        Direction,
        ElementalEffect,
        Flip,
        Hand,
        Outcome,
        PlacedCard,
        Side,
    )
    from .triad_core.deal import coin_flip, deal_sudden_death, populate_elements, random_hand  # type: ignore
    from .triad_core.ai import Ai, Move, best_move, search_slot, solve_recur  # type: ignore
    from .triad_core.events import Event, EventKind, Input, InstantPresentation, Sfx  # type: ignore
    from .triad_core.errors import CatalogError, InvariantViolation, SearchError, TriadError  # type: ignore
    from .triad_core.opponent import Opponent  # type: ignore
    from .triad_core.turn import TurnStateMachine  # type: ignore
    from .triad_core.session import GameSession, Phase  # type: ignore
except ImportError:
    from triad_core.cards import Card, CardCatalog, Element, card_to_json, default_catalog, load_catalog  # type: ignore
    from triad_core.rules import Rule, Rules  # type: ignore
    from triad_core.ranks import compare_normal, compare_plus, compare_same, neighbors  # type: ignore
    from triad_core.board import (  # type: ignore
        BoardState,
        CheckStatus,
        Combo,
        Direction,
        ElementalEffect,
        Flip,
        Hand,
        Outcome,
        PlacedCard,
        Side,
    )
    from triad_core.deal import coin_flip, deal_sudden_death, populate_elements, random_hand  # type: ignore
    from triad_core.ai import Ai, Move, best_move, search_slot, solve_recur  # type: ignore
    from triad_core.events import Event, EventKind, Input, InstantPresentation, Sfx  # type: ignore
    from triad_core.errors import CatalogError, InvariantViolation, SearchError, TriadError  # type: ignore
    from triad_core.opponent import Opponent  # type: ignore
    from triad_core.turn import TurnStateMachine  # type: ignore
    from triad_core.session import GameSession, Phase  # type: ignore


def main() -> None:
    # CLI driver delegated to triad_core.cli
    try:
        from .triad_core.cli import main as _main  # type: ignore
    except ImportError:
        from triad_core.cli import main as _main  # type: ignore
    _main()


if __name__ == '__main__':
    main()
