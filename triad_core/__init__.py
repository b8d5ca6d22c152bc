"""
Triple Triad core Python package.

Rules engine, turn flow and search opponent, kept free of any drawing or audio
so they can be driven from the terminal, the Flask API or tests.
Modules:
- cards.py: Card, Element, CardCatalog and the JSON catalog loader
- rules.py: Rules flags and the Rule identifiers the menu toggles
- ranks.py: neighbour lookup and Normal/Same/Plus comparisons
- board.py: BoardState, Hand, PlacedCard, capture resolution and scoring
- deal.py: elemental tiles, hand dealing, coin flip, sudden-death redeal
- events.py: inputs, output events and the Presentation collaborator
- ai.py / opponent.py: look-ahead search and the threaded computer player
- turn.py: per-round phase stack
- session.py: menu, card pick, coin flip, play and final banner
- cli.py: terminal front-end
"""
