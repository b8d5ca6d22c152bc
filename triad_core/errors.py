"""
Exception hierarchy for the rules engine.

Usage:
    from triad_core.errors import InvariantViolation

    try:
        board.place_card(cell, card)
    except InvariantViolation as e:
        logger.warning("rejected placement: %s", e)
"""
from __future__ import annotations

__all__ = [
    "TriadError",
    "InvariantViolation",
    "CatalogError",
    "SearchError",
]


class TriadError(Exception):
    """Base class for every error raised by triad_core."""


class InvariantViolation(TriadError):
    """A caller broke a board or hand contract (occupied cell, empty slot, bad index)."""


class CatalogError(TriadError):
    """Malformed card catalog data or an unknown card id."""


class SearchError(TriadError):
    """The opponent was asked to play a move it never computed."""
