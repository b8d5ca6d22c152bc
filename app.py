from __future__ import annotations

import logging
import os
import random
import sys
from typing import Any, Dict, List, Optional, Tuple

from flask import Flask, jsonify, request

# Ensure package imports work when executed directly from repo root or as module
if __package__ in (None, ""):
    sys.path.insert(0, os.path.abspath(os.path.dirname(__file__)))

try:
    from .game import (  # type: ignore
        BoardState,
        ElementalEffect,
        Element,
        Flip,
        Hand,
        Outcome,
        PlacedCard,
        Rules,
        Side,
        TriadError,
        best_move,
        card_to_json,
        coin_flip,
        deal_sudden_death,
        default_catalog,
        populate_elements,
        random_hand,
    )
except ImportError:
    from game import (  # type: ignore
        BoardState,
        ElementalEffect,
        Element,
        Flip,
        Hand,
        Outcome,
        PlacedCard,
        Rules,
        Side,
        TriadError,
        best_move,
        card_to_json,
        coin_flip,
        deal_sudden_death,
        default_catalog,
        populate_elements,
        random_hand,
    )

logger = logging.getLogger(__name__)

MAX_API_DIFFICULTY = 3
ALL_LEVELS = range(1, 11)
_BAD_INPUT = (KeyError, TypeError, ValueError, AttributeError, TriadError)

app = Flask(__name__)


def _card_to_json(c: Optional[PlacedCard]) -> Optional[Dict[str, Any]]:
    if c is None:
        return None
    return {
        "id": c.card.id,
        "controller": c.controller.value,
        "owner": c.owner.value,
        "effect": c.effect.name.lower(),
    }


def _json_to_card(obj: Optional[Dict[str, Any]]) -> Optional[PlacedCard]:
    if obj is None:
        return None
    card = default_catalog().get(int(obj["id"]))
    owner = Side(obj["owner"])
    return PlacedCard(
        card=card,
        owner=owner,
        controller=Side(obj.get("controller", owner.value)),
        effect=ElementalEffect[str(obj.get("effect", "none")).upper()],
    )


def _state_to_json(b: BoardState, turn: Side) -> Dict[str, Any]:
    return {
        "rules": b.rules.to_json(),
        "cells": [_card_to_json(c) for c in b.cells],
        "tiles": [t.value if t is not None else None for t in b.tiles],
        "hands": {
            "red": [_card_to_json(c) for c in b.red_hand.slots],
            "blue": [_card_to_json(c) for c in b.blue_hand.slots],
        },
        "turn": turn.value,
    }


def _json_to_state(obj: Dict[str, Any]) -> Tuple[BoardState, Side]:
    rules = Rules.from_json(obj.get("rules") or {})
    tiles = [Element.parse(t) for t in obj.get("tiles") or [None] * 9]
    hands = obj["hands"]
    board = BoardState(
        rules,
        tiles,
        Hand(Side.RED, [_json_to_card(c) for c in hands["red"]]),
        Hand(Side.BLUE, [_json_to_card(c) for c in hands["blue"]]),
    )
    cells = [_json_to_card(c) for c in obj["cells"]]
    if len(cells) != 9:
        raise ValueError(f"expected 9 cells, got {len(cells)}")
    board.cells = cells
    return board, Side(obj.get("turn", Side.RED.value))


def _flip_to_json(f: Flip) -> Dict[str, Any]:
    return {"cell": f.cell, "direction": f.direction.name.lower(), "combo": f.combo.value}


def _score_json(b: BoardState) -> Dict[str, int]:
    red, blue = b.score()
    return {"red": red, "blue": blue}


def _parse_rules(raw: Any) -> Rules:
    if isinstance(raw, dict):
        return Rules.from_json(raw)
    if isinstance(raw, str):
        return Rules.from_names(raw.split(","))
    return Rules.from_names(raw or [])


def _parse_seed(raw: Any) -> Optional[int]:
    if raw is None:
        return None
    if isinstance(raw, bool) or not isinstance(raw, (int, str)):
        raise ValueError(f"seed must be an integer, got {raw!r}")
    return int(raw)


def _load_body() -> Dict[str, Any]:
    body = request.get_json(force=True, silent=True)
    if body is None:
        return {}
    if not isinstance(body, dict):
        raise ValueError("request body must be a JSON object")
    return body


def _load_body_state() -> Tuple[Dict[str, Any], BoardState, Side]:
    body = _load_body()
    s_in = body.get("state")
    if not isinstance(s_in, dict):
        raise ValueError("state required")
    board, turn = _json_to_state(s_in)
    return body, board, turn


def _after_move(board: BoardState, mover: Side, flips: List[Flip], seed: Optional[int]) -> Dict[str, Any]:
    out: Dict[str, Any] = {"ok": True, "flips": [_flip_to_json(f) for f in flips]}
    turn = mover.other()
    if board.is_full():
        outcome = board.outcome()
        out["outcome"] = outcome.value
        out["suddenDeath"] = False
        if outcome is Outcome.DRAW and board.rules.sudden_death:
            rng = random.Random(seed)
            deal_sudden_death(board, rng)
            turn = coin_flip(rng)
            out["suddenDeath"] = True
    out["state"] = _state_to_json(board, turn)
    out["score"] = _score_json(board)
    return out


@app.get("/api/catalog")
def api_catalog() -> Any:
    return jsonify({"ok": True, "cards": [card_to_json(c) for c in default_catalog()]})


@app.post("/api/new")
def api_new() -> Any:
    try:
        body = _load_body()
        rules = _parse_rules(body.get("rules"))
        seed = _parse_seed(body.get("seed"))
    except _BAD_INPUT as e:
        return jsonify({"ok": False, "error": f"bad request: {e}"}), 400
    rng = random.Random(seed)
    catalog = default_catalog()
    tiles = populate_elements(rng) if rules.elemental else None
    board = BoardState(
        rules,
        tiles,
        Hand.from_cards(Side.RED, random_hand(catalog, ALL_LEVELS, rng)),
        Hand.from_cards(Side.BLUE, random_hand(catalog, ALL_LEVELS, rng)),
    )
    turn = coin_flip(rng)
    return jsonify({"ok": True, "state": _state_to_json(board, turn), "score": _score_json(board)})


@app.post("/api/place")
def api_place() -> Any:
    try:
        body, board, turn = _load_body_state()
        slot = int(body["slot"])
        cell = int(body["cell"])
        seed = _parse_seed(body.get("seed"))
    except _BAD_INPUT as e:
        return jsonify({"ok": False, "error": f"bad state: {e}"}), 400
    try:
        flips = board.play(turn, slot, cell)
    except TriadError as e:
        return jsonify({"ok": False, "error": str(e)}), 400
    return jsonify(_after_move(board, turn, flips, seed))


@app.post("/api/ai")
def api_ai() -> Any:
    try:
        body, board, turn = _load_body_state()
        depth = max(1, min(int(body.get("difficulty", 1)), MAX_API_DIFFICULTY))
        seed = _parse_seed(body.get("seed"))
    except _BAD_INPUT as e:
        return jsonify({"ok": False, "error": f"bad state: {e}"}), 400
    try:
        move = best_move(turn, board, depth)
        flips = board.play(turn, move.slot, move.cell)
    except TriadError as e:
        return jsonify({"ok": False, "error": str(e)}), 400
    logger.debug("api ai: %s plays slot %d on cell %d (score %d)", turn.value, move.slot, move.cell, move.score)
    out = _after_move(board, turn, flips, seed)
    out["move"] = {"slot": move.slot, "cell": move.cell, "score": move.score}
    return jsonify(out)


@app.post("/api/score")
def api_score() -> Any:
    try:
        _, board, _ = _load_body_state()
    except _BAD_INPUT as e:
        return jsonify({"ok": False, "error": f"bad state: {e}"}), 400
    return jsonify({"ok": True, "score": _score_json(board), "outcome": board.outcome().value})


# Entrypoint for "python app.py"
if __name__ == "__main__":
    try:
        from .triad_core.cli import configure_logging  # type: ignore
    except ImportError:
        from triad_core.cli import configure_logging  # type: ignore
    configure_logging()
    debug = os.getenv("FLASK_DEBUG", os.getenv("DEBUG", "0")).lower() in ("1", "true", "yes", "on")
    app.run(host="0.0.0.0", port=int(os.getenv("PORT", "5000")), debug=debug)
