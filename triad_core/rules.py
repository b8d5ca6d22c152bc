from __future__ import annotations

from dataclasses import dataclass, fields, replace
from enum import Enum
from typing import Dict, Iterable


class Rule(Enum):
    """Rule identifiers in menu order."""
    OPEN = "open"
    ELEMENTAL = "elemental"
    RANDOM = "random"
    SAME = "same"
    WALL = "wall"
    PLUS = "plus"
    SUDDEN_DEATH = "sudden-death"

    @classmethod
    def parse(cls, name: str) -> 'Rule':
        key = name.strip().lower().replace("_", "-")
        if key == "same-wall":
            key = "wall"
        return cls(key)


_FIELD_FOR_RULE = {
    Rule.OPEN: "open",
    Rule.ELEMENTAL: "elemental",
    Rule.RANDOM: "random",
    Rule.SAME: "same",
    Rule.WALL: "same_wall",
    Rule.PLUS: "plus",
    Rule.SUDDEN_DEATH: "sudden_death",
}


@dataclass(frozen=True)
class Rules:
    """Rule flags for a round. Frozen so a resolution always sees one consistent set."""
    open: bool = False
    random: bool = False
    plus: bool = False
    same: bool = False
    same_wall: bool = False
    elemental: bool = False
    sudden_death: bool = False

    def enabled(self, rule: Rule) -> bool:
        return bool(getattr(self, _FIELD_FOR_RULE[rule]))

    def toggled(self, rule: Rule) -> 'Rules':
        name = _FIELD_FOR_RULE[rule]
        return replace(self, **{name: not getattr(self, name)})

    @classmethod
    def from_names(cls, names: Iterable[str]) -> 'Rules':
        """Builds a rule set from names like 'same', 'wall', 'sudden-death'."""
        rules = cls()
        for name in names:
            if not name.strip():
                continue
            rule = Rule.parse(name)
            if not rules.enabled(rule):
                rules = rules.toggled(rule)
        return rules

    def to_json(self) -> Dict[str, bool]:
        return {f.name: bool(getattr(self, f.name)) for f in fields(self)}

    @classmethod
    def from_json(cls, obj: Dict[str, object]) -> 'Rules':
        """Unknown keys are ignored; known ones must hold real booleans."""
        if not isinstance(obj, dict):
            raise ValueError("rules must be an object")
        known = {f.name for f in fields(cls)}
        flags: Dict[str, bool] = {}
        for key, value in obj.items():
            if key not in known:
                continue
            if not isinstance(value, bool):
                raise ValueError(f"rule {key!r} must be true or false, got {value!r}")
            flags[key] = value
        return cls(**flags)
