"""
Custom Scoring Functions
========================

Registry of pluggable scoring functions used by the ``custom`` scoring
method. A ScoringConfig names a function; the registry resolves the name
to a callable with the signature ``(scored_answers) -> number``.

Usage:
    from qscore.scoring.functions import default_registry

    @default_registry.register("max_item")
    def max_item(scored_answers):
        return max((a.score for a in scored_answers), default=0)

Author: QScore Team
Version: 1.0.0
"""

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

from shared.schemas.questionnaire import normalize_token
from shared.schemas.responses import (
    BooleanValue,
    ChoiceValue,
    ChoicesValue,
    DateValue,
    NumberValue,
    ScoredAnswer,
    TextValue,
)


logger = logging.getLogger(__name__)

ScoringFunction = Callable[[Sequence[ScoredAnswer]], Union[int, float]]


class ScoringFunctionRegistry:
    """
    Name → scoring function lookup.

    Registration is expected at import/startup time; lookups during
    scoring only read the mapping.
    """

    def __init__(self):
        self._functions: Dict[str, ScoringFunction] = {}

    def register(
        self,
        name: str,
        function: Optional[ScoringFunction] = None,
        replace: bool = False,
    ):
        """
        Register a scoring function under ``name``.

        Can be called directly or used as a decorator.

        Raises:
            ValueError: If the name is blank or already taken and
                ``replace`` is False
        """
        if not name or not name.strip():
            raise ValueError("scoring function name cannot be empty")
        name = name.strip()

        def decorator(fn: ScoringFunction) -> ScoringFunction:
            if not callable(fn):
                raise ValueError(f"scoring function '{name}' is not callable")
            if name in self._functions and not replace:
                raise ValueError(f"scoring function already registered: {name}")
            self._functions[name] = fn
            logger.debug(f"Registered scoring function: {name}")
            return fn

        if function is not None:
            return decorator(function)
        return decorator

    def unregister(self, name: str) -> None:
        self._functions.pop(name, None)

    def get(self, name: Optional[str]) -> Optional[ScoringFunction]:
        if not name:
            return None
        return self._functions.get(name.strip())

    def names(self) -> List[str]:
        return sorted(self._functions)

    def __contains__(self, name: str) -> bool:
        return name in self._functions


default_registry = ScoringFunctionRegistry()


# =============================================================================
# Rule Tables
# =============================================================================


def answer_token(scored: ScoredAnswer) -> Optional[str]:
    """String form of a scored answer's value, for rule table lookups."""
    value = scored.value
    if isinstance(value, ChoiceValue):
        return value.option
    if isinstance(value, NumberValue):
        return normalize_token(value.number)
    if isinstance(value, BooleanValue):
        return normalize_token(value.flag)
    if isinstance(value, TextValue):
        return value.text
    if isinstance(value, DateValue):
        return value.day.isoformat()
    return None


def rule_table_function(question_scores: Mapping[Any, Mapping[str, Any]]) -> ScoringFunction:
    """
    Build a scoring function from a per-question points table.

    Each entry maps a question id to ``{"values": {answer: points},
    "default": points}``. Questions without an entry contribute nothing;
    an answer missing from ``values`` contributes ``default`` (0 when
    absent). For multiple choice answers every selected option is looked
    up and summed.

    Example:
        >>> fn = rule_table_function({
        ...     1: {"values": {"yes": 5}, "default": 0},
        ...     2: {"values": {"3": 2, "4": 3}, "default": 1},
        ... })
    """
    table = {
        normalize_token(qid): (
            {normalize_token(k): float(v) for k, v in (rule.get("values") or {}).items()},
            float(rule.get("default") or 0),
        )
        for qid, rule in question_scores.items()
    }

    def score(scored_answers: Sequence[ScoredAnswer]) -> float:
        total = 0.0
        for scored in scored_answers:
            rule = table.get(normalize_token(scored.question_id))
            if rule is None:
                continue
            values, default = rule

            if isinstance(scored.value, ChoicesValue):
                for option in scored.value.options:
                    total += values.get(option, default)
                continue

            if isinstance(scored.value, BooleanValue):
                # Rule tables written for forms use yes/no keys
                key = "yes" if scored.value.flag else "no"
                if key in values:
                    total += values[key]
                    continue

            total += values.get(normalize_token(answer_token(scored)), default)
        return total

    return score
