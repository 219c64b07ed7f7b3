"""
Score Calculation
=================

Turns validated answers into per-question scores and a single aggregate.

Scoring Rules:
    - single_choice: score of the selected option
    - multiple_choice: sum of the selected options' scores
    - rating / scale: the numeric answer itself
    - yes_no: 1 for yes, 0 for no (swapped when the question is inverted)
    - text: the question's text_score constant, else 0 and not scorable
    - date: 0 and never scorable

Each per-question score is multiplied by the question's scoring_weight for
every method except ``custom``. Arithmetic is floating point; the aggregate
is rounded once, half away from zero, because risk bands sit on integer
boundaries.

Author: QScore Team
Version: 1.0.0
"""

import logging
import math
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Optional, Sequence, Tuple

from qscore.scoring.errors import ScoringConfigurationError, ScoringContractError
from qscore.scoring.functions import (
    ScoringFunction,
    ScoringFunctionRegistry,
    default_registry,
    rule_table_function,
)
from shared.schemas.questionnaire import Question, normalize_token
from shared.schemas.scoring import ScoringConfig, ScoringMethod
from shared.schemas.responses import (
    BooleanValue,
    ChoiceValue,
    ChoicesValue,
    DateValue,
    NumberValue,
    ScoredAnswer,
    ScoringError,
    ScoringErrorKind,
    TextValue,
    ValidatedAnswer,
    ValidatedAnswers,
)


logger = logging.getLogger(__name__)


def round_half_away_from_zero(value: float) -> int:
    """
    Round to the nearest integer, ties away from zero (2.5 → 3, -2.5 → -3).

    Unlike the builtin round(), 4.5 becomes 5.
    """
    return int(Decimal(repr(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class ScoreCalculator:
    """
    Computes per-question scores and the aggregate score.

    Usage:
        calculator = ScoreCalculator()
        scored = calculator.score(validated, questions, ScoringMethod.SUM)
        total = calculator.aggregate(scored, ScoringMethod.SUM)
    """

    def __init__(self, registry: Optional[ScoringFunctionRegistry] = None):
        self.registry = registry or default_registry

    # =========================================================================
    # Per-question Scores
    # =========================================================================

    def score(
        self,
        validated: ValidatedAnswers,
        schema: Sequence[Question],
        method: ScoringMethod,
    ) -> List[ScoredAnswer]:
        """
        Score each validated answer.

        Args:
            validated: Output of AnswerValidator
            schema: The questionnaire's questions
            method: Scoring method (custom skips weighting)

        Returns:
            ScoredAnswers in the same order as ``validated``
        """
        index: Dict[str, Question] = {question.key: question for question in schema}
        scored = []

        for answer in validated:
            question = index.get(normalize_token(answer.question_id))
            if question is None:
                raise ScoringContractError(
                    f"validated answer references unknown question {answer.question_id}"
                )

            raw, scorable = self._raw_score(question, answer)
            weight = question.scoring_weight
            if weight == 0:
                scorable = False

            scored.append(ScoredAnswer(
                question_id=question.id,
                value=answer.value,
                raw_score=raw,
                weight=weight,
                score=raw if method == ScoringMethod.CUSTOM else raw * weight,
                scorable=scorable,
            ))

        return scored

    def _raw_score(self, question: Question, answer: ValidatedAnswer) -> Tuple[float, bool]:
        """Unweighted score and whether the answer is scorable."""
        value = answer.value

        if isinstance(value, ChoiceValue):
            option = question.find_option(value.option)
            return (option.score if option else 0.0), True

        if isinstance(value, ChoicesValue):
            total = math.fsum(
                option.score
                for option in question.options
                if option.token in value.options
            )
            return total, True

        if isinstance(value, NumberValue):
            return value.number, True

        if isinstance(value, BooleanValue):
            flag = (not value.flag) if question.invert else value.flag
            return (1.0 if flag else 0.0), True

        if isinstance(value, TextValue):
            if question.text_score is None:
                return 0.0, False
            return float(question.text_score), True

        if isinstance(value, DateValue):
            return 0.0, False

        raise ScoringContractError(f"unsupported answer value: {type(value).__name__}")

    # =========================================================================
    # Aggregation
    # =========================================================================

    def aggregate(
        self,
        scored: Sequence[ScoredAnswer],
        method: ScoringMethod,
        scoring_function: Optional[ScoringFunction] = None,
    ) -> int:
        """
        Aggregate per-question scores into the final, rounded score.

        Args:
            scored: Output of ``score``
            method: Aggregation method
            scoring_function: Required for the custom method

        Returns:
            Aggregate score rounded half away from zero

        Raises:
            ScoringConfigurationError: If the method cannot be applied
                with the supplied configuration
        """
        if method == ScoringMethod.SUM:
            value = math.fsum(answer.score for answer in scored)

        elif method == ScoringMethod.AVERAGE:
            scorable = [answer for answer in scored if answer.scorable]
            if not scorable:
                raise self._no_scorable_answers(method)
            value = math.fsum(answer.score for answer in scorable) / len(scorable)

        elif method == ScoringMethod.WEIGHTED_AVERAGE:
            scorable = [answer for answer in scored if answer.scorable]
            total_weight = sum(answer.weight for answer in scorable)
            if total_weight == 0:
                raise self._no_scorable_answers(method)
            value = math.fsum(answer.score for answer in scorable) / total_weight

        elif method == ScoringMethod.CUSTOM:
            value = self._apply_custom(scored, scoring_function)

        else:
            raise ScoringContractError(f"unknown scoring method: {method}")

        total = round_half_away_from_zero(value)
        logger.debug(f"Aggregated {len(scored)} answer(s) by {method.value}: {value} -> {total}")
        return total

    def _apply_custom(
        self,
        scored: Sequence[ScoredAnswer],
        scoring_function: Optional[ScoringFunction],
    ) -> float:
        if scoring_function is None:
            raise ScoringConfigurationError(ScoringError(
                kind=ScoringErrorKind.MISSING_SCORING_FUNCTION,
                message="custom scoring method has no scoring function registered",
            ))

        try:
            value = scoring_function(tuple(scored))
        except Exception as e:
            logger.error("Custom scoring function failed: %s", e, exc_info=True)
            raise ScoringConfigurationError(ScoringError(
                kind=ScoringErrorKind.SCORING_FUNCTION_FAILED,
                message=f"custom scoring function raised {type(e).__name__}: {e}",
            )) from e

        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ScoringConfigurationError(ScoringError(
                kind=ScoringErrorKind.INVALID_SCORING_FUNCTION_RESULT,
                message=f"custom scoring function returned {type(value).__name__}, not a number",
            ))
        try:
            number = float(value)
        except OverflowError:
            number = math.inf
        if not math.isfinite(number):
            raise ScoringConfigurationError(ScoringError(
                kind=ScoringErrorKind.INVALID_SCORING_FUNCTION_RESULT,
                message="custom scoring function returned a non-finite value",
            ))
        return number

    @staticmethod
    def _no_scorable_answers(method: ScoringMethod) -> ScoringConfigurationError:
        return ScoringConfigurationError(ScoringError(
            kind=ScoringErrorKind.NO_SCORABLE_ANSWERS,
            message=f"{method.value} scoring needs at least one answered, weighted scorable question",
        ))

    # =========================================================================
    # Config-driven Entry Point
    # =========================================================================

    def resolve_function(self, config: ScoringConfig) -> Optional[ScoringFunction]:
        """
        Resolve the config's custom scoring function.

        A registered ``scoring_function`` name wins; otherwise a stored
        ``rules["question_scores"]`` table is turned into a rule table
        function.
        """
        function = self.registry.get(config.scoring_function)
        if function is None and config.rules.get("question_scores"):
            try:
                function = rule_table_function(config.rules["question_scores"])
            except (AttributeError, TypeError, ValueError) as e:
                raise ScoringConfigurationError(ScoringError(
                    kind=ScoringErrorKind.SCORING_FUNCTION_FAILED,
                    message=f"stored question_scores rules are malformed: {e}",
                )) from e
        return function

    def calculate(
        self,
        validated: ValidatedAnswers,
        schema: Sequence[Question],
        config: ScoringConfig,
    ) -> Tuple[List[ScoredAnswer], int]:
        """
        Score and aggregate in one step using a ScoringConfig.

        Returns:
            Tuple of (scored answers, aggregate score)
        """
        scored = self.score(validated, schema, config.method)
        function = None
        if config.method == ScoringMethod.CUSTOM:
            function = self.resolve_function(config)
            if function is None and config.scoring_function:
                logger.warning(
                    f"Scoring function '{config.scoring_function}' is not registered "
                    f"(questionnaire {config.questionnaire_id})"
                )
        total = self.aggregate(scored, config.method, function)
        return scored, total
