"""
Answer Validation
=================

Checks raw answers against a questionnaire's question schema and resolves
each accepted value into its typed AnswerValue.

Validation accumulates: every problem across every question is reported
in one pass so a respondent can fix them all in a single round trip.

Author: QScore Team
Version: 1.0.0
"""

import datetime as dt
import logging
import math
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from qscore.config import Settings, settings as default_settings
from qscore.scoring.errors import ScoringContractError
from shared.schemas.questionnaire import Question, QuestionType
from shared.schemas.responses import (
    Answer,
    BooleanValue,
    ChoiceValue,
    ChoicesValue,
    DateValue,
    NumberValue,
    TextValue,
    ValidatedAnswer,
    ValidatedAnswers,
    ValidationError,
    ValidationErrorKind,
)


logger = logging.getLogger(__name__)


TRUE_STRINGS = frozenset({"true", "yes"})
FALSE_STRINGS = frozenset({"false", "no"})


def is_empty(value: Any) -> bool:
    """
    An answer counts as absent when it is None, a blank string, or an
    empty collection.
    """
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, set, frozenset)):
        return len(value) == 0
    return False


def _describe(question: Question) -> str:
    return f'"{question.text}"' if question.text else f"question {question.id}"


def _fmt(number: float) -> str:
    return f"{number:g}"


def _show(value: Any, quote: bool = True) -> str:
    """Render a submitted value for a message; oversized ints are summarized."""
    if isinstance(value, int) and value.bit_length() > 64:
        return f"<{value.bit_length()}-bit integer>"
    return repr(value) if quote else str(value)


def _sentence_start(text: str) -> str:
    return text[:1].upper() + text[1:]


class AnswerValidator:
    """
    Validates raw answers against a question schema.

    Usage:
        validator = AnswerValidator()
        outcome = validator.validate(submission.answers, questions)
        if isinstance(outcome, ValidatedAnswers):
            ...
        else:
            for error in outcome:
                print(error.message)
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or default_settings

    def validate(
        self,
        answers: Iterable[Answer],
        schema: Sequence[Question],
    ) -> Union[ValidatedAnswers, List[ValidationError]]:
        """
        Validate answers against the schema.

        Args:
            answers: Raw answers in submission order
            schema: The questionnaire's questions

        Returns:
            ValidatedAnswers ordered by order_num when every answer is
            acceptable, otherwise the complete list of ValidationErrors

        Raises:
            ScoringContractError: If no schema is given or question ids
                collide
        """
        if schema is None:
            raise ScoringContractError("a question schema is required for validation")
        if answers is None:
            raise ScoringContractError("answers must be a sequence, not None")

        index: Dict[str, Question] = {}
        for question in schema:
            if question.key in index:
                raise ScoringContractError(f"duplicate question id in schema: {question.id}")
            index[question.key] = question

        errors: List[ValidationError] = []
        provided: Dict[str, Answer] = {}

        for answer in answers:
            if isinstance(answer, dict):
                answer = Answer.model_validate(answer)
            question = index.get(answer.key)
            if question is None:
                errors.append(ValidationError(
                    kind=ValidationErrorKind.UNKNOWN_QUESTION,
                    question_id=answer.question_id,
                    message=(
                        f"Question {_show(answer.question_id, quote=False)} "
                        f"is not part of this questionnaire."
                    ),
                ))
                continue
            if answer.key in provided:
                errors.append(ValidationError(
                    kind=ValidationErrorKind.DUPLICATE_ANSWER,
                    question_id=question.id,
                    message=f"{_sentence_start(_describe(question))} was answered more than once.",
                ))
                continue
            provided[answer.key] = answer

        resolved: List[ValidatedAnswer] = []

        # sorted() is stable, so ties on order_num keep catalog order
        for question in sorted(schema, key=lambda q: q.order_num):
            answer = provided.get(question.key)
            if answer is None or is_empty(answer.value):
                if question.required:
                    errors.append(ValidationError(
                        kind=ValidationErrorKind.MISSING_REQUIRED,
                        question_id=question.id,
                        message=f"Please answer {_describe(question)}.",
                    ))
                continue

            outcome = self._resolve(question, answer.value)
            if isinstance(outcome, ValidationError):
                errors.append(outcome)
            else:
                resolved.append(ValidatedAnswer(question_id=question.id, value=outcome))

        if errors:
            logger.debug(f"Validation found {len(errors)} problem(s)")
            return errors

        logger.debug(f"Validated {len(resolved)} answer(s)")
        return ValidatedAnswers(answers=tuple(resolved))

    # =========================================================================
    # Per-type Resolution
    # =========================================================================

    def _resolve(self, question: Question, value: Any):
        """Resolve a non-empty raw value into an AnswerValue or an error."""
        qtype = question.type

        if qtype == QuestionType.TEXT:
            if not isinstance(value, str):
                return self._mismatch(question, "text")
            return TextValue(text=value.strip())

        if qtype == QuestionType.SINGLE_CHOICE:
            return self._resolve_single_choice(question, value)

        if qtype == QuestionType.MULTIPLE_CHOICE:
            return self._resolve_multiple_choice(question, value)

        if qtype.is_numeric:
            return self._resolve_number(question, value)

        if qtype == QuestionType.YES_NO:
            return self._resolve_yes_no(question, value)

        if qtype == QuestionType.DATE:
            return self._resolve_date(question, value)

        raise ScoringContractError(f"unsupported question type: {qtype}")

    def _resolve_single_choice(self, question: Question, value: Any):
        if isinstance(value, (list, tuple, set, frozenset, dict)):
            return self._mismatch(question, "a single option")
        option = question.find_option(value)
        if option is None:
            return ValidationError(
                kind=ValidationErrorKind.INVALID_OPTION,
                question_id=question.id,
                message=f"{_show(value)} is not a valid option for {_describe(question)}.",
            )
        return ChoiceValue(option=option.token)

    def _resolve_multiple_choice(self, question: Question, value: Any):
        if not isinstance(value, (list, tuple, set, frozenset)):
            return self._mismatch(question, "a list of options")

        selected = set()
        invalid = []
        for item in value:
            if isinstance(item, (list, tuple, set, frozenset, dict)):
                return self._mismatch(question, "a flat list of options")
            option = question.find_option(item)
            if option is None:
                invalid.append(item)
            else:
                selected.add(option.token)

        if invalid:
            listed = ", ".join(_show(item) for item in invalid)
            return ValidationError(
                kind=ValidationErrorKind.INVALID_OPTION,
                question_id=question.id,
                message=f"{listed} not valid option(s) for {_describe(question)}.",
            )

        # Declared option order keeps the resolved value deterministic
        ordered = tuple(o.token for o in question.options if o.token in selected)
        return ChoicesValue(options=ordered)

    def _resolve_number(self, question: Question, value: Any):
        if question.type == QuestionType.RATING:
            low, high = question.value_range(self.settings.rating_min, self.settings.rating_max)
        else:
            low, high = question.value_range(self.settings.scale_min, self.settings.scale_max)

        if isinstance(value, bool):
            return self._mismatch(question, "a number")
        if isinstance(value, (int, float)):
            try:
                number = float(value)
            except OverflowError:
                return self._out_of_range(question, low, high)
        elif isinstance(value, str):
            try:
                number = float(value.strip())
            except ValueError:
                return self._mismatch(question, "a number")
        else:
            return self._mismatch(question, "a number")

        if not math.isfinite(number):
            return self._mismatch(question, "a finite number")

        if not low <= number <= high:
            return self._out_of_range(question, low, high)
        return NumberValue(number=number)

    def _resolve_yes_no(self, question: Question, value: Any):
        if isinstance(value, bool):
            return BooleanValue(flag=value)
        if isinstance(value, str):
            token = value.strip().lower()
            if token in TRUE_STRINGS:
                return BooleanValue(flag=True)
            if token in FALSE_STRINGS:
                return BooleanValue(flag=False)
        return self._mismatch(question, "yes or no")

    def _resolve_date(self, question: Question, value: Any):
        if isinstance(value, dt.datetime):
            return DateValue(day=value.date())
        if isinstance(value, dt.date):
            return DateValue(day=value)
        if isinstance(value, str):
            try:
                return DateValue(day=dt.date.fromisoformat(value.strip()))
            except ValueError:
                pass
        return self._mismatch(question, "a date (YYYY-MM-DD)")

    @staticmethod
    def _mismatch(question: Question, expected: str) -> ValidationError:
        return ValidationError(
            kind=ValidationErrorKind.TYPE_MISMATCH,
            question_id=question.id,
            message=f"Answer to {_describe(question)} must be {expected}.",
        )

    @staticmethod
    def _out_of_range(question: Question, low: float, high: float) -> ValidationError:
        return ValidationError(
            kind=ValidationErrorKind.OUT_OF_RANGE,
            question_id=question.id,
            message=(
                f"Answer to {_describe(question)} must be between "
                f"{_fmt(low)} and {_fmt(high)}."
            ),
        )
