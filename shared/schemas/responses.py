"""
Response Scoring Schemas
========================

Input and output records of the response scoring engine.

Key Components:
    - Answer / RawResponseSubmission: Raw, duck-typed answers as submitted
    - AnswerValue: Tagged union an answer is resolved into once validated
    - ValidatedAnswers: Answers that passed validation, in schema order
    - ScoredAnswer / ScoringResult: Immutable scoring output
    - ValidationError / ScoringError / ScoringFailure: Typed failure records

All output records are frozen. A recalculation builds a new ScoringResult
rather than patching a stored one.

Author: QScore Team
Version: 1.0.0
"""

import datetime as dt
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Mapping, Optional, Tuple, Union
from pydantic import BaseModel, ConfigDict, Field

from shared.schemas.questionnaire import QuestionId, normalize_token
from shared.schemas.scoring import ScoringMethod


# =============================================================================
# Raw Input
# =============================================================================


class Answer(BaseModel):
    """A single raw answer; ``value`` is interpreted only by the validator."""

    model_config = ConfigDict(frozen=True)

    question_id: QuestionId = Field(..., description="Answered question")
    value: Any = Field(default=None, description="Raw submitted value")

    @property
    def key(self) -> str:
        return normalize_token(self.question_id)


class RawResponseSubmission(BaseModel):
    """
    A respondent's submission for one questionnaire.

    Attributes:
        response_id: Identifier assigned by the persistence layer, if any
        questionnaire_id: Questionnaire the answers belong to
        answers: Raw answers in submission order
    """

    model_config = ConfigDict(frozen=True)

    response_id: Optional[Union[int, str]] = Field(default=None, description="Response id")
    questionnaire_id: Union[int, str] = Field(..., description="Questionnaire id")
    answers: List[Answer] = Field(default_factory=list, description="Raw answers")

    @classmethod
    def from_mapping(
        cls,
        questionnaire_id: Union[int, str],
        values: Mapping[QuestionId, Any],
        response_id: Optional[Union[int, str]] = None,
    ) -> "RawResponseSubmission":
        """Build a submission from a ``{question_id: value}`` mapping."""
        return cls(
            response_id=response_id,
            questionnaire_id=questionnaire_id,
            answers=[Answer(question_id=qid, value=value) for qid, value in values.items()],
        )


# =============================================================================
# Resolved Answer Values
# =============================================================================


class TextValue(BaseModel):
    model_config = ConfigDict(frozen=True)
    kind: Literal["text"] = "text"
    text: str


class ChoiceValue(BaseModel):
    model_config = ConfigDict(frozen=True)
    kind: Literal["choice"] = "choice"
    option: str


class ChoicesValue(BaseModel):
    model_config = ConfigDict(frozen=True)
    kind: Literal["choices"] = "choices"
    options: Tuple[str, ...]


class NumberValue(BaseModel):
    model_config = ConfigDict(frozen=True)
    kind: Literal["number"] = "number"
    number: float


class BooleanValue(BaseModel):
    model_config = ConfigDict(frozen=True)
    kind: Literal["boolean"] = "boolean"
    flag: bool


class DateValue(BaseModel):
    model_config = ConfigDict(frozen=True)
    kind: Literal["date"] = "date"
    day: dt.date


AnswerValue = Annotated[
    Union[TextValue, ChoiceValue, ChoicesValue, NumberValue, BooleanValue, DateValue],
    Field(discriminator="kind"),
]


class ValidatedAnswer(BaseModel):
    """An answer whose value has been resolved against its question."""

    model_config = ConfigDict(frozen=True)

    question_id: QuestionId
    value: AnswerValue


class ValidatedAnswers(BaseModel):
    """Answers that passed validation, ordered by the schema's order_num."""

    model_config = ConfigDict(frozen=True)

    answers: Tuple[ValidatedAnswer, ...] = ()

    def __len__(self) -> int:
        return len(self.answers)

    def __iter__(self):
        return iter(self.answers)

    def get(self, question_id: QuestionId) -> Optional[ValidatedAnswer]:
        key = normalize_token(question_id)
        for answer in self.answers:
            if normalize_token(answer.question_id) == key:
                return answer
        return None


# =============================================================================
# Scoring Output
# =============================================================================


class ScoredAnswer(BaseModel):
    """
    A validated answer with its derived score.

    Attributes:
        raw_score: Unweighted per-question score
        weight: The question's scoring weight
        score: Contribution to the aggregate (raw_score * weight, or
            raw_score under the custom method)
        scorable: Whether the question counts toward averaging denominators
    """

    model_config = ConfigDict(frozen=True)

    question_id: QuestionId
    value: AnswerValue
    raw_score: float
    weight: int
    score: float
    scorable: bool


class ScoringResult(BaseModel):
    """
    Final, immutable outcome of scoring one response.

    Example:
        >>> result.total_score
        9
        >>> result.to_record()
        {'score': 9, 'risk_level': 'moderate', 'flagged_for_review': False}
    """

    model_config = ConfigDict(frozen=True)

    response_id: Optional[Union[int, str]] = None
    questionnaire_id: Union[int, str]
    method: ScoringMethod
    total_score: int = Field(..., description="Rounded aggregate score")
    risk_level: Optional[str] = Field(default=None, description="Risk code, None if unclassified")
    risk_label: Optional[str] = Field(default=None, description="Band display label")
    flagged_for_review: bool = False
    max_score: Optional[float] = None
    passing_score: Optional[float] = None
    passed: Optional[bool] = None
    scored_answers: Tuple[ScoredAnswer, ...] = ()
    scoring_version: str = "1.0.0"

    @property
    def is_classified(self) -> bool:
        return self.risk_level is not None

    @property
    def answer_scores(self) -> Dict[str, float]:
        """Per-question contribution keyed by string-normalized question id."""
        return {
            normalize_token(scored.question_id): scored.score
            for scored in self.scored_answers
        }

    @property
    def percentage(self) -> Optional[float]:
        """Total score as a percentage of max_score, when one is configured."""
        if not self.max_score:
            return None
        return round(self.total_score / self.max_score * 100, 1)

    def to_record(self) -> Dict[str, Any]:
        """Fields persisted onto the response row."""
        return {
            "score": self.total_score,
            "risk_level": self.risk_level,
            "flagged_for_review": self.flagged_for_review,
        }


# =============================================================================
# Failures
# =============================================================================


class ValidationErrorKind(str, Enum):
    """Submitter-caused problems; recoverable by resubmission."""

    UNKNOWN_QUESTION = "unknown_question"
    MISSING_REQUIRED = "missing_required"
    INVALID_OPTION = "invalid_option"
    OUT_OF_RANGE = "out_of_range"
    TYPE_MISMATCH = "type_mismatch"
    DUPLICATE_ANSWER = "duplicate_answer"


class ScoringErrorKind(str, Enum):
    """Configuration-author problems; never the submitter's fault."""

    MISSING_SCORING_FUNCTION = "missing_scoring_function"
    INVALID_BAND_CONFIGURATION = "invalid_band_configuration"
    NO_SCORABLE_ANSWERS = "no_scorable_answers"
    INVALID_SCORING_FUNCTION_RESULT = "invalid_scoring_function_result"
    SCORING_FUNCTION_FAILED = "scoring_function_failed"


class ValidationError(BaseModel):
    """
    A problem with one submitted answer.

    This is a result record, not an exception.
    """

    model_config = ConfigDict(frozen=True)

    kind: ValidationErrorKind
    question_id: QuestionId
    message: str


class ScoringError(BaseModel):
    """
    A problem with the scoring configuration.

    This is a result record, not an exception.
    """

    model_config = ConfigDict(frozen=True)

    kind: ScoringErrorKind
    message: str
    questionnaire_id: Optional[Union[int, str]] = None


class ScoringStage(str, Enum):
    """Per-invocation states of the scoring orchestrator."""

    RECEIVED = "received"
    VALIDATING = "validating"
    SCORING = "scoring"
    CLASSIFYING = "classifying"
    COMPLETED = "completed"
    REJECTED = "rejected"


class ScoringFailure(BaseModel):
    """
    Structured failure returned instead of a ScoringResult.

    Attributes:
        stage: Stage that failed (VALIDATING for rejected submissions)
        errors: Every problem found at that stage
    """

    model_config = ConfigDict(frozen=True)

    stage: ScoringStage
    errors: Tuple[Union[ValidationError, ScoringError], ...]
    response_id: Optional[Union[int, str]] = None
    questionnaire_id: Optional[Union[int, str]] = None

    @property
    def is_rejection(self) -> bool:
        """True when the submitter, not the configuration, is at fault."""
        return self.stage == ScoringStage.VALIDATING

    @property
    def validation_errors(self) -> List[ValidationError]:
        return [e for e in self.errors if isinstance(e, ValidationError)]

    @property
    def scoring_errors(self) -> List[ScoringError]:
        return [e for e in self.errors if isinstance(e, ScoringError)]

    def messages(self) -> List[str]:
        """User-facing messages, one per error."""
        if self.is_rejection:
            return [error.message for error in self.errors]
        return [
            f"Scoring configuration is invalid for questionnaire "
            f"{self.questionnaire_id}: {error.message}"
            for error in self.errors
        ]
