"""
QScore Shared Schemas Package
=============================

Data contracts exchanged between the scoring engine and its collaborators.

This package provides:
    - Question, QuestionOption, QuestionType: Questionnaire catalog input
    - ScoringConfig, RiskBand, ScoringMethod: Scoring configuration input
    - RawResponseSubmission, Answer: Raw response input
    - ScoringResult, ScoredAnswer: Scoring output
    - ValidationError, ScoringError, ScoringFailure: Typed failures

Author: QScore Team
Version: 1.0.0
"""

from shared.schemas.questionnaire import (
    Question,
    QuestionOption,
    QuestionType,
    normalize_token,
)

from shared.schemas.scoring import (
    RiskBand,
    ScoringConfig,
    ScoringMethod,
)

from shared.schemas.responses import (
    Answer,
    AnswerValue,
    BooleanValue,
    ChoiceValue,
    ChoicesValue,
    DateValue,
    NumberValue,
    RawResponseSubmission,
    ScoredAnswer,
    ScoringError,
    ScoringErrorKind,
    ScoringFailure,
    ScoringResult,
    ScoringStage,
    TextValue,
    ValidatedAnswer,
    ValidatedAnswers,
    ValidationError,
    ValidationErrorKind,
)

__all__ = [
    # Questionnaire catalog
    "Question",
    "QuestionOption",
    "QuestionType",
    "normalize_token",
    # Scoring configuration
    "RiskBand",
    "ScoringConfig",
    "ScoringMethod",
    # Responses
    "Answer",
    "AnswerValue",
    "BooleanValue",
    "ChoiceValue",
    "ChoicesValue",
    "DateValue",
    "NumberValue",
    "RawResponseSubmission",
    "TextValue",
    "ValidatedAnswer",
    "ValidatedAnswers",
    # Results
    "ScoredAnswer",
    "ScoringResult",
    # Failures
    "ScoringError",
    "ScoringErrorKind",
    "ScoringFailure",
    "ScoringStage",
    "ValidationError",
    "ValidationErrorKind",
]
