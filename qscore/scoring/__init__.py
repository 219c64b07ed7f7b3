"""
QScore Scoring Package
======================

Response scoring engine.

This package provides:
    - validator: Answer validation against the question schema
    - calculator: Per-question and aggregate score calculation
    - classifier: Risk band classification and review flagging
    - engine: Orchestration of a full scoring run
    - functions: Registry for custom scoring functions
    - presets: PHQ-9, GAD-7 and PSS-10 schemas and configurations

Author: QScore Team
Version: 1.0.0
"""

from qscore.scoring.calculator import ScoreCalculator, round_half_away_from_zero
from qscore.scoring.classifier import Classification, RiskClassifier
from qscore.scoring.engine import ResponseScoringOrchestrator, score_response
from qscore.scoring.errors import ScoringConfigurationError, ScoringContractError
from qscore.scoring.functions import (
    ScoringFunctionRegistry,
    default_registry,
    rule_table_function,
)
from qscore.scoring.validator import AnswerValidator

__all__ = [
    "AnswerValidator",
    "Classification",
    "ResponseScoringOrchestrator",
    "RiskClassifier",
    "ScoreCalculator",
    "ScoringConfigurationError",
    "ScoringContractError",
    "ScoringFunctionRegistry",
    "default_registry",
    "round_half_away_from_zero",
    "rule_table_function",
    "score_response",
]
