"""
pytest configuration and fixtures.

Author: QScore Team
Version: 1.0.0
"""

import pytest

from qscore.config import Settings
from qscore.scoring.engine import ResponseScoringOrchestrator
from qscore.scoring.functions import ScoringFunctionRegistry
from qscore.scoring.calculator import ScoreCalculator
from shared.schemas.questionnaire import Question, QuestionType
from shared.schemas.scoring import ScoringConfig, ScoringMethod

from fixtures import choice_question


@pytest.fixture
def test_settings():
    """Settings isolated from the environment."""
    return Settings(_env_file=None)


@pytest.fixture
def moderate_bands():
    """Low/moderate/high bands on a 0-27 scale."""
    return [
        {"min": 0, "max": 4, "label": "Low", "risk_level": "low"},
        {"min": 5, "max": 9, "label": "Moderate", "risk_level": "moderate"},
        {"min": 10, "max": 27, "label": "High", "risk_level": "high"},
    ]


@pytest.fixture
def weighted_schema():
    """Three single choice questions weighted 1, 1, 2."""
    return [
        choice_question(1, weight=1),
        choice_question(2, weight=1),
        choice_question(3, weight=2),
    ]


@pytest.fixture
def sum_config(moderate_bands):
    return ScoringConfig(
        questionnaire_id=1,
        name="Weighted sum",
        method=ScoringMethod.SUM,
        max_score=27,
        risk_levels=moderate_bands,
    )


@pytest.fixture
def mixed_schema():
    """One question of every type."""
    return [
        choice_question("mood", order_num=1),
        Question(
            id="symptoms",
            type=QuestionType.MULTIPLE_CHOICE,
            text="Which symptoms apply?",
            required=False,
            order_num=2,
            options=[
                {"value": "sleep", "label": "Poor sleep", "score": 2},
                {"value": "appetite", "label": "Appetite change", "score": 1},
                {"value": "focus", "label": "Poor focus", "score": 3},
            ],
        ),
        Question(id="energy", type=QuestionType.RATING, text="Energy", order_num=3),
        Question(id="stress", type=QuestionType.SCALE, text="Stress", order_num=4),
        Question(id="support", type=QuestionType.YES_NO, text="Do you have support?",
                 invert=True, order_num=5),
        Question(id="notes", type=QuestionType.TEXT, text="Anything else?",
                 required=False, order_num=6),
        Question(id="visit", type=QuestionType.DATE, text="Last visit",
                 required=False, order_num=7),
    ]


@pytest.fixture
def registry():
    """Empty, test-local scoring function registry."""
    return ScoringFunctionRegistry()


@pytest.fixture
def engine(test_settings, registry):
    """Orchestrator wired to isolated settings and registry."""
    return ResponseScoringOrchestrator(
        calculator=ScoreCalculator(registry),
        settings=test_settings,
    )
