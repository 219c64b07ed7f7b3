"""
Standard Instrument Presets
===========================

Ready-made question schemas and scoring configurations for the validated
screening instruments the platform ships with:

    - phq9: Patient Health Questionnaire (depression), 0–27
    - gad7: Generalized Anxiety Disorder scale, 0–21
    - pss10: Perceived Stress Scale, 0–40 (items 4, 5, 7, 8 reverse scored)

Usage:
    from qscore.scoring.presets import get_preset

    phq9 = get_preset("phq9")
    questions = phq9.questions()
    config = phq9.config(questionnaire_id=1)

Author: QScore Team
Version: 1.0.0
"""

from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Tuple, Union

from shared.schemas.questionnaire import Question, QuestionOption, QuestionType
from shared.schemas.scoring import RiskBand, ScoringConfig, ScoringMethod


# =============================================================================
# Item Banks
# =============================================================================

FREQUENCY_OPTIONS: Tuple[Tuple[str, int], ...] = (
    ("Not at all", 0),
    ("Several days", 1),
    ("More than half the days", 2),
    ("Nearly every day", 3),
)

STRESS_OPTIONS: Tuple[Tuple[str, int], ...] = (
    ("Never", 0),
    ("Almost never", 1),
    ("Sometimes", 2),
    ("Fairly often", 3),
    ("Very often", 4),
)

PHQ9_ITEMS = (
    "Little interest or pleasure in doing things",
    "Feeling down, depressed, or hopeless",
    "Trouble falling or staying asleep, or sleeping too much",
    "Feeling tired or having little energy",
    "Poor appetite or overeating",
    "Feeling bad about yourself, or that you are a failure or have let yourself or your family down",
    "Trouble concentrating on things, such as reading the newspaper or watching television",
    "Moving or speaking so slowly that other people could have noticed, or the opposite, being so fidgety or restless that you have been moving around a lot more than usual",
    "Thoughts that you would be better off dead or of hurting yourself in some way",
)

GAD7_ITEMS = (
    "Feeling nervous, anxious, or on edge",
    "Not being able to stop or control worrying",
    "Worrying too much about different things",
    "Trouble relaxing",
    "Being so restless that it is hard to sit still",
    "Becoming easily annoyed or irritable",
    "Feeling afraid, as if something awful might happen",
)

PSS10_ITEMS = (
    "Been upset because of something that happened unexpectedly",
    "Felt that you were unable to control the important things in your life",
    "Felt nervous and stressed",
    "Felt confident about your ability to handle your personal problems",
    "Felt that things were going your way",
    "Found that you could not cope with all the things that you had to do",
    "Been able to control irritations in your life",
    "Felt that you were on top of things",
    "Been angered because of things that happened that were outside of your control",
    "Felt difficulties were piling up so high that you could not overcome them",
)

PSS10_REVERSED = frozenset({4, 5, 7, 8})


def _choice_questions(
    items: Sequence[str],
    options: Sequence[Tuple[str, int]],
    reversed_items: frozenset = frozenset(),
) -> List[Question]:
    top = max(score for _, score in options)
    questions = []
    for number, text in enumerate(items, start=1):
        reverse = number in reversed_items
        questions.append(Question(
            id=number,
            type=QuestionType.SINGLE_CHOICE,
            text=text,
            required=True,
            order_num=number,
            options=[
                QuestionOption(
                    value=score,
                    label=label,
                    score=(top - score) if reverse else score,
                )
                for label, score in options
            ],
        ))
    return questions


# =============================================================================
# Presets
# =============================================================================


@dataclass(frozen=True)
class InstrumentPreset:
    """
    A standard instrument: its items, options and severity bands.

    Option values are the printed 0–N response codes; reverse-scored items
    keep their codes and invert the option scores.
    """

    key: str
    name: str
    questionnaire_type: str
    items: Tuple[str, ...]
    options: Tuple[Tuple[str, int], ...]
    max_score: int
    bands: Tuple[Dict[str, Union[int, str, bool]], ...]
    reversed_items: frozenset = field(default_factory=frozenset)

    def questions(self) -> List[Question]:
        return _choice_questions(self.items, self.options, self.reversed_items)

    def config(self, questionnaire_id: Union[int, str]) -> ScoringConfig:
        return ScoringConfig(
            questionnaire_id=questionnaire_id,
            name=self.name,
            method=ScoringMethod.SUM,
            max_score=self.max_score,
            risk_levels=[RiskBand(**band) for band in self.bands],
        )


PHQ9 = InstrumentPreset(
    key="phq9",
    name="PHQ-9 Depression Scoring",
    questionnaire_type="depression",
    items=PHQ9_ITEMS,
    options=FREQUENCY_OPTIONS,
    max_score=27,
    bands=(
        {"min": 0, "max": 4, "label": "Minimal", "risk_level": "minimal",
         "description": "Minimal depression", "color": "#4ade80"},
        {"min": 5, "max": 9, "label": "Mild", "risk_level": "mild",
         "description": "Mild depression", "color": "#a3e635"},
        {"min": 10, "max": 14, "label": "Moderate", "risk_level": "moderate",
         "description": "Moderate depression", "color": "#facc15"},
        {"min": 15, "max": 19, "label": "Moderately Severe", "risk_level": "moderately severe",
         "description": "Moderately severe depression", "color": "#f97316", "forces_review": True},
        {"min": 20, "max": 27, "label": "Severe", "risk_level": "severe",
         "description": "Severe depression", "color": "#ef4444"},
    ),
)

GAD7 = InstrumentPreset(
    key="gad7",
    name="GAD-7 Anxiety Scoring",
    questionnaire_type="anxiety",
    items=GAD7_ITEMS,
    options=FREQUENCY_OPTIONS,
    max_score=21,
    bands=(
        {"min": 0, "max": 4, "label": "Minimal", "risk_level": "minimal",
         "description": "Minimal anxiety", "color": "#4ade80"},
        {"min": 5, "max": 9, "label": "Mild", "risk_level": "mild",
         "description": "Mild anxiety", "color": "#a3e635"},
        {"min": 10, "max": 14, "label": "Moderate", "risk_level": "moderate",
         "description": "Moderate anxiety", "color": "#facc15"},
        {"min": 15, "max": 21, "label": "Severe", "risk_level": "severe",
         "description": "Severe anxiety", "color": "#ef4444"},
    ),
)

PSS10 = InstrumentPreset(
    key="pss10",
    name="Perceived Stress Scale Scoring",
    questionnaire_type="stress",
    items=PSS10_ITEMS,
    options=STRESS_OPTIONS,
    max_score=40,
    reversed_items=PSS10_REVERSED,
    bands=(
        {"min": 0, "max": 13, "label": "Low", "risk_level": "low",
         "description": "Low stress", "color": "#4ade80"},
        {"min": 14, "max": 26, "label": "Moderate", "risk_level": "moderate",
         "description": "Moderate stress", "color": "#facc15"},
        {"min": 27, "max": 40, "label": "High", "risk_level": "high",
         "description": "High stress", "color": "#ef4444"},
    ),
)

PRESETS: Dict[str, InstrumentPreset] = {
    preset.key: preset for preset in (PHQ9, GAD7, PSS10)
}


def get_preset(key: str) -> InstrumentPreset:
    """
    Look up a preset by key.

    Raises:
        ValueError: If no preset has that key
    """
    try:
        return PRESETS[key.strip().lower()]
    except KeyError:
        raise ValueError(f"Unknown instrument preset: {key}") from None


def list_presets() -> List[str]:
    return sorted(PRESETS)
