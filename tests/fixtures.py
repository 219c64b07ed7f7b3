"""
Test Fixtures for Questionnaire Scoring
=======================================

Builders for question schemas and submissions shared by the test
modules:
    - choice_question: single choice item whose option values equal scores
    - submission: RawResponseSubmission from a {question_id: value} mapping
    - nine_item_schema: PHQ-9 shaped schema with two optional items

Author: QScore Team
Version: 1.0.0
"""

from shared.schemas.questionnaire import Question, QuestionType
from shared.schemas.responses import RawResponseSubmission


def choice_question(qid, weight=1, required=True, order_num=None, scores=(0, 1, 2, 3)):
    """Single choice question whose option values equal their scores."""
    return Question(
        id=qid,
        type=QuestionType.SINGLE_CHOICE,
        text=f"Item {qid}",
        required=required,
        scoring_weight=weight,
        order_num=qid if order_num is None else order_num,
        options=[{"value": str(s), "label": f"Option {s}", "score": s} for s in scores],
    )


def submission(values, questionnaire_id=1, response_id=None):
    """Build a submission from a {question_id: value} mapping."""
    return RawResponseSubmission.from_mapping(questionnaire_id, values, response_id=response_id)


def nine_item_schema():
    """Nine items scored 0-3; items 8 and 9 are optional."""
    return [choice_question(i, required=i < 8) for i in range(1, 10)]
