"""
Scoring Engine Tests
====================

Tests for the ResponseScoringOrchestrator: end-to-end scoring, failure
reporting, recalculation and explanations.

Author: QScore Team
Version: 1.0.0
"""

import pytest
from structlog.testing import capture_logs

from qscore.scoring.engine import collect_failures, score_response
from qscore.scoring.errors import ScoringContractError
from shared.schemas.questionnaire import Question, QuestionType
from shared.schemas.scoring import ScoringConfig, ScoringMethod
from shared.schemas.responses import (
    ScoringErrorKind,
    ScoringFailure,
    ScoringResult,
    ScoringStage,
    ValidationErrorKind,
)

from fixtures import submission


COMPLETE = {1: "1", 2: "2", 3: "3"}


class TestScoring:
    """Tests for ResponseScoringOrchestrator.score."""

    def test_weighted_sum_classified_moderate(self, engine, weighted_schema, sum_config):
        """Test weighted sum scoring classified as moderate."""
        outcome = engine.score(submission(COMPLETE, response_id=7), weighted_schema, sum_config)

        assert isinstance(outcome, ScoringResult)
        assert outcome.total_score == 9
        assert outcome.risk_level == "moderate"
        assert outcome.risk_label == "Moderate"
        assert outcome.flagged_for_review is False
        assert outcome.response_id == 7
        assert outcome.to_record() == {
            "score": 9,
            "risk_level": "moderate",
            "flagged_for_review": False,
        }

    def test_weights_one_one_two(self, engine, weighted_schema, sum_config):
        """Test weights of one, one and two."""
        outcome = engine.score(submission({1: "2", 2: "1", 3: "3"}), weighted_schema, sum_config)

        assert outcome.total_score == 9
        assert outcome.risk_level == "moderate"
        assert not outcome.flagged_for_review

    def test_highest_band_flagged(self, engine, weighted_schema, sum_config):
        """Test the highest band is flagged for review."""
        outcome = engine.score(
            submission({1: "3", 2: "3", 3: "3"}), weighted_schema, sum_config
        )

        assert outcome.total_score == 12
        assert outcome.risk_level == "high"
        assert outcome.flagged_for_review is True

    def test_unclassified_score_flagged(self, engine, weighted_schema):
        """Test a score outside all bands is flagged."""
        config = ScoringConfig(
            questionnaire_id=1,
            risk_levels=[{"min": 0, "max": 4, "label": "Low", "risk_level": "low"}],
        )

        outcome = engine.score(submission(COMPLETE), weighted_schema, config)

        assert isinstance(outcome, ScoringResult)
        assert outcome.risk_level is None
        assert not outcome.is_classified
        assert outcome.flagged_for_review is True

    def test_missing_required_rejected(self, engine, weighted_schema, sum_config):
        """Test a missing required answer is rejected."""
        outcome = engine.score(submission({1: "1", 2: "2"}), weighted_schema, sum_config)

        assert isinstance(outcome, ScoringFailure)
        assert outcome.stage == ScoringStage.VALIDATING
        assert outcome.is_rejection
        assert len(outcome.errors) == 1
        assert outcome.errors[0].kind == ValidationErrorKind.MISSING_REQUIRED
        assert outcome.errors[0].question_id == 3
        assert outcome.messages() == ['Please answer "Item 3".']

    def test_all_validation_errors_reported(self, engine, weighted_schema, sum_config):
        """Test every validation error is reported at once."""
        outcome = engine.score(
            submission({1: "9", 2: ["1"], 42: "1"}), weighted_schema, sum_config
        )

        assert [e.kind for e in outcome.errors] == [
            ValidationErrorKind.UNKNOWN_QUESTION,
            ValidationErrorKind.INVALID_OPTION,
            ValidationErrorKind.TYPE_MISMATCH,
            ValidationErrorKind.MISSING_REQUIRED,
        ]

    def test_missing_custom_function_fails_scoring(self, engine, weighted_schema):
        """Test a missing custom function fails at scoring."""
        config = ScoringConfig(questionnaire_id=1, method=ScoringMethod.CUSTOM)

        outcome = engine.score(submission(COMPLETE), weighted_schema, config)

        assert isinstance(outcome, ScoringFailure)
        assert outcome.stage == ScoringStage.SCORING
        assert not outcome.is_rejection
        error = outcome.scoring_errors[0]
        assert error.kind == ScoringErrorKind.MISSING_SCORING_FUNCTION
        assert error.questionnaire_id == 1
        assert outcome.messages()[0].startswith(
            "Scoring configuration is invalid for questionnaire 1: "
        )

    def test_custom_function(self, engine, registry, weighted_schema, sum_config):
        """Test scoring with a registered custom function."""
        registry.register("max_item", lambda answers: max(a.score for a in answers))
        config = ScoringConfig(
            questionnaire_id=1,
            method=ScoringMethod.CUSTOM,
            scoring_function="max_item",
            risk_levels=sum_config.risk_levels,
        )

        outcome = engine.score(submission(COMPLETE), weighted_schema, config)

        assert outcome.total_score == 3
        assert outcome.risk_level == "low"
        assert outcome.method == ScoringMethod.CUSTOM

    def test_overlapping_bands_fail_classification(self, engine, weighted_schema):
        """Test overlapping bands fail at classification."""
        config = ScoringConfig(
            questionnaire_id=1,
            risk_levels=[
                {"min": 0, "max": 10, "label": "Low", "risk_level": "low"},
                {"min": 10, "max": 20, "label": "High", "risk_level": "high"},
            ],
        )

        outcome = engine.score(submission(COMPLETE), weighted_schema, config)

        assert outcome.stage == ScoringStage.CLASSIFYING
        assert outcome.errors[0].kind == ScoringErrorKind.INVALID_BAND_CONFIGURATION

    def test_oversized_integer_answer_rejected(self, engine, sum_config):
        """Test a huge integer answer is a rejection, not a raised error."""
        schema = [Question(id=1, type=QuestionType.RATING)]

        outcome = engine.score(submission({1: 10 ** 400}), schema, sum_config)

        assert isinstance(outcome, ScoringFailure)
        assert outcome.stage == ScoringStage.VALIDATING
        assert outcome.errors[0].kind == ValidationErrorKind.OUT_OF_RANGE

    def test_stored_rules_config(self, engine, weighted_schema, moderate_bands):
        """Test a custom config row carrying question_scores is scored."""
        config = ScoringConfig.model_validate({
            "questionnaire_id": 1,
            "scoring_method": "custom",
            "ranges": moderate_bands,
            "rules": {
                "question_scores": {
                    "1": {"values": {"1": 2}},
                    "2": {"values": {"2": 3}},
                    "3": {"values": {"3": 2}, "default": 0},
                },
            },
        })

        outcome = engine.score(submission(COMPLETE), weighted_schema, config)

        assert isinstance(outcome, ScoringResult)
        assert outcome.total_score == 7
        assert outcome.risk_level == "moderate"

    def test_average_without_scorable_answers(self, engine, mixed_schema):
        """Test average scoring without scorable answers fails."""
        config = ScoringConfig(questionnaire_id=1, method=ScoringMethod.AVERAGE)
        schema = [q for q in mixed_schema if q.id in ("notes", "visit")]

        outcome = engine.score(submission({"notes": "hello"}), schema, config)

        assert outcome.stage == ScoringStage.SCORING
        assert outcome.errors[0].kind == ScoringErrorKind.NO_SCORABLE_ANSWERS

    def test_passing_score(self, engine, weighted_schema, moderate_bands):
        """Test passed is set against the passing score."""
        config = ScoringConfig(questionnaire_id=1, passing_score=10, risk_levels=moderate_bands)

        low = engine.score(submission(COMPLETE), weighted_schema, config)
        high = engine.score(submission({1: "3", 2: "3", 3: "3"}), weighted_schema, config)

        assert low.passed is False
        assert high.passed is True

    def test_passed_unset_without_passing_score(self, engine, weighted_schema, sum_config):
        """Test passed is None without a passing score."""
        outcome = engine.score(submission(COMPLETE), weighted_schema, sum_config)
        assert outcome.passed is None

    def test_result_carries_breakdown(self, engine, weighted_schema, sum_config, test_settings):
        """Test the result carries per-question scores and version."""
        outcome = engine.score(submission(COMPLETE), weighted_schema, sum_config)

        assert outcome.answer_scores == {"1": 1.0, "2": 2.0, "3": 6.0}
        assert outcome.max_score == 27
        assert outcome.scoring_version == test_settings.scoring_version

    def test_dict_submission_accepted(self, engine, weighted_schema, sum_config):
        """Test a plain dict submission is accepted."""
        outcome = engine.score(
            {
                "questionnaire_id": "1",
                "answers": [{"question_id": q, "value": v} for q, v in COMPLETE.items()],
            },
            weighted_schema,
            sum_config,
        )

        assert outcome.total_score == 9

    def test_scoring_is_deterministic(self, engine, weighted_schema, sum_config):
        """Test scoring the same response twice gives equal results."""
        response = submission(COMPLETE, response_id=3)

        first = engine.score(response, weighted_schema, sum_config)
        second = engine.score(response, weighted_schema, sum_config)

        assert first == second
        assert first.model_dump_json() == second.model_dump_json()

    def test_logs_outcome(self, engine, weighted_schema, sum_config):
        """Test scored and rejected responses are logged."""
        with capture_logs() as logs:
            engine.score(submission(COMPLETE), weighted_schema, sum_config)
            engine.score(submission({1: "1"}), weighted_schema, sum_config)

        events = [entry["event"] for entry in logs]
        assert "response_scored" in events
        assert "response_rejected" in events


class TestContract:
    """Caller contract violations raise instead of returning a failure."""

    def test_missing_schema(self, engine, sum_config):
        """Test a missing schema raises."""
        with pytest.raises(ScoringContractError):
            engine.score(submission(COMPLETE), None, sum_config)

    def test_missing_config(self, engine, weighted_schema):
        """Test a missing config raises."""
        with pytest.raises(ScoringContractError):
            engine.score(submission(COMPLETE), weighted_schema, None)

    def test_missing_response(self, engine, weighted_schema, sum_config):
        """Test a missing response raises."""
        with pytest.raises(ScoringContractError):
            engine.score(None, weighted_schema, sum_config)

    def test_config_for_other_questionnaire(self, engine, weighted_schema, sum_config):
        """Test a config for another questionnaire raises."""
        with pytest.raises(ScoringContractError, match="belongs to questionnaire"):
            engine.score(submission(COMPLETE, questionnaire_id=2), weighted_schema, sum_config)

    def test_contract_error_is_value_error(self):
        """Test contract errors are ValueErrors."""
        assert issubclass(ScoringContractError, ValueError)


class TestRecalculation:
    """Tests for recalculate and recalculate_all."""

    def test_recalculate_is_idempotent(self, engine, weighted_schema, sum_config):
        """Test recalculating a response gives the same result."""
        response = submission(COMPLETE, response_id=1)

        previous = engine.score(response, weighted_schema, sum_config)
        again = engine.recalculate(response, weighted_schema, sum_config)

        assert again == previous

    def test_recalculate_with_edited_config(self, engine, weighted_schema, sum_config):
        """Test recalculation picks up an edited config."""
        response = submission(COMPLETE, response_id=1)
        previous = engine.score(response, weighted_schema, sum_config)
        edited = ScoringConfig(
            questionnaire_id=1,
            max_score=27,
            risk_levels=[
                {"min": 0, "max": 8, "label": "Low", "risk_level": "low"},
                {"min": 9, "max": 27, "label": "High", "risk_level": "high"},
            ],
        )

        updated = engine.recalculate(response, weighted_schema, edited)

        assert updated.total_score == 9
        assert updated.risk_level == "high"
        assert updated.flagged_for_review is True
        assert previous.risk_level == "moderate"

    def test_recalculate_all(self, engine, weighted_schema, sum_config):
        """Test recalculating a batch of responses."""
        responses = [
            submission(COMPLETE, response_id=10),
            submission({1: "0", 2: "0", 3: "0"}, response_id=11),
            submission({1: "0"}, response_id=12),
        ]

        outcomes = engine.recalculate_all(responses, weighted_schema, sum_config)

        assert set(outcomes) == {10, 11, 12}
        assert outcomes[10].risk_level == "moderate"
        assert outcomes[11].total_score == 0
        assert outcomes[11].risk_level == "low"
        assert isinstance(outcomes[12], ScoringFailure)
        assert collect_failures(outcomes) == [outcomes[12]]

    def test_recalculate_all_order_independent(self, engine, weighted_schema, sum_config):
        """Test batch results do not depend on input order."""
        responses = [
            submission(COMPLETE, response_id="a"),
            submission({1: "3", 2: "3", 3: "3"}, response_id="b"),
        ]

        forward = engine.recalculate_all(responses, weighted_schema, sum_config)
        backward = engine.recalculate_all(list(reversed(responses)), weighted_schema, sum_config)

        assert forward == backward

    def test_recalculate_all_with_raising_function(self, engine, registry, weighted_schema):
        """Test a failing custom function yields a failure per response and no raise."""
        registry.register("broken", lambda answers: 1 / 0)
        config = ScoringConfig(
            questionnaire_id=1, method=ScoringMethod.CUSTOM, scoring_function="broken"
        )
        responses = [
            submission(COMPLETE, response_id=1),
            submission({1: "0", 2: "0", 3: "0"}, response_id=2),
        ]

        outcomes = engine.recalculate_all(responses, weighted_schema, config)

        assert set(outcomes) == {1, 2}
        for outcome in outcomes.values():
            assert isinstance(outcome, ScoringFailure)
            assert outcome.stage == ScoringStage.SCORING
            assert outcome.errors[0].kind == ScoringErrorKind.SCORING_FUNCTION_FAILED
        assert collect_failures(outcomes) == [outcomes[1], outcomes[2]]

    def test_recalculate_all_requires_ids(self, engine, weighted_schema, sum_config):
        """Test batch recalculation requires response ids."""
        with pytest.raises(ScoringContractError, match="response_id"):
            engine.recalculate_all([submission(COMPLETE)], weighted_schema, sum_config)

    def test_recalculate_all_rejects_duplicate_ids(self, engine, weighted_schema, sum_config):
        """Test batch recalculation rejects repeated ids."""
        responses = [submission(COMPLETE, response_id=5), submission(COMPLETE, response_id=5)]

        with pytest.raises(ScoringContractError, match="duplicate"):
            engine.recalculate_all(responses, weighted_schema, sum_config)


class TestExplain:
    """Tests for score explanations."""

    def test_explain_classified_result(self, engine, weighted_schema, sum_config):
        """Test explanation of a classified result."""
        result = engine.score(submission(COMPLETE, response_id=8), weighted_schema, sum_config)

        explanation = engine.explain(result, sum_config)

        assert explanation["response_id"] == 8
        assert explanation["total_score"] == 9
        assert explanation["percentage"] == 33.3
        assert explanation["summary"] == "Score 9 of 27 (Moderate)."
        assert explanation["top_contributors"] == [3, 2, 1]
        assert explanation["band"]["min"] == 5
        assert explanation["band"]["max"] == 9

    def test_explain_flagged_result(self, engine, weighted_schema, sum_config):
        """Test explanation of a flagged result."""
        result = engine.score(submission({1: "3", 2: "3", 3: "3"}), weighted_schema, sum_config)

        explanation = engine.explain(result)

        assert explanation["summary"] == "Score 12 of 27 (High). Flagged for review."
        assert "band" not in explanation

    def test_explain_unclassified_result(self, engine, weighted_schema):
        """Test explanation of an unclassified result."""
        config = ScoringConfig(questionnaire_id=1)
        result = engine.score(submission(COMPLETE), weighted_schema, config)

        explanation = engine.explain(result, config)

        assert explanation["summary"] == (
            "Score 9 is outside every configured risk band. Review required."
        )
        assert explanation["percentage"] is None

    def test_zero_scores_not_top_contributors(self, engine, weighted_schema, sum_config):
        """Test zero-score answers are not top contributors."""
        result = engine.score(submission({1: "0", 2: "1", 3: "0"}), weighted_schema, sum_config)

        assert engine.explain(result)["top_contributors"] == [2]


def test_score_response_with_defaults(weighted_schema, sum_config):
    """Test score_response with default components."""
    outcome = score_response(submission(COMPLETE), weighted_schema, sum_config)

    assert isinstance(outcome, ScoringResult)
    assert outcome.total_score == 9
