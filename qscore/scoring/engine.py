"""
Response Scoring Engine
=======================

Orchestrates scoring of a questionnaire response.

This module coordinates:
    - Answer validation against the question schema
    - Score calculation using the configured method
    - Risk classification against the configured bands
    - Batch recalculation after a configuration change

Per invocation the orchestrator moves through::

    RECEIVED → VALIDATING → SCORING → CLASSIFYING → COMPLETED
                     └──────→ REJECTED

Expected problems come back as a ScoringFailure, never as an exception.
Only caller contract violations raise ScoringContractError.

Usage:
    from qscore.scoring.engine import ResponseScoringOrchestrator

    engine = ResponseScoringOrchestrator()
    outcome = engine.score(submission, questions, config)
    if isinstance(outcome, ScoringResult):
        store(outcome.to_record())

Author: QScore Team
Version: 1.0.0
"""

from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from qscore.config import Settings, settings as default_settings
from qscore.logging import bind_scoring_context, get_logger
from qscore.scoring.calculator import ScoreCalculator
from qscore.scoring.classifier import RiskClassifier
from qscore.scoring.errors import ScoringConfigurationError, ScoringContractError
from qscore.scoring.validator import AnswerValidator
from shared.schemas.questionnaire import Question, normalize_token
from shared.schemas.scoring import ScoringConfig
from shared.schemas.responses import (
    RawResponseSubmission,
    ScoringError,
    ScoringFailure,
    ScoringResult,
    ScoringStage,
    ValidatedAnswers,
)


logger = get_logger(__name__)

ScoringOutcome = Union[ScoringResult, ScoringFailure]


class ResponseScoringOrchestrator:
    """
    Top-level entry point of the scoring engine.

    Holds no per-response state, so one instance can score any number of
    responses, including concurrently.

    Attributes:
        validator: Answer validator
        calculator: Score calculator
        classifier: Risk classifier

    Example:
        engine = ResponseScoringOrchestrator()

        outcome = engine.score(submission, questions, config)
        if isinstance(outcome, ScoringFailure):
            for message in outcome.messages():
                print(message)

        # After editing a scoring config
        outcomes = engine.recalculate_all(stored_responses, questions, config)
    """

    def __init__(
        self,
        validator: Optional[AnswerValidator] = None,
        calculator: Optional[ScoreCalculator] = None,
        classifier: Optional[RiskClassifier] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or default_settings
        self.validator = validator or AnswerValidator(self.settings)
        self.calculator = calculator or ScoreCalculator()
        self.classifier = classifier or RiskClassifier(self.settings)

    def score(
        self,
        response: RawResponseSubmission,
        schema: Sequence[Question],
        config: ScoringConfig,
    ) -> ScoringOutcome:
        """
        Validate, score and classify one response.

        Args:
            response: Raw submission
            schema: The questionnaire's questions
            config: The questionnaire's active scoring configuration

        Returns:
            ScoringResult on success, otherwise a ScoringFailure naming
            the failed stage and every error found there

        Raises:
            ScoringContractError: If a collaborator is missing or the
                config belongs to another questionnaire
        """
        response = self._check_contract(response, schema, config)

        with bind_scoring_context(response.response_id, response.questionnaire_id):
            logger.debug("scoring_received", answers=len(response.answers))

            stage = ScoringStage.VALIDATING
            validated = self.validator.validate(response.answers, schema)
            if not isinstance(validated, ValidatedAnswers):
                logger.info(
                    "response_rejected",
                    errors=len(validated),
                    kinds=sorted({error.kind.value for error in validated}),
                )
                return ScoringFailure(
                    stage=ScoringStage.VALIDATING,
                    errors=tuple(validated),
                    response_id=response.response_id,
                    questionnaire_id=response.questionnaire_id,
                )

            try:
                stage = ScoringStage.SCORING
                scored, total = self.calculator.calculate(validated, schema, config)

                stage = ScoringStage.CLASSIFYING
                classification = self.classifier.classify(total, config.risk_levels)
            except ScoringConfigurationError as exc:
                return self._configuration_failure(stage, exc.error, response)

            passed = None
            if config.passing_score is not None:
                passed = total >= config.passing_score

            result = ScoringResult(
                response_id=response.response_id,
                questionnaire_id=response.questionnaire_id,
                method=config.method,
                total_score=total,
                risk_level=classification.risk_level,
                risk_label=classification.label,
                flagged_for_review=classification.flagged,
                max_score=config.max_score,
                passing_score=config.passing_score,
                passed=passed,
                scored_answers=tuple(scored),
                scoring_version=self.settings.scoring_version,
            )

            logger.info(
                "response_scored",
                total_score=result.total_score,
                risk_level=result.risk_level,
                flagged_for_review=result.flagged_for_review,
            )
            return result

    def recalculate(
        self,
        response: RawResponseSubmission,
        schema: Sequence[Question],
        config: ScoringConfig,
    ) -> ScoringOutcome:
        """
        Score already-stored answers again.

        Produces a brand-new outcome that replaces the stored one; the
        previous result is never patched.
        """
        return self.score(response, schema, config)

    def recalculate_all(
        self,
        responses: Iterable[RawResponseSubmission],
        schema: Sequence[Question],
        config: ScoringConfig,
    ) -> Dict[Union[int, str], ScoringOutcome]:
        """
        Recalculate every stored response of a questionnaire.

        Each response is scored independently; order does not matter and
        callers may split the work across workers.

        Args:
            responses: Stored submissions, each with a response_id
            schema: The questionnaire's questions
            config: The (possibly edited) scoring configuration

        Returns:
            Mapping of response_id to its new outcome

        Raises:
            ScoringContractError: If a response lacks a response_id or
                ids repeat
        """
        logger.info("recalculation_started", questionnaire_id=config.questionnaire_id)

        outcomes: Dict[Union[int, str], ScoringOutcome] = {}
        for response in responses:
            if response.response_id is None:
                raise ScoringContractError("stored responses need a response_id to be recalculated")
            if response.response_id in outcomes:
                raise ScoringContractError(f"duplicate response_id: {response.response_id}")
            outcomes[response.response_id] = self.recalculate(response, schema, config)

        scored = sum(1 for o in outcomes.values() if isinstance(o, ScoringResult))
        rejected = sum(
            1 for o in outcomes.values()
            if isinstance(o, ScoringFailure) and o.is_rejection
        )
        logger.info(
            "recalculation_completed",
            questionnaire_id=config.questionnaire_id,
            total=len(outcomes),
            scored=scored,
            rejected=rejected,
            failed=len(outcomes) - scored - rejected,
        )
        return outcomes

    def explain(
        self,
        result: ScoringResult,
        config: Optional[ScoringConfig] = None,
    ) -> Dict[str, Any]:
        """
        Generate a human-readable breakdown of a scoring result.

        Args:
            result: ScoringResult to explain
            config: Optional config, to include the matched band's details

        Returns:
            Dictionary with a summary line, top contributing questions
            and the per-question breakdown
        """
        contributions = sorted(
            result.scored_answers,
            key=lambda answer: answer.score,
            reverse=True,
        )
        top = [answer.question_id for answer in contributions[:3] if answer.score > 0]

        explanation: Dict[str, Any] = {
            "response_id": result.response_id,
            "total_score": result.total_score,
            "max_score": result.max_score,
            "percentage": result.percentage,
            "risk_level": result.risk_level,
            "risk_label": result.risk_label,
            "flagged_for_review": result.flagged_for_review,
            "summary": self._generate_summary(result),
            "top_contributors": top,
            "answer_scores": result.answer_scores,
        }

        if config is not None:
            band = config.band_for_level(result.risk_level)
            if band is not None:
                explanation["band"] = {
                    "min": band.min,
                    "max": band.max,
                    "label": band.label,
                    "description": band.description,
                }

        return explanation

    # =========================================================================
    # Internals
    # =========================================================================

    def _check_contract(
        self,
        response: Any,
        schema: Optional[Sequence[Question]],
        config: Optional[ScoringConfig],
    ) -> RawResponseSubmission:
        if response is None:
            raise ScoringContractError("a response submission is required")
        if schema is None:
            raise ScoringContractError("a question schema is required")
        if config is None:
            raise ScoringContractError("a scoring configuration is required")

        if isinstance(response, dict):
            response = RawResponseSubmission.model_validate(response)

        if normalize_token(config.questionnaire_id) != normalize_token(response.questionnaire_id):
            raise ScoringContractError(
                f"scoring config belongs to questionnaire {config.questionnaire_id}, "
                f"response to {response.questionnaire_id}"
            )
        return response

    def _configuration_failure(
        self,
        stage: ScoringStage,
        error: ScoringError,
        response: RawResponseSubmission,
    ) -> ScoringFailure:
        error = error.model_copy(update={"questionnaire_id": response.questionnaire_id})
        logger.error(
            "scoring_configuration_invalid",
            stage=stage.value,
            kind=error.kind.value,
            detail=error.message,
        )
        return ScoringFailure(
            stage=stage,
            errors=(error,),
            response_id=response.response_id,
            questionnaire_id=response.questionnaire_id,
        )

    @staticmethod
    def _generate_summary(result: ScoringResult) -> str:
        """Generate a one-line summary of the result."""
        if result.max_score:
            score = f"Score {result.total_score} of {result.max_score:g}"
        else:
            score = f"Score {result.total_score}"

        if result.risk_level is None:
            return f"{score} is outside every configured risk band. Review required."
        if result.flagged_for_review:
            return f"{score} ({result.risk_label}). Flagged for review."
        return f"{score} ({result.risk_label})."


def score_response(
    response: RawResponseSubmission,
    schema: Sequence[Question],
    config: ScoringConfig,
) -> ScoringOutcome:
    """Score one response with a default orchestrator."""
    return ResponseScoringOrchestrator().score(response, schema, config)


def collect_failures(outcomes: Dict[Union[int, str], ScoringOutcome]) -> List[ScoringFailure]:
    """Failures from a recalculate_all run, in response id order."""
    return [
        outcomes[key] for key in sorted(outcomes, key=normalize_token)
        if isinstance(outcomes[key], ScoringFailure)
    ]
