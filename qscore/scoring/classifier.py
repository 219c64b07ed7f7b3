"""
Risk Classification
===================

Maps an aggregate score onto a configuration's ordered risk bands.

Bands are closed intervals: a score equal to a band's max belongs to that
band. Scores below the lowest band, above the highest band, or inside a
gap between bands are unclassified (risk level None), never clamped.

Review Flagging:
    - The review threshold is the highest band, unless one or more bands
      set ``forces_review``; then the lowest such band is the threshold.
    - Scores in the threshold band or any band above it are flagged.
    - Unclassified scores are flagged (``flag_unclassified_scores``).

Author: QScore Team
Version: 1.0.0
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from qscore.config import Settings, settings as default_settings
from qscore.scoring.errors import ScoringConfigurationError
from shared.schemas.scoring import RiskBand
from shared.schemas.responses import ScoringError, ScoringErrorKind


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Classification:
    """Outcome of classifying one score."""

    risk_level: Optional[str]
    label: Optional[str]
    flagged: bool
    band_index: Optional[int] = None


def check_bands(bands: Sequence[RiskBand]) -> None:
    """
    Verify bands are ascending and non-overlapping.

    Raises:
        ScoringConfigurationError: With kind INVALID_BAND_CONFIGURATION
    """
    for lower, upper in zip(bands, bands[1:]):
        if lower.max >= upper.min:
            raise ScoringConfigurationError(ScoringError(
                kind=ScoringErrorKind.INVALID_BAND_CONFIGURATION,
                message=(
                    f"risk bands '{lower.risk_level}' [{lower.min:g}, {lower.max:g}] and "
                    f"'{upper.risk_level}' [{upper.min:g}, {upper.max:g}] overlap or are out of order"
                ),
            ))


class RiskClassifier:
    """
    Classifies aggregate scores into risk levels.

    Usage:
        classifier = RiskClassifier()
        outcome = classifier.classify(12, config.risk_levels)
        print(outcome.risk_level, outcome.flagged)
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or default_settings

    def classify(self, total_score: float, bands: Sequence[RiskBand]) -> Classification:
        """
        Classify a score.

        Args:
            total_score: Rounded aggregate score
            bands: Ordered risk bands

        Returns:
            Classification with the band's risk level (or None) and the
            review flag

        Raises:
            ScoringConfigurationError: If bands overlap or are unordered
        """
        bands = list(bands or [])
        check_bands(bands)

        for index, band in enumerate(bands):
            if band.contains(total_score):
                flagged = index >= self.review_threshold(bands)
                return Classification(
                    risk_level=band.risk_level,
                    label=band.label,
                    flagged=flagged,
                    band_index=index,
                )

        logger.debug(f"Score {total_score} falls outside every risk band")
        return Classification(
            risk_level=None,
            label=None,
            flagged=self.settings.flag_unclassified_scores,
        )

    @staticmethod
    def review_threshold(bands: Sequence[RiskBand]) -> int:
        """Index of the lowest band whose responses are flagged for review."""
        for index, band in enumerate(bands):
            if band.forces_review:
                return index
        return len(bands) - 1
