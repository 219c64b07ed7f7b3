"""
Scoring Exceptions
==================

Exceptions used inside the scoring package.

Expected failures (bad answers, bad configuration) are reported to callers
as typed records from ``shared.schemas.responses``. The exceptions here
are either internal carriers for those records or signal a caller
contract violation.

Author: QScore Team
Version: 1.0.0
"""

from shared.schemas.responses import ScoringError


class ScoringContractError(ValueError):
    """The caller broke the engine's contract (e.g. passed no schema)."""


class ScoringConfigurationError(Exception):
    """
    Raised by the calculator and classifier when the scoring configuration
    cannot produce a trustworthy result. The orchestrator converts it into
    a ScoringFailure.
    """

    def __init__(self, error: ScoringError):
        super().__init__(error.message)
        self.error = error
