"""
Scoring Configuration Schemas
=============================

Per-questionnaire scoring configuration as served by the scoring
configuration store.

Key Components:
    - ScoringMethod: Aggregation methods
    - RiskBand: One closed score interval mapped to a risk level code
    - ScoringConfig: Method, bounds and ordered risk bands

Risk level codes are opaque strings defined by each configuration
(``minimal``/``mild``/``severe`` for PHQ-9, ``low``/``high`` for others).

Author: QScore Team
Version: 1.0.0
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Union
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator


class ScoringMethod(str, Enum):
    """
    Aggregation method applied to per-question scores.
    """

    SUM = "sum"
    """Arithmetic sum of weighted scores"""

    AVERAGE = "average"
    """Weighted sum divided by the number of answered scorable questions"""

    WEIGHTED_AVERAGE = "weighted_average"
    """Weighted sum divided by the summed weights of answered scorable questions"""

    CUSTOM = "custom"
    """Delegates to a registered scoring function"""


class RiskBand(BaseModel):
    """
    A closed score interval ``[min, max]`` mapped to a risk level.

    Attributes:
        min: Inclusive lower bound
        max: Inclusive upper bound
        label: Human-readable name (e.g. "Moderately Severe")
        risk_level: Opaque risk level code (e.g. "moderately severe")
        forces_review: Flag responses in this band (and above) for review
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    min: float = Field(..., description="Inclusive lower bound")
    max: float = Field(..., description="Inclusive upper bound")
    label: str = Field(..., description="Display label")
    risk_level: str = Field(
        ...,
        validation_alias=AliasChoices("risk_level", "risk_level_code"),
        description="Opaque risk level code"
    )
    description: Optional[str] = Field(default=None, description="Band description")
    color: Optional[str] = Field(default=None, description="Display color")
    forces_review: bool = Field(
        default=False,
        description="Lower the review threshold to this band"
    )

    @field_validator("risk_level")
    @classmethod
    def validate_risk_level(cls, v: str) -> str:
        """Ensure risk_level is not empty."""
        if not v or not v.strip():
            raise ValueError("risk_level cannot be empty")
        return v.strip()

    @model_validator(mode="after")
    def check_bounds(self) -> "RiskBand":
        if self.min > self.max:
            raise ValueError(
                f"risk band '{self.risk_level}' has min {self.min} greater than max {self.max}"
            )
        return self

    def contains(self, score: float) -> bool:
        return self.min <= score <= self.max


class ScoringConfig(BaseModel):
    """
    Scoring configuration for exactly one questionnaire.

    Band ordering and overlap are re-checked by the classifier at
    evaluation time rather than here, so that a misconfigured row loaded
    from the store surfaces as a typed scoring failure.

    Example:
        >>> config = ScoringConfig(
        ...     questionnaire_id=1,
        ...     method=ScoringMethod.SUM,
        ...     max_score=27,
        ...     risk_levels=[
        ...         {"min": 0, "max": 4, "label": "Minimal", "risk_level": "minimal"},
        ...         {"min": 5, "max": 27, "label": "Elevated", "risk_level": "elevated"},
        ...     ],
        ... )
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    questionnaire_id: Union[int, str] = Field(..., description="Owning questionnaire")
    name: str = Field(default="", description="Configuration name")
    description: Optional[str] = Field(default=None, description="Configuration description")
    method: ScoringMethod = Field(
        default=ScoringMethod.SUM,
        validation_alias=AliasChoices("method", "scoring_method"),
        description="Aggregation method"
    )
    max_score: Optional[float] = Field(default=None, description="Upper bound for display")
    passing_score: Optional[float] = Field(default=None, description="Pass threshold")
    risk_levels: List[RiskBand] = Field(
        default_factory=list,
        validation_alias=AliasChoices("risk_levels", "ranges"),
        description="Ordered risk bands"
    )
    scoring_function: Optional[str] = Field(
        default=None,
        description="Registered custom scoring function name"
    )
    rules: Dict[str, Any] = Field(
        default_factory=dict,
        description="Stored custom rules, e.g. {\"question_scores\": {...}}"
    )

    @field_validator("rules", mode="before")
    @classmethod
    def default_rules(cls, v: Any) -> Any:
        """The store may hold NULL for configs without custom rules."""
        return {} if v is None else v

    @property
    def highest_band(self) -> Optional[RiskBand]:
        return self.risk_levels[-1] if self.risk_levels else None

    def band_for_level(self, risk_level: Optional[str]) -> Optional[RiskBand]:
        """Look up a band by its risk level code."""
        for band in self.risk_levels:
            if band.risk_level == risk_level:
                return band
        return None
