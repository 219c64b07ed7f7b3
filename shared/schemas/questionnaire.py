"""
Questionnaire Schemas
=====================

Read-only description of a questionnaire's questions as served by the
questionnaire catalog. The scoring engine never mutates these models.

Key Components:
    - QuestionType: Enumeration of supported question types
    - QuestionOption: One selectable option of a choice question
    - Question: A single question with its scoring metadata

Usage:
    from shared.schemas.questionnaire import Question, QuestionType

    question = Question(
        id=1,
        type=QuestionType.SINGLE_CHOICE,
        required=True,
        options=[{"value": "0", "label": "Not at all", "score": 0}],
        order_num=1,
    )

Author: QScore Team
Version: 1.0.0
"""

import re
from enum import Enum
from typing import Any, List, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


QuestionId = Union[int, str]


def normalize_token(value: Any) -> str:
    """
    String-normalize an id or option value for comparison.

    Integral floats collapse to their integer form so that ``1``, ``1.0``
    and ``"1"`` all compare equal. Decimal text is normalized digit by
    digit, never through float, so ``"1.50"`` matches ``"1.5"`` and long
    numeric ids keep every digit.
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return _integer_token(value)
    if isinstance(value, float) and value.is_integer():
        return _integer_token(int(value))

    text = str(value).strip()
    match = _DECIMAL_TEXT.fullmatch(text)
    if match is None:
        return text

    sign, whole, fraction = match.group(1), match.group(2), match.group(3) or ""
    whole = whole.lstrip("0") or "0"
    fraction = fraction.rstrip("0")
    if sign == "+" or (whole == "0" and not fraction):
        sign = ""
    return f"{sign}{whole}.{fraction}" if fraction else f"{sign}{whole}"


_DECIMAL_TEXT = re.compile(r"([+-]?)([0-9]+)(?:\.([0-9]*))?")

# str(int) is refused past 4300 decimal digits; 14000 bits stays below that
_MAX_DECIMAL_BITS = 14000


def _integer_token(number: int) -> str:
    if number.bit_length() > _MAX_DECIMAL_BITS:
        return hex(number)
    return str(number)


class QuestionType(str, Enum):
    """
    Question types supported by the questionnaire catalog.
    """

    TEXT = "text"
    SINGLE_CHOICE = "single_choice"
    MULTIPLE_CHOICE = "multiple_choice"
    RATING = "rating"
    YES_NO = "yes_no"
    SCALE = "scale"
    DATE = "date"

    @property
    def is_choice(self) -> bool:
        return self in (QuestionType.SINGLE_CHOICE, QuestionType.MULTIPLE_CHOICE)

    @property
    def is_numeric(self) -> bool:
        return self in (QuestionType.RATING, QuestionType.SCALE)


class QuestionOption(BaseModel):
    """
    A selectable option of a choice question.

    Attributes:
        value: Submitted value identifying this option
        label: Display label
        score: Points contributed when the option is selected
    """

    model_config = ConfigDict(frozen=True)

    value: Union[str, int, float] = Field(..., description="Option value as submitted")
    label: str = Field(default="", description="Display label")
    score: float = Field(default=0.0, description="Points for selecting this option")

    @property
    def token(self) -> str:
        return normalize_token(self.value)


class Question(BaseModel):
    """
    A single questionnaire question with its scoring metadata.

    Attributes:
        id: Identifier, unique within the questionnaire
        type: Question type
        required: Whether a non-empty answer must be present
        options: Ordered options (choice types only)
        scoring_weight: Multiplier applied to the per-question score
        order_num: Presentation and evaluation order
        min_value: Lower bound for rating/scale answers
        max_value: Upper bound for rating/scale answers
        invert: Swap yes/no scoring (yes_no only)
        text_score: Fixed points for a non-empty text answer
    """

    model_config = ConfigDict(frozen=True)

    id: QuestionId = Field(..., description="Question identifier")
    type: QuestionType = Field(..., description="Question type")
    text: str = Field(default="", description="Question text")
    description: Optional[str] = Field(default=None, description="Help text")
    required: bool = Field(default=True, description="Answer is mandatory")
    options: List[QuestionOption] = Field(
        default_factory=list,
        description="Ordered options for choice questions"
    )
    scoring_weight: int = Field(default=1, ge=0, description="Score multiplier")
    order_num: int = Field(default=0, description="Presentation order")
    min_value: Optional[float] = Field(default=None, description="Numeric lower bound")
    max_value: Optional[float] = Field(default=None, description="Numeric upper bound")
    invert: bool = Field(default=False, description="Score 'no' as 1 and 'yes' as 0")
    text_score: Optional[float] = Field(
        default=None,
        description="Constant contributed by a non-empty text answer"
    )

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: QuestionId) -> QuestionId:
        """Ensure the id is not blank."""
        if isinstance(v, str):
            if not v.strip():
                raise ValueError("question id cannot be empty")
            return v.strip()
        return v

    @field_validator("scoring_weight", mode="before")
    @classmethod
    def default_weight(cls, v: Any) -> Any:
        """The catalog stores a NULL weight as 'use the default'."""
        return 1 if v is None else v

    @model_validator(mode="after")
    def check_type_attributes(self) -> "Question":
        if self.type.is_choice:
            if not self.options:
                raise ValueError(f"{self.type.value} question {self.id} declares no options")
            tokens = [option.token for option in self.options]
            if len(set(tokens)) != len(tokens):
                raise ValueError(f"question {self.id} declares duplicate option values")
        elif self.options:
            raise ValueError(f"{self.type.value} question {self.id} cannot declare options")

        if (
            self.min_value is not None
            and self.max_value is not None
            and self.min_value > self.max_value
        ):
            raise ValueError(f"question {self.id}: min_value exceeds max_value")
        return self

    @property
    def key(self) -> str:
        """String-normalized id used to match answers to questions."""
        return normalize_token(self.id)

    def find_option(self, value: Any) -> Optional[QuestionOption]:
        """Return the option whose value matches ``value``, if any."""
        token = normalize_token(value)
        for option in self.options:
            if option.token == token:
                return option
        return None

    def value_range(self, default_min: float, default_max: float) -> tuple:
        """Inclusive numeric bounds, falling back to the given convention."""
        low = self.min_value if self.min_value is not None else default_min
        high = self.max_value if self.max_value is not None else default_max
        return low, high
