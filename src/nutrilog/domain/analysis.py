"""Models for meal analysis results returned by the classifier."""

from dataclasses import dataclass
from enum import StrEnum
from typing import Literal, Self

from pydantic import BaseModel, Field, model_validator

_RANGED_FIELDS = (
    "calories",
    "protein",
    "carbs",
    "fat",
    "sugar",
    "fiber",
    "sodium",
)


class FoodItemEstimate(BaseModel):
    """Single detected food item with nutrient ranges."""

    name: str = Field(min_length=1)
    portion: str
    calories_min: float = Field(ge=0)
    calories_max: float = Field(ge=0)
    protein_min: float = Field(ge=0)
    protein_max: float = Field(ge=0)
    carbs_min: float = Field(ge=0)
    carbs_max: float = Field(ge=0)
    fat_min: float = Field(ge=0)
    fat_max: float = Field(ge=0)
    sugar_min: float = Field(default=0, ge=0)
    sugar_max: float = Field(default=0, ge=0)
    fiber_min: float = Field(default=0, ge=0)
    fiber_max: float = Field(default=0, ge=0)
    sodium_min: float = Field(default=0, ge=0)
    sodium_max: float = Field(default=0, ge=0)

    @model_validator(mode="after")
    def _check_ranges(self) -> Self:
        for name in _RANGED_FIELDS:
            low = getattr(self, f"{name}_min")
            high = getattr(self, f"{name}_max")
            if low > high:
                raise ValueError(f"{name}_min must not exceed {name}_max")
        return self


class MealAnalysis(BaseModel):
    """Structured output of a meal photo analysis."""

    items: list[FoodItemEstimate]
    total_calories_min: float = Field(ge=0)
    total_calories_max: float = Field(ge=0)
    total_protein_min: float = Field(ge=0)
    total_protein_max: float = Field(ge=0)
    confidence: Literal["low", "medium", "high"]
    tips: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_totals(self) -> Self:
        if self.total_calories_min > self.total_calories_max:
            raise ValueError("total_calories_min must not exceed total_calories_max")
        if self.total_protein_min > self.total_protein_max:
            raise ValueError("total_protein_min must not exceed total_protein_max")
        return self


class FailureKind(StrEnum):
    """Why an analysis did not produce a result."""

    TRANSPORT = "transport"
    PARSE = "parse"


@dataclass(frozen=True)
class AnalysisOutcome:
    """Tagged result of a classifier call: a parsed analysis or a failure."""

    analysis: MealAnalysis | None = None
    error: str | None = None
    failure: FailureKind | None = None

    @property
    def ok(self) -> bool:
        return self.analysis is not None

    @classmethod
    def success(cls, analysis: MealAnalysis) -> "AnalysisOutcome":
        return cls(analysis=analysis)

    @classmethod
    def failed(cls, kind: FailureKind, message: str) -> "AnalysisOutcome":
        return cls(error=message, failure=kind)
