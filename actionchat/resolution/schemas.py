"""Wire schemas shared by the resolution backends."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class MatchType(str, Enum):
    EXACT = "exact"
    STARTS_WITH = "starts_with"
    ABBREVIATION = "abbreviation"
    CONTAINS = "contains"
    WORD_MATCH = "word_match"
    FUZZY = "fuzzy"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FuzzyMatchResult(_CamelModel):
    id: str
    name: str
    confidence: float = Field(ge=0.0, le=1.0)
    match_type: MatchType
    email: str | None = None
    mobile: str | None = None
    company_name: str | None = None


class ConfidenceThresholdsPayload(_CamelModel):
    high: float = 0.9
    medium: float = 0.7
    low: float = 0.5
    minimum: float = 0.3


class ResolutionResult(_CamelModel):
    matches: list[FuzzyMatchResult] = Field(default_factory=list)
    requires_disambiguation: bool = False
    best_match: FuzzyMatchResult | None = None
    confidence_thresholds: ConfidenceThresholdsPayload | None = None

    @property
    def empty(self) -> bool:
        return not self.matches

    def top(self) -> FuzzyMatchResult | None:
        if self.best_match is not None:
            return self.best_match
        return self.matches[0] if self.matches else None


__all__ = [
    "ConfidenceThresholdsPayload",
    "FuzzyMatchResult",
    "MatchType",
    "ResolutionResult",
]
