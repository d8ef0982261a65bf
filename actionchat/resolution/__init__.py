"""Entity resolution: fuzzy matching, confidence policy and disambiguation."""

from .matching import Candidate, ConfidenceThresholds, LocalEntityMatcher, StaticCandidateDirectory
from .schemas import FuzzyMatchResult, MatchType, ResolutionResult
from .service import DisambiguationRequest, EntityBinding, EntityResolver, confidence_label

__all__ = [
    "Candidate",
    "ConfidenceThresholds",
    "DisambiguationRequest",
    "EntityBinding",
    "EntityResolver",
    "FuzzyMatchResult",
    "LocalEntityMatcher",
    "MatchType",
    "ResolutionResult",
    "StaticCandidateDirectory",
    "confidence_label",
]
