"""Entity resolution and disambiguation used by action cards."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol

from ..clients.base import CollaboratorError
from ..conversations.models import EntityKind
from .matching import ConfidenceThresholds
from .schemas import FuzzyMatchResult, ResolutionResult

logger = logging.getLogger(__name__)


class ResolutionBackend(Protocol):
    async def resolve(
        self,
        name: str,
        kind: EntityKind,
        *,
        company: str | None = None,
        require_contact: str | None = None,
    ) -> ResolutionResult: ...


def confidence_label(confidence: float) -> str:
    """Human label for a confidence in ``[0, 1]``."""

    if confidence >= 0.9:
        return "High match"
    if confidence >= 0.7:
        return "Good match"
    if confidence >= 0.5:
        return "Partial match"
    return "Low match"


@dataclass
class DisambiguationRequest:
    """A pick-list shown when a name matches several records too closely."""

    entity_type: EntityKind
    search_term: str
    matches: list[FuzzyMatchResult]
    on_select: Callable[[FuzzyMatchResult], None]
    on_cancel: Callable[[], None]
    requires_disambiguation: bool = True

    def __post_init__(self) -> None:
        if not self.matches:
            raise ValueError("A disambiguation request needs at least one candidate")

    def options(self) -> list[dict[str, object]]:
        return [
            {
                "id": match.id,
                "name": match.name,
                "confidence": match.confidence,
                "label": confidence_label(match.confidence),
                "matchType": match.match_type.value,
                "email": match.email,
            }
            for match in self.matches
        ]

    def select(self, candidate_id: str) -> FuzzyMatchResult:
        for match in self.matches:
            if match.id == candidate_id:
                self.on_select(match)
                return match
        raise LookupError(f"Candidate {candidate_id} is not among the offered matches")

    def cancel(self) -> None:
        self.on_cancel()


@dataclass
class EntityBinding:
    """Best-effort link between a name in a function call and a concrete record."""

    kind: EntityKind
    search_term: str | None
    match: FuzzyMatchResult | None = None
    candidates: list[FuzzyMatchResult] = field(default_factory=list)
    requires_disambiguation: bool = False
    fallback: bool = False

    @property
    def bound(self) -> bool:
        return self.match is not None

    @property
    def ambiguous(self) -> bool:
        return self.match is None and self.requires_disambiguation and bool(self.candidates)

    @property
    def not_found(self) -> bool:
        return bool(self.search_term) and self.match is None and not self.candidates

    @property
    def match_id(self) -> str | None:
        return self.match.id if self.match is not None else None

    def bind(self, match: FuzzyMatchResult, *, fallback: bool = False) -> None:
        self.match = match
        self.requires_disambiguation = False
        self.fallback = fallback

    def clear(self) -> None:
        self.match = None
        self.candidates = []
        self.requires_disambiguation = False
        self.fallback = False

    def describe(self) -> dict[str, object]:
        return {
            "kind": self.kind.value,
            "searchTerm": self.search_term,
            "match": self.match.model_dump(by_alias=True, exclude_none=True) if self.match else None,
            "matchLabel": confidence_label(self.match.confidence) if self.match else None,
            "requiresDisambiguation": self.ambiguous,
            "notFound": self.not_found,
            "fallback": self.fallback,
        }


class EntityResolver:
    """Single entry point for turning names into records."""

    def __init__(self, backend: ResolutionBackend, *, thresholds: ConfidenceThresholds | None = None) -> None:
        self._backend = backend
        self.thresholds = thresholds or ConfidenceThresholds()

    async def resolve(
        self,
        name: str,
        kind: EntityKind,
        *,
        company: str | None = None,
        require_contact: str | None = None,
    ) -> ResolutionResult:
        """Return the backend's candidates as ranked; collaborator failures degrade to an empty result.

        Matches, the disambiguation flag and the best match are passed through
        untouched. The backend owns the confidence policy; ``thresholds`` only
        fills in the payload when the backend leaves it out.
        """

        term = name.strip()
        if not term:
            return ResolutionResult()
        try:
            result = await self._backend.resolve(
                term, kind, company=company, require_contact=require_contact
            )
        except CollaboratorError as exc:
            logger.warning("Resolving %s %r failed: %s", kind.value, term, exc)
            return ResolutionResult()
        if result.confidence_thresholds is None:
            result = result.model_copy(update={"confidence_thresholds": self.thresholds.to_payload()})
        return result

    async def bind(
        self,
        name: str | None,
        kind: EntityKind,
        *,
        company: str | None = None,
        require_contact: str | None = None,
    ) -> EntityBinding:
        binding = EntityBinding(kind=kind, search_term=name)
        if not name:
            return binding
        result = await self.resolve(name, kind, company=company, require_contact=require_contact)
        binding.candidates = list(result.matches)
        if result.requires_disambiguation:
            binding.requires_disambiguation = True
        elif result.matches:
            binding.match = result.top()
        return binding


__all__ = [
    "DisambiguationRequest",
    "EntityBinding",
    "EntityResolver",
    "ResolutionBackend",
    "confidence_label",
]
