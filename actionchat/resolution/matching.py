"""In-process fuzzy matching against cached candidate lists.

Clients and task types are matched by display name; staff users and people by
first/last/full name.  Contacts addressed for email or SMS use a weighted
scorer that understands ``"Mark from Monkey Access"`` and boosts candidates
whose company matches a suggested client name.  Projects are matched on
"client - project type" with a boost when the client name itself is named.
"""

from __future__ import annotations

import logging
import re
import time
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Protocol

from ..conversations.models import EntityKind
from .schemas import ConfidenceThresholdsPayload, FuzzyMatchResult, MatchType, ResolutionResult

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 5
# An exact full-name hit scores 70; a named company can add up to 55 on top.
CERTAIN_CONTACT_SCORE = 70.0
CERTAIN_COMPANY_SCORE = 55.0
_FROM_PATTERN = re.compile(r"^(.+?)\s+from\s+(.+)$", re.IGNORECASE)


@dataclass(frozen=True)
class ConfidenceThresholds:
    """Policy deciding when a ranked candidate list needs a human pick."""

    high: float = 0.9
    medium: float = 0.7
    low: float = 0.5
    minimum: float = 0.3
    clear_lead: float = 0.2
    tie_margin: float = 0.1

    @classmethod
    def from_payload(cls, payload: ConfidenceThresholdsPayload | None) -> ConfidenceThresholds | None:
        if payload is None:
            return None
        return cls(high=payload.high, medium=payload.medium, low=payload.low, minimum=payload.minimum)

    def to_payload(self) -> ConfidenceThresholdsPayload:
        return ConfidenceThresholdsPayload(
            high=self.high, medium=self.medium, low=self.low, minimum=self.minimum
        )

    def needs_disambiguation(self, matches: Sequence[FuzzyMatchResult]) -> bool:
        if not matches:
            return False
        top = matches[0].confidence
        if len(matches) == 1 and top >= self.high:
            return False
        if len(matches) >= 2:
            gap = top - matches[1].confidence
            if top >= self.high and gap > self.clear_lead:
                return False
            if gap < self.tie_margin:
                return True
        return top < self.medium


@dataclass(frozen=True)
class Candidate:
    """A record the assistant can bind to; people and staff carry name parts."""

    id: str
    name: str
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    mobile: str | None = None
    company_id: str | None = None
    company_name: str | None = None

    @property
    def full_name(self) -> str:
        full = f"{self.first_name or ''} {self.last_name or ''}".strip()
        return full or self.name


# ------------------------------------------------------------------
# String helpers
# ------------------------------------------------------------------


def levenshtein_distance(left: str, right: str) -> int:
    if not left:
        return len(right)
    if not right:
        return len(left)
    previous = list(range(len(right) + 1))
    for i, left_char in enumerate(left, start=1):
        current = [i]
        for j, right_char in enumerate(right, start=1):
            cost = 0 if left_char == right_char else 1
            current.append(min(previous[j] + 1, current[j - 1] + 1, previous[j - 1] + cost))
        previous = current
    return previous[-1]


def similarity(left: str, right: str) -> float:
    longest = max(len(left), len(right))
    if longest == 0:
        return 1.0
    return 1.0 - levenshtein_distance(left, right) / longest


def matches_abbreviation(term: str, name: str) -> bool:
    """``"ABC"`` matches ``"ABC Limited"`` as a leading word or ``"Alpha Beta Co"`` by initials."""

    term_upper = term.strip().upper()
    words = name.upper().split()
    if not term_upper or not words:
        return False
    if words[0] == term_upper:
        return True
    if len(term_upper) <= 5:
        initials = "".join(word[0] for word in words)
        return initials.startswith(term_upper)
    return False


def _ranked(results: Iterable[FuzzyMatchResult], limit: int) -> list[FuzzyMatchResult]:
    return sorted(results, key=lambda match: match.confidence, reverse=True)[:limit]


# ------------------------------------------------------------------
# Per-kind scorers
# ------------------------------------------------------------------


def _score_named(term: str, name: str) -> tuple[float, MatchType] | None:
    search = term.lower().strip()
    target = name.lower()
    if not search or not target:
        return None
    if target == search:
        return 1.0, MatchType.EXACT
    if matches_abbreviation(term, name):
        return 0.95, MatchType.ABBREVIATION
    if target.startswith(search):
        return 0.9, MatchType.STARTS_WITH
    if re.search(rf"\b{re.escape(search)}\b", target):
        return 0.8, MatchType.WORD_MATCH
    if search in target:
        return 0.7, MatchType.CONTAINS
    words = target.split()
    if any(word.startswith(search) for word in words):
        return 0.65, MatchType.WORD_MATCH
    if len(search) >= 3:
        best = max(
            [similarity(search, target)] + [similarity(search, word) for word in words if len(word) >= 3]
        )
        if best > 0.7:
            return best * 0.6, MatchType.FUZZY
    return None


def match_named(term: str, candidates: Iterable[Candidate], limit: int = DEFAULT_LIMIT) -> list[FuzzyMatchResult]:
    """Rank clients (or any name-only records such as task types) against ``term``."""

    results = []
    for candidate in candidates:
        scored = _score_named(term, candidate.name)
        if scored is None:
            continue
        confidence, match_type = scored
        results.append(
            FuzzyMatchResult(
                id=candidate.id,
                name=candidate.name or "Unknown",
                confidence=confidence,
                match_type=match_type,
                email=candidate.email,
            )
        )
    return _ranked(results, limit)


# Confidence tables for person-like records: staff users rank a first-name hit
# above a last-name hit, contacts treat them alike.
_STAFF_SCORES = {"first": 0.95, "last": 0.9, "part_prefix": 0.8}
_PEOPLE_SCORES = {"first": 0.9, "last": 0.9, "part_prefix": 0.75}


def _score_person(term: str, candidate: Candidate, table: dict[str, float]) -> tuple[float, MatchType] | None:
    search = term.lower().strip()
    first = (candidate.first_name or "").lower()
    last = (candidate.last_name or "").lower()
    full = candidate.full_name.lower()
    if not search:
        return None
    if full == search:
        return 1.0, MatchType.EXACT
    if first and first == search:
        return table["first"], MatchType.EXACT
    if last and last == search:
        return table["last"], MatchType.EXACT
    if full.startswith(search):
        return 0.85, MatchType.STARTS_WITH
    if (first and first.startswith(search)) or (last and last.startswith(search)):
        return table["part_prefix"], MatchType.STARTS_WITH
    if search in full:
        return 0.6, MatchType.CONTAINS
    if len(search) >= 3:
        best = max(
            similarity(search, first) if len(first) >= 3 else 0.0,
            similarity(search, last) if len(last) >= 3 else 0.0,
            similarity(search, full),
        )
        if best > 0.7:
            return best * 0.5, MatchType.FUZZY
    return None


def _match_person_like(
    term: str,
    candidates: Iterable[Candidate],
    table: dict[str, float],
    limit: int,
) -> list[FuzzyMatchResult]:
    results = []
    for candidate in candidates:
        scored = _score_person(term, candidate, table)
        if scored is None:
            continue
        confidence, match_type = scored
        results.append(
            FuzzyMatchResult(
                id=candidate.id,
                name=candidate.full_name or candidate.email or "Unknown",
                confidence=confidence,
                match_type=match_type,
                email=candidate.email,
                mobile=candidate.mobile,
                company_name=candidate.company_name,
            )
        )
    return _ranked(results, limit)


def match_staff(term: str, candidates: Iterable[Candidate], limit: int = DEFAULT_LIMIT) -> list[FuzzyMatchResult]:
    return _match_person_like(term, candidates, _STAFF_SCORES, limit)


def match_people(term: str, candidates: Iterable[Candidate], limit: int = DEFAULT_LIMIT) -> list[FuzzyMatchResult]:
    return _match_person_like(term, candidates, _PEOPLE_SCORES, limit)


# ------------------------------------------------------------------
# Projects
# ------------------------------------------------------------------

# Work types that commonly appear in a spoken project reference.
PROJECT_TYPE_WORDS = ("vat", "bookkeeping", "payroll", "accounts", "tax", "annual")


def _score_project(term: str, candidate: Candidate) -> tuple[float, MatchType] | None:
    search = term.lower().strip()
    words = [word for word in search.split() if len(word) >= 2]
    client = (candidate.company_name or "").lower()
    text = candidate.name.lower()
    if not search:
        return None

    if search in text:
        confidence, match_type = 0.95, MatchType.CONTAINS
    elif words and all(word in text for word in words):
        confidence, match_type = 0.85, MatchType.WORD_MATCH
    else:
        hits = 0.0
        for word in words:
            if word in text:
                hits += 1
            elif similarity(word, client) > 0.7 or any(similarity(word, part) > 0.7 for part in text.split()):
                hits += 0.5
        if not hits:
            return None
        confidence, match_type = hits / len(words) * 0.7, MatchType.FUZZY

    if client and (search in client or client in search):
        confidence = min(1.0, confidence + 0.15)
    if any(word in search and word in text for word in PROJECT_TYPE_WORDS):
        confidence = min(1.0, confidence + 0.1)
    return confidence, match_type


def match_projects(term: str, candidates: Iterable[Candidate], limit: int = DEFAULT_LIMIT) -> list[FuzzyMatchResult]:
    """Rank projects by client name, project type and description."""

    results = []
    for candidate in candidates:
        scored = _score_project(term, candidate)
        if scored is None:
            continue
        confidence, match_type = scored
        results.append(
            FuzzyMatchResult(
                id=candidate.id,
                name=candidate.name,
                confidence=confidence,
                match_type=match_type,
                company_name=candidate.company_name,
            )
        )
    return _ranked(results, limit)


# ------------------------------------------------------------------
# Contact matching with company context
# ------------------------------------------------------------------


def fuzzy_score(needle: str, haystack: str) -> float:
    needle = needle.lower().strip()
    haystack = haystack.lower().strip()
    if not needle or not haystack:
        return 0.0
    if needle == haystack:
        return 1.0
    if needle in haystack:
        return 0.8 + 0.2 * len(needle) / len(haystack)
    if haystack in needle:
        return 0.7
    haystack_words = haystack.split()
    needle_words = needle.split()
    hits = sum(
        1 for word in needle_words if any(word in other or other in word for other in haystack_words)
    )
    if hits:
        return 0.5 + 0.3 * hits / len(needle_words)
    distance = levenshtein_distance(needle, haystack)
    longest = max(len(needle), len(haystack))
    if distance <= longest * 0.3:
        return 0.3 * (1 - distance / longest)
    return 0.0


@dataclass(frozen=True)
class ContactScore:
    person: float = 0.0
    company: float = 0.0
    exact_bonus: float = 0.0
    from_pattern_bonus: float = 0.0

    @property
    def total(self) -> float:
        return (
            self.person
            + self.company
            + self.exact_bonus
            + self.from_pattern_bonus
        )


@dataclass(frozen=True)
class ContactMatch:
    candidate: Candidate
    score: ContactScore = field(default_factory=ContactScore)
    person_similarity: float = 0.0
    certain_score: float = CERTAIN_CONTACT_SCORE

    @property
    def confidence(self) -> float:
        return min(self.score.total / self.certain_score, 1.0)

    @property
    def match_type(self) -> MatchType:
        if self.score.exact_bonus:
            return MatchType.EXACT
        if self.person_similarity >= 0.8:
            return MatchType.CONTAINS
        if self.person_similarity >= 0.5:
            return MatchType.WORD_MATCH
        return MatchType.FUZZY

    def to_result(self) -> FuzzyMatchResult:
        return FuzzyMatchResult(
            id=self.candidate.id,
            name=self.candidate.full_name,
            confidence=self.confidence,
            match_type=self.match_type,
            email=self.candidate.email,
            mobile=self.candidate.mobile,
            company_name=self.candidate.company_name,
        )


def parse_contact_query(query: str) -> tuple[str, str | None]:
    """Split ``"mark from monkey access"`` into person and company terms."""

    found = _FROM_PATTERN.match(query.strip())
    if found:
        return found.group(1).strip().lower(), found.group(2).strip().lower()
    return query.strip().lower(), None


def match_contacts(
    term: str,
    candidates: Iterable[Candidate],
    *,
    company: str | None = None,
    require_email: bool = False,
    require_mobile: bool = False,
    min_score: float = 10.0,
    limit: int = 10,
) -> list[ContactMatch]:
    query = f"{term} from {company}" if company else term
    person_term, company_term = parse_contact_query(query)

    certain = CERTAIN_CONTACT_SCORE + (CERTAIN_COMPANY_SCORE if company_term is not None else 0.0)
    results: list[ContactMatch] = []
    for candidate in candidates:
        if require_email and not candidate.email:
            continue
        if require_mobile and not candidate.mobile:
            continue

        first = (candidate.first_name or "").lower().strip()
        last = (candidate.last_name or "").lower().strip()
        full = f"{first} {last}".strip()
        reverse = f"{last} {first}".strip()
        company_name = (candidate.company_name or "").lower()

        exact_bonus = 0.0
        if person_term in {first, last} - {""}:
            person_score, exact_bonus, person_similarity = 50.0, 10.0, 1.0
        elif person_term in {full, reverse}:
            person_score, exact_bonus, person_similarity = 55.0, 15.0, 1.0
        else:
            first_score = fuzzy_score(person_term, first)
            last_score = fuzzy_score(person_term, last)
            full_score = fuzzy_score(person_term, full)
            person_score = max(first_score * 40, last_score * 40, full_score * 50)
            person_similarity = max(first_score, last_score, full_score)

        company_score = 0.0
        from_bonus = 0.0
        if company_term is not None:
            from_bonus = 5.0
            if company_name and company_name == company_term:
                company_score = 40.0
                exact_bonus += 10.0
            else:
                company_score = fuzzy_score(company_term, company_name) * 35

        score = ContactScore(
            person=person_score,
            company=company_score,
            exact_bonus=exact_bonus,
            from_pattern_bonus=from_bonus,
        )
        if score.total >= min_score:
            results.append(
                ContactMatch(
                    candidate=candidate,
                    score=score,
                    person_similarity=person_similarity,
                    certain_score=certain,
                )
            )

    results.sort(key=lambda match: match.score.total, reverse=True)
    return results[:limit]


# ------------------------------------------------------------------
# Local resolution backend
# ------------------------------------------------------------------


class CandidateDirectory(Protocol):
    async def list_candidates(self, kind: EntityKind) -> list[Candidate]: ...


class StaticCandidateDirectory:
    """Fixed candidate lists, used for development and tests."""

    def __init__(
        self,
        *,
        clients: Iterable[Candidate] = (),
        staff: Iterable[Candidate] = (),
        people: Iterable[Candidate] = (),
        task_types: Iterable[Candidate] = (),
        projects: Iterable[Candidate] = (),
    ) -> None:
        self._lists = {
            EntityKind.CLIENT: list(clients),
            EntityKind.USER: list(staff),
            EntityKind.PERSON: list(people),
            EntityKind.TASK_TYPE: list(task_types),
            EntityKind.PROJECT: list(projects),
        }

    async def list_candidates(self, kind: EntityKind) -> list[Candidate]:
        return list(self._lists.get(kind, []))


class LocalEntityMatcher:
    """Resolution backend that ranks cached candidate lists in-process."""

    def __init__(
        self,
        directory: CandidateDirectory,
        *,
        thresholds: ConfidenceThresholds | None = None,
        cache_ttl: float = 300.0,
        limit: int = DEFAULT_LIMIT,
    ) -> None:
        self._directory = directory
        self._thresholds = thresholds or ConfidenceThresholds()
        self._cache_ttl = cache_ttl
        self._limit = limit
        self._cache: dict[EntityKind, tuple[float, list[Candidate]]] = {}

    async def candidates(self, kind: EntityKind) -> list[Candidate]:
        cached = self._cache.get(kind)
        now = time.monotonic()
        if cached is not None and now - cached[0] < self._cache_ttl:
            return cached[1]
        items = await self._directory.list_candidates(kind)
        logger.debug("Loaded %d %s candidates", len(items), kind.value)
        self._cache[kind] = (now, items)
        return items

    def invalidate(self, kind: EntityKind | None = None) -> None:
        if kind is None:
            self._cache.clear()
        else:
            self._cache.pop(kind, None)

    async def resolve(
        self,
        name: str,
        kind: EntityKind,
        *,
        company: str | None = None,
        require_contact: str | None = None,
    ) -> ResolutionResult:
        candidates = await self.candidates(kind)
        if kind is EntityKind.PERSON and (company or require_contact or " from " in f" {name.lower()} "):
            contacts = match_contacts(
                name,
                candidates,
                company=company,
                require_email=require_contact == "email",
                require_mobile=require_contact == "mobile",
                limit=self._limit,
            )
            matches = [contact.to_result() for contact in contacts]
        elif kind is EntityKind.PERSON:
            matches = match_people(name, candidates, self._limit)
        elif kind is EntityKind.USER:
            matches = match_staff(name, candidates, self._limit)
        elif kind is EntityKind.PROJECT:
            matches = match_projects(name, candidates, self._limit)
        else:
            matches = match_named(name, candidates, self._limit)

        matches = [match for match in matches if match.confidence >= self._thresholds.minimum]
        return ResolutionResult(
            matches=matches,
            requires_disambiguation=self._thresholds.needs_disambiguation(matches),
            best_match=matches[0] if matches else None,
            confidence_thresholds=self._thresholds.to_payload(),
        )


__all__ = [
    "Candidate",
    "CandidateDirectory",
    "ConfidenceThresholds",
    "ContactMatch",
    "ContactScore",
    "LocalEntityMatcher",
    "StaticCandidateDirectory",
    "fuzzy_score",
    "levenshtein_distance",
    "match_contacts",
    "match_named",
    "match_people",
    "match_projects",
    "match_staff",
    "matches_abbreviation",
    "parse_contact_query",
    "similarity",
]
