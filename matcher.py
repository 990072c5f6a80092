import string
import logging
from dataclasses import dataclass
from typing import List, NamedTuple, Optional
from thefuzz import fuzz
from models import Task

logger = logging.getLogger(__name__)


class Suggestion(NamedTuple):
    index: int
    description: str
    score: float


@dataclass(frozen=True)
class MatchResult:
    index: Optional[int] = None
    suggestion: Optional[Suggestion] = None
    is_index: bool = False

    @property
    def resolved(self) -> bool:
        return self.index is not None

    @property
    def fuzzy(self) -> bool:
        """Resolved through an approximate match rather than equality."""
        return self.resolved and self.suggestion is not None


def similarity(a: str, b: str) -> float:
    """Case-insensitive similarity in 0..1."""
    return fuzz.ratio(a.lower(), b.lower()) / 100


def looks_like_index(query: str) -> bool:
    body = query[1:] if query.startswith("-") else query
    return all(c in string.digits for c in body)


def find_by_index(tasks: List[Task], query: str) -> MatchResult:
    # Negative-looking tokens are routed here but never parse as a position.
    if not query or not all(c in string.digits for c in query):
        return MatchResult(is_index=True)
    index = int(query)
    if index < len(tasks):
        return MatchResult(index=index, is_index=True)
    return MatchResult(is_index=True)


def find_by_name(tasks: List[Task], query: str, threshold: float, strict: bool) -> MatchResult:
    """
    Exact case-insensitive equality wins outright. Otherwise the best-scoring
    description is considered:
    - strict: scores strictly above threshold are only suggested, never resolved
    - non-strict: the first best score at or above threshold is resolved
    """
    query_lower = query.lower()
    for i, task in enumerate(tasks):
        if task.description.lower() == query_lower:
            return MatchResult(index=i)

    best_index = None
    best_score = 0.0
    for i, task in enumerate(tasks):
        score = similarity(task.description, query)
        passes = score > threshold if strict else score >= threshold
        if passes and score > best_score:
            best_index = i
            best_score = score

    if best_index is None:
        logger.debug("No candidate for %r (threshold=%.2f strict=%s)", query, threshold, strict)
        return MatchResult()

    suggestion = Suggestion(best_index, tasks[best_index].description, best_score)
    logger.debug("Best candidate for %r: %r (%.3f, strict=%s)", query, suggestion.description, best_score, strict)
    if strict:
        return MatchResult(suggestion=suggestion)
    return MatchResult(index=best_index, suggestion=suggestion)


def find_task(tasks: List[Task], query: str, threshold: float, strict: bool) -> MatchResult:
    if looks_like_index(query):
        return find_by_index(tasks, query)
    return find_by_name(tasks, query, threshold, strict)
