"""
memlex searcher -- query pipeline from free text to ranked memories.

    tokenize -> expand synonyms -> FTS5 lookup (3x over-fetch)
             -> retry unexpanded if empty -> rank -> min-score filter
             -> top-k -> access-count feedback

A query with no usable terms skips expansion and looks the raw text up as a
single phrase. That path does not apply the min-score filter.
"""

import logging
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from memlex.ranker import DEFAULT_WEIGHTS, RankerWeights, ScoredCandidate, rank_results
from memlex.synonyms import DEFAULT_SYNONYMS, SynonymTable
from memlex.tokenizer import tokenize
from memlex.types import Candidate, MemoryIndex

logger = logging.getLogger("memlex.searcher")

DEFAULT_LIMIT = 5
DEFAULT_MIN_SCORE = 0.1
HOOK_MIN_SCORE = 0.15
OVERFETCH_FACTOR = 3


class SearchStatus(Enum):
    OK = "ok"
    EMPTY = "empty"
    FAILED = "failed"


class SearchOutcome:
    """Results of one search, plus whether an empty result was a failure."""

    __slots__ = ("status", "results", "error")

    def __init__(self, status: SearchStatus, results: Optional[List[Dict[str, Any]]] = None,
                 error: Optional[Exception] = None):
        self.status = status
        self.results = results or []
        self.error = error

    @classmethod
    def empty(cls) -> "SearchOutcome":
        return cls(SearchStatus.EMPTY)

    @classmethod
    def failed(cls, error: Exception) -> "SearchOutcome":
        return cls(SearchStatus.FAILED, error=error)

    def __bool__(self) -> bool:
        return bool(self.results)

    def __repr__(self) -> str:
        return f"SearchOutcome(status={self.status.value}, results={len(self.results)})"


def to_search_result(scored: ScoredCandidate) -> Dict[str, Any]:
    memory = scored.memory
    return {
        "id": memory.id,
        "content": memory.content,
        "tags": list(memory.tags),
        "score": round(scored.final_score, 3),
        "created_at": memory.created_at,
        "source": memory.source,
    }


def _quote_phrase(text: str) -> str:
    return '"' + text.replace('"', '""') + '"'


class Searcher:
    """Runs searches against a MemoryIndex."""

    def __init__(
        self,
        index: MemoryIndex,
        synonyms: SynonymTable = DEFAULT_SYNONYMS,
        weights: RankerWeights = DEFAULT_WEIGHTS,
    ):
        self.index = index
        self.synonyms = synonyms
        self.weights = weights

    def search(
        self,
        query: str,
        tags: Optional[Iterable[str]] = None,
        limit: int = DEFAULT_LIMIT,
        min_score: float = DEFAULT_MIN_SCORE,
        project: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """Return up to ``limit`` result dicts, best first. Never raises on store failure."""
        return self.run(query, tags=tags, limit=limit, min_score=min_score, project=project).results

    def run(
        self,
        query: str,
        tags: Optional[Iterable[str]] = None,
        limit: int = DEFAULT_LIMIT,
        min_score: float = DEFAULT_MIN_SCORE,
        project: Optional[str] = None,
    ) -> SearchOutcome:
        tags = list(tags or [])
        if limit < 1:
            return SearchOutcome.empty()

        terms = tokenize(query)
        if not terms:
            return self._fallback_search(query, tags, limit, project)

        expression = self.synonyms.build_match_expression(terms)
        overfetch = limit * OVERFETCH_FACTOR
        try:
            candidates = self.index.search_by_expression(expression, overfetch)
            if not candidates:
                logger.debug("No hits for expanded query %r, retrying unexpanded", expression)
                unexpanded = " OR ".join(_quote_phrase(t) for t in terms)
                candidates = self.index.search_by_expression(unexpanded, overfetch)
            if not candidates:
                return SearchOutcome.empty()
            max_access = self.index.max_access_count()
            ranked = rank_results(candidates, tags, max_access, project, self.weights)
        except Exception as e:
            logger.warning("Search failed, returning no memories: %s", e)
            return SearchOutcome.failed(e)

        survivors = [r for r in ranked if r.final_score >= min_score][:limit]
        return self._finish(survivors)

    def _fallback_search(
        self, query: str, tags: List[str], limit: int, project: Optional[str]
    ) -> SearchOutcome:
        """Match the raw query as one phrase. No expansion, no min-score filter."""
        try:
            candidates: List[Candidate] = self.index.search_by_expression(_quote_phrase(query), limit)
            if not candidates:
                return SearchOutcome.empty()
            max_access = self.index.max_access_count()
            ranked = rank_results(candidates, tags, max_access, project, self.weights)
        except Exception as e:
            logger.warning("Phrase fallback failed for %r: %s", query, e)
            return SearchOutcome.failed(e)

        return self._finish(ranked[:limit])

    def _finish(self, survivors: List[ScoredCandidate]) -> SearchOutcome:
        if not survivors:
            return SearchOutcome.empty()
        for scored in survivors:
            self._record_access(scored.memory.id)
        return SearchOutcome(SearchStatus.OK, [to_search_result(s) for s in survivors])

    def _record_access(self, memory_id: int) -> None:
        """Best-effort feedback; the counter is only an approximate signal."""
        try:
            self.index.increment_access_count(memory_id)
        except Exception as e:
            logger.warning("Access count update failed for memory %s: %s", memory_id, e)
