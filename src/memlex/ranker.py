"""
memlex ranker -- multi-signal re-ranking of full-text candidates.

    score = w_lexical   * bm25_norm
          + w_recency   * exp(-lambda * age_days)
          + w_frequency * ln(1 + access) / ln(1 + max_access)
          + w_tags      * jaccard(query_tags, memory_tags)
          + w_project   * (source == project)

Every signal is in [0, 1] except recency for memories dated in the future,
which is allowed to exceed 1.
"""

import math
import time
from typing import Iterable, List, NamedTuple, Optional, Set

from memlex.types import Candidate, Memory

# With 0.01, a 30-day-old memory keeps e^-0.3 ~= 0.741 of its recency signal.
RECENCY_LAMBDA = 0.01
SECONDS_PER_DAY = 86400


class RankerWeights(NamedTuple):
    """Signal weights. They need not sum to 1."""

    lexical: float = 0.55
    recency: float = 0.15
    frequency: float = 0.05
    tags: float = 0.15
    project: float = 0.10


DEFAULT_WEIGHTS = RankerWeights()


class ScoredCandidate:
    """A candidate with its fused score and the signals that produced it."""

    __slots__ = ("candidate", "final_score", "signals")

    def __init__(self, candidate: Candidate, final_score: float, signals: dict):
        self.candidate = candidate
        self.final_score = final_score
        self.signals = signals

    @property
    def memory(self) -> Memory:
        return self.candidate.memory

    def __repr__(self) -> str:
        return f"ScoredCandidate(id={self.memory.id}, final_score={self.final_score:.3f})"


def recency_score(created_at: float, now: float) -> float:
    age_days = (now - created_at) / SECONDS_PER_DAY
    return math.exp(-RECENCY_LAMBDA * age_days)


def frequency_score(access_count: int, max_access_count: int) -> float:
    """Log-scaled access count relative to the most-accessed memory in the store."""
    if max_access_count <= 0:
        return 0.0
    return math.log1p(access_count) / math.log1p(max_access_count)


def tag_jaccard(query_tags: Set[str], memory_tags: Iterable[str]) -> float:
    if not query_tags:
        return 0.0
    doc_tags = {t.lower() for t in memory_tags}
    if not doc_tags:
        return 0.0
    union = query_tags | doc_tags
    return len(query_tags & doc_tags) / len(union)


def project_match(project: Optional[str], source: Optional[str]) -> float:
    if not project or not source:
        return 0.0
    return 1.0 if source.lower() == project.lower() else 0.0


def rank_results(
    candidates: List[Candidate],
    query_tags: Optional[Iterable[str]],
    max_access_count: int,
    project: Optional[str] = None,
    weights: RankerWeights = DEFAULT_WEIGHTS,
    now: Optional[float] = None,
) -> List[ScoredCandidate]:
    """Score and sort candidates, best first.

    Lexical scores are normalized within this batch only: the best (lowest)
    raw score maps to 1.0 and the worst to 0.0. A batch whose raw scores are
    all equal gets 1.0 across the board. Ties keep the store's order.
    """
    if not candidates:
        return []

    now = time.time() if now is None else now
    query_set = {t.lower() for t in (query_tags or [])}

    raw_scores = [c.lexical_score if c.lexical_score is not None else 0.0 for c in candidates]
    best = min(raw_scores)
    worst = max(raw_scores)
    spread = worst - best

    scored = []
    for candidate, raw in zip(candidates, raw_scores):
        memory = candidate.memory
        signals = {
            "lexical": (worst - raw) / spread if spread != 0 else 1.0,
            "recency": recency_score(memory.created_at, now),
            "frequency": frequency_score(memory.access_count, max_access_count),
            "tags": tag_jaccard(query_set, memory.tags),
            "project": project_match(project, memory.source),
        }
        final_score = (
            weights.lexical * signals["lexical"]
            + weights.recency * signals["recency"]
            + weights.frequency * signals["frequency"]
            + weights.tags * signals["tags"]
            + weights.project * signals["project"]
        )
        scored.append(ScoredCandidate(candidate, final_score, signals))

    # sorted() is stable, so equal scores keep index order
    return sorted(scored, key=lambda s: s.final_score, reverse=True)
