"""memlex tokenizer -- reduce free text to meaningful lowercase terms."""

import re
from typing import List

# Articles, prepositions, conjunctions, pronouns, auxiliaries, question
# words and quantifiers. These carry no retrieval signal.
STOP_WORDS = frozenset({
    "a", "an", "the", "is", "it", "in", "on", "at", "to", "of", "for",
    "and", "or", "not", "with", "this", "that", "was", "are", "be",
    "has", "had", "have", "do", "does", "did", "but", "if", "then",
    "so", "as", "by", "from", "we", "you", "he", "she", "they", "i",
    "my", "your", "our", "its", "no", "yes", "can", "will", "just",
    "how", "what", "when", "where", "who", "which", "why", "all",
    "each", "every", "about", "up", "out", "into", "over", "after",
    "been", "being", "would", "could", "should", "may", "might",
})

_NON_TERM_RE = re.compile(r"[^a-z0-9\s_-]")


def tokenize(text: str) -> List[str]:
    """Lowercase, strip punctuation and drop stopwords and 1-char tokens.

    Order and duplicates are kept. Hyphens and underscores stay inside terms,
    so ``db-auth`` and ``max_retries`` are single terms.
    """
    cleaned = _NON_TERM_RE.sub(" ", text.lower())
    return [t for t in cleaned.split() if len(t) > 1 and t not in STOP_WORDS]
