"""
memlex chunker -- split long text into bounded, overlapping pieces.

Each piece is stored as its own memory. Breaks prefer paragraph, then
sentence, then word boundaries, and only fall back to a hard cut when none
of those appear in the last 70% of the window.
"""

from typing import List

MAX_CHUNK_CHARS = 2048  # ~512 tokens
MIN_CHUNK_CHARS = 256  # ~64 tokens
OVERLAP_CHARS = 256  # ~64 tokens

# A boundary only counts if it sits past this fraction of the window.
_MIN_BREAK_FRACTION = 0.3

# (separator, how many separator chars stay with the left-hand chunk)
_BREAKS = (("\n\n", 2), (". ", 2), (" ", 1))


def _find_break(segment: str) -> int:
    """Offset within ``segment`` to cut at, or len(segment) for a hard cut."""
    floor = MAX_CHUNK_CHARS * _MIN_BREAK_FRACTION
    for separator, keep in _BREAKS:
        pos = segment.rfind(separator)
        if pos > floor:
            return pos + keep
    return len(segment)


def chunk_text(text: str) -> List[str]:
    """Split text into chunks of at most MAX_CHUNK_CHARS.

    Text that fits in one window is returned whole (trimmed), even when it is
    shorter than MIN_CHUNK_CHARS. Consecutive chunks share up to
    OVERLAP_CHARS of context. A short tail is folded into the previous chunk
    when that keeps it within the size bound.
    """
    trimmed = text.strip()
    if len(trimmed) <= MAX_CHUNK_CHARS:
        return [trimmed]

    chunks: List[str] = []
    start = 0
    total = len(trimmed)

    while start < total:
        end = start + MAX_CHUNK_CHARS

        if end >= total:
            remaining = trimmed[start:].strip()
            if remaining:
                merged_len = len(chunks[-1]) + 1 + len(remaining) if chunks else 0
                if chunks and len(remaining) < MIN_CHUNK_CHARS and merged_len <= MAX_CHUNK_CHARS:
                    chunks[-1] = chunks[-1] + "\n" + remaining
                else:
                    chunks.append(remaining)
            break

        break_at = start + _find_break(trimmed[start:end])
        piece = trimmed[start:break_at].strip()
        if piece:
            chunks.append(piece)

        # Step back for overlap, but never stall.
        start = max(break_at - OVERLAP_CHARS, 0)
        if start <= break_at - MAX_CHUNK_CHARS:
            start = break_at

    return chunks
