"""Tests for memlex chunker -- bounded, overlapping text splitting."""
from memlex.chunker import MAX_CHUNK_CHARS, MIN_CHUNK_CHARS, OVERLAP_CHARS, chunk_text


class TestShortText:

    def test_short_text_is_one_chunk(self):
        assert chunk_text("  Use WAL mode for the cache db.  ") == ["Use WAL mode for the cache db."]

    def test_text_below_minimum_is_still_one_chunk(self):
        text = "x" * (MIN_CHUNK_CHARS - 1)
        assert chunk_text(text) == [text]

    def test_exactly_max_is_one_chunk(self):
        text = "a" * MAX_CHUNK_CHARS
        assert chunk_text(text) == [text]

    def test_whitespace_only_returns_trimmed(self):
        assert chunk_text("   \n  ") == [""]


class TestLongText:

    def test_word_broken_text_overlaps(self):
        text = "word " * 600  # 3000 chars, no paragraph or sentence breaks
        chunks = chunk_text(text)
        assert len(chunks) >= 2
        assert all(0 < len(c) <= MAX_CHUNK_CHARS for c in chunks)
        first, second = chunks[0], chunks[1]
        trimmed = text.strip()
        # Breaks on the space after the first chunk
        break_at = len(first) + 1
        assert trimmed[len(first)] == " "
        # Overlap window minus the spaces stripped at both ends
        overlap = trimmed[break_at - OVERLAP_CHARS:break_at].strip()
        assert len(overlap) == min(OVERLAP_CHARS, break_at) - 2
        assert second[:len(overlap)] == overlap
        assert first.endswith(overlap)

    def test_prefers_paragraph_break(self):
        para_a = "alpha " * 200  # 1200 chars
        para_b = "beta " * 300  # 1500 chars
        chunks = chunk_text(para_a.strip() + "\n\n" + para_b.strip())
        assert chunks[0] == para_a.strip()

    def test_prefers_sentence_over_word_break(self):
        sentence = "This sentence is about caching. "
        text = sentence * 100  # 3200 chars
        chunks = chunk_text(text)
        assert chunks[0].endswith("caching.")

    def test_hard_cut_without_boundaries(self):
        text = "x" * 5000
        chunks = chunk_text(text)
        assert chunks[0] == "x" * MAX_CHUNK_CHARS
        assert all(len(c) <= MAX_CHUNK_CHARS for c in chunks)
        assert "".join(chunks).count("x") >= 5000

    def test_early_boundary_is_ignored(self):
        # A paragraph break in the first 30% of the window does not count
        text = "intro\n\n" + "y" * 4000
        chunks = chunk_text(text)
        assert len(chunks[0]) == MAX_CHUNK_CHARS

    def test_all_chunks_bounded_and_non_empty(self):
        text = ("Lorem ipsum dolor sit amet. " * 40 + "\n\n") * 12
        chunks = chunk_text(text)
        assert len(chunks) > 1
        for c in chunks:
            assert c
            assert len(c) <= MAX_CHUNK_CHARS
            assert c == c.strip()

    def test_covers_whole_input(self):
        words = [f"w{i}" for i in range(900)]
        chunks = chunk_text(" ".join(words))
        joined = " ".join(chunks)
        for w in (words[0], words[450], words[-1]):
            assert w in joined


class TestTailMerge:

    def test_short_tail_merges_into_previous_chunk(self):
        text = "a" * 1000 + " " * 1100 + "c" * 50
        assert chunk_text(text) == ["a" * 1000 + "\n" + "c" * 50]

    def test_merge_that_would_exceed_bound_emits_separate_chunk(self):
        text = "p" * 1790 + " " * 50 + "p" * 204 + "\n\n" + "s" * 10
        chunks = chunk_text(text)
        assert chunks == [
            "p" * 1790 + " " * 50 + "p" * 204,
            "p" * 204 + "\n\n" + "s" * 10,
        ]
        assert all(len(c) <= MAX_CHUNK_CHARS for c in chunks)
