"""Tests for word-bounded chunking."""

import pytest

from docintel.exceptions import InputError
from docintel.services.chunker import chunk_text, select_priority_chunks


def words(count: int) -> str:
    return " ".join(f"word{i}" for i in range(count))


class TestChunkText:
    """chunk_text() behaviour."""

    def test_4500_words_make_five_chunks(self):
        """Test that 4500 words at 1000 per chunk give 5 chunks, the last one short."""
        chunks = chunk_text(words(4500), 1000)

        assert len(chunks) == 5
        assert all(chunk.word_count <= 1000 for chunk in chunks)
        assert chunks[-1].word_count == 500
        assert [chunk.index for chunk in chunks] == [0, 1, 2, 3, 4]

    def test_short_text_is_single_chunk(self):
        """Test that 800 words at 1000 per chunk return the whole text unchanged."""
        text = words(400) + "\n\n" + words(400)

        chunks = chunk_text(text, 1000)

        assert len(chunks) == 1
        assert chunks[0].text == text
        assert chunks[0].word_count == 800

    def test_exact_multiple(self):
        """Test that a word count equal to a multiple has no empty trailing chunk."""
        chunks = chunk_text(words(2000), 1000)

        assert [chunk.word_count for chunk in chunks] == [1000, 1000]

    def test_chunks_preserve_word_order(self):
        """Test that joining the chunks reproduces the words in order."""
        text = words(2500)

        chunks = chunk_text(text, 1000)

        assert " ".join(chunk.text for chunk in chunks) == text

    def test_default_chunk_size(self):
        """Test that the default chunk size is 600 words."""
        assert len(chunk_text(words(1201))) == 3

    def test_empty_text_raises(self):
        """Test that empty text is an input error."""
        with pytest.raises(InputError):
            chunk_text("   ")

    def test_invalid_chunk_size_raises(self):
        """Test that a non-positive chunk size is rejected."""
        with pytest.raises(ValueError):
            chunk_text("some words", 0)


class TestSelectPriorityChunks:
    """First, middle and last chunk selection."""

    def test_five_chunks(self):
        """Test that first, floor(n/2) and last are chosen."""
        chunks = chunk_text(words(4500), 1000)

        assert [chunk.index for chunk in select_priority_chunks(chunks)] == [0, 2, 4]

    def test_two_chunks_deduplicated(self):
        """Test that colliding indices are only selected once."""
        chunks = chunk_text(words(1500), 1000)

        assert [chunk.index for chunk in select_priority_chunks(chunks)] == [0, 1]

    def test_single_chunk(self):
        """Test that a single chunk is selected once."""
        chunks = chunk_text(words(10), 1000)

        assert [chunk.index for chunk in select_priority_chunks(chunks)] == [0]

    def test_no_chunks(self):
        """Test that an empty list selects nothing."""
        assert select_priority_chunks([]) == []
