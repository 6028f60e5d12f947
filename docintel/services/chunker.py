"""Word-bounded chunking for long documents."""

import logging
from typing import List, Sequence

from docintel.exceptions import InputError
from docintel.models.document import Chunk

logger = logging.getLogger(__name__)

DEFAULT_WORDS_PER_CHUNK = 600


def chunk_text(text: str, words_per_chunk: int = DEFAULT_WORDS_PER_CHUNK) -> List[Chunk]:
    """Split ``text`` into ``ceil(word_count / words_per_chunk)`` chunks.

    A text of at most ``words_per_chunk`` words comes back unchanged as a
    single chunk; otherwise words are re-joined with single spaces.

    Raises:
        InputError: If ``text`` is empty
        ValueError: If ``words_per_chunk`` is not positive
    """
    if not text or not text.strip():
        raise InputError("Text is empty")
    if words_per_chunk < 1:
        raise ValueError("words_per_chunk must be positive")

    words = text.split()
    if len(words) <= words_per_chunk:
        return [Chunk(index=0, text=text, word_count=len(words))]

    chunks = [
        Chunk(index=index, text=" ".join(words[start:start + words_per_chunk]),
              word_count=len(words[start:start + words_per_chunk]))
        for index, start in enumerate(range(0, len(words), words_per_chunk))
    ]

    logger.info(f"Split text into {len(chunks)} chunks")
    return chunks


def select_priority_chunks(chunks: Sequence[Chunk]) -> List[Chunk]:
    """Pick the first, middle (``floor(n/2)``) and last chunks, without repeats."""
    if not chunks:
        return []

    selected: List[Chunk] = []
    for index in (0, len(chunks) // 2, len(chunks) - 1):
        chunk = chunks[index]
        if all(existing.index != chunk.index for existing in selected):
            selected.append(chunk)
    return selected
