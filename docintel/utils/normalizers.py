"""Normalize raw extracted text and generated summaries."""

import re

from docintel.exceptions import InputError

MIN_TEXT_LENGTH = 50

_HORIZONTAL_SPACE = re.compile(r"[ \t\f\v]+")
_EXCESS_BLANK_LINES = re.compile(r"\n\s*\n\s*\n+")
_SPACE_AROUND_NEWLINE = re.compile(r" *\n *")
# ". ." and ".." but not an ellipsis
_DOUBLED_PERIOD = re.compile(r"(?<!\.)\.[ \t]*\.(?!\.)")


def clean_text(text: str, min_chars: int = MIN_TEXT_LENGTH) -> str:
    """Flatten extracted text into one whitespace-normalized string.

    Lines are trimmed, empty lines dropped, and the rest joined by single
    spaces.

    Raises:
        InputError: If ``text`` is not a string or the cleaned result is under ``min_chars``
    """
    if not isinstance(text, str):
        raise InputError("Text is invalid or not a string")

    lines = [line.strip() for line in text.split("\n")]
    cleaned = re.sub(r"\s+", " ", " ".join(line for line in lines if line)).strip()

    if len(cleaned) < min_chars:
        raise InputError(
            f"Document contains insufficient text (minimum {min_chars} characters required). "
            "The document may be mostly images or empty."
        )
    return cleaned


def collapse_whitespace(text: str) -> str:
    """Collapse all whitespace runs to single spaces and drop doubled periods."""
    return _DOUBLED_PERIOD.sub(".", re.sub(r"\s+", " ", text)).strip()


def tidy_summary(text: str) -> str:
    """Whitespace and punctuation cleanup that keeps line structure.

    Runs of spaces collapse to one, at most one blank line separates
    sections, and doubled periods become single ones.
    """
    tidied = _HORIZONTAL_SPACE.sub(" ", text)
    tidied = _SPACE_AROUND_NEWLINE.sub("\n", tidied)
    tidied = _EXCESS_BLANK_LINES.sub("\n\n", tidied)
    tidied = _DOUBLED_PERIOD.sub(".", tidied)
    return tidied.strip()
