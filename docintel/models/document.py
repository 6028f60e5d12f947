"""Pydantic models for pipeline input: the document and its chunks."""

from pydantic import BaseModel, ConfigDict, Field, computed_field

from docintel.exceptions import InputError

# Minimum characters of cleaned text accepted from the extraction collaborator
MIN_INPUT_CHARS = 50


class Document(BaseModel):
    """Immutable document text handed to the pipeline."""

    model_config = ConfigDict(frozen=True)

    text: str = Field(min_length=1, description="Cleaned, non-empty document text")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def word_count(self) -> int:
        return len(self.text.split())

    @classmethod
    def from_text(cls, text: str, min_chars: int = MIN_INPUT_CHARS) -> "Document":
        """Validate collaborator-supplied text and wrap it.

        Raises:
            InputError: If the text is empty, not a string, or shorter than ``min_chars``
        """
        if not isinstance(text, str) or not text.strip():
            raise InputError("Document text is empty or invalid")

        stripped = text.strip()
        if len(stripped) < min_chars:
            raise InputError(
                f"Document contains insufficient text (minimum {min_chars} characters required)"
            )
        return cls(text=stripped)


class Chunk(BaseModel):
    """A contiguous, word-bounded slice of a document."""

    model_config = ConfigDict(frozen=True)

    index: int = Field(ge=0, description="Position of the chunk in the document")
    text: str = Field(description="Chunk text, words joined by single spaces")
    word_count: int = Field(ge=0)
