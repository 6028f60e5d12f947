"""Pydantic model for a multiple-choice question.

Validation runs on every construction, so an MCQ that escapes this module
always has a question, four distinct non-empty options and an answer that is
one of them.
"""

from typing import List

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

OPTION_COUNT = 4


class MCQ(BaseModel):
    """A single multiple-choice question."""

    model_config = ConfigDict(frozen=True)

    question: str = Field(description="Question stem")
    options: List[str] = Field(description="Exactly four answer options")
    answer: str = Field(description="The correct option, verbatim")

    @field_validator("question")
    @classmethod
    def validate_question(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("question must be a non-empty string")
        return v.strip()

    @field_validator("options")
    @classmethod
    def validate_options(cls, v: List[str]) -> List[str]:
        if len(v) != OPTION_COUNT:
            raise ValueError(f"options must contain exactly {OPTION_COUNT} entries (got {len(v)})")

        cleaned = [option.strip() for option in v]
        if any(not option for option in cleaned):
            raise ValueError("options must be non-empty strings")
        if len(set(cleaned)) != len(cleaned):
            raise ValueError("options must not contain duplicates")
        return cleaned

    @field_validator("answer")
    @classmethod
    def strip_answer(cls, v: str) -> str:
        return v.strip()

    @model_validator(mode="after")
    def validate_answer(self) -> "MCQ":
        if self.answer not in self.options:
            raise ValueError("answer must equal one of the options")
        return self
