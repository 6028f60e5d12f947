"""Pydantic model for the pipeline's terminal artifact."""

from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field, field_validator

from docintel.models.mcq import MCQ

MCQ_COUNT = 5


class ProcessingResult(BaseModel):
    """Summary plus exactly five MCQs for one processed document.

    This is the only object handed to the persistence collaborator.
    """

    model_config = ConfigDict(frozen=True)

    summary: str = Field(min_length=1, description="Final document summary")
    mcqs: List[MCQ] = Field(description="Exactly five multiple-choice questions")
    processing_metadata: Dict[str, Any] = Field(
        default_factory=dict,
        description="Routing and source details (method, summary_source, mcq_source, timings)"
    )

    @field_validator("mcqs")
    @classmethod
    def validate_mcq_count(cls, v: List[MCQ]) -> List[MCQ]:
        if len(v) != MCQ_COUNT:
            raise ValueError(f"mcqs must contain exactly {MCQ_COUNT} questions (got {len(v)})")
        return v
