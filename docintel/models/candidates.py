"""Model candidate configuration for the summarization and MCQ cascades.

Candidates are static: built once at startup from the default lists below or
from a comma-separated override, then tried in order by the cascade.
Per-candidate sampling parameters are derived from the model family.
"""

from enum import Enum
from typing import List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field


class Task(str, Enum):
    SUMMARIZATION = "summarization"
    MCQ = "mcq"


class PromptStyle(str, Enum):
    INSTRUCTION = "instruction"  # wrap the text in an instruction prompt
    DIRECT = "direct"  # send the (truncated) text as-is


class ModelCandidate(BaseModel):
    """One named model plus the parameters it is invoked with."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1, description="Model identifier, e.g. 'facebook/bart-large-cnn'")
    task: Task
    prompt_style: PromptStyle = PromptStyle.DIRECT
    temperature: float = Field(default=0.7, ge=0.0)
    top_p: Optional[float] = Field(default=None, gt=0.0, le=1.0)
    do_sample: bool = True
    max_length: Optional[int] = Field(
        default=None, gt=0, description="Output length cap; None means derived per request"
    )
    min_length: Optional[int] = Field(default=None, ge=0)


HF_SUMMARIZATION_MODELS: List[str] = [
    "google/flan-t5-large",
    "google/flan-t5-base",
    "Falconsai/text_summarization",
    "facebook/bart-large-cnn",
    "google/pegasus-xsum",
    "sshleifer/distilbart-cnn-12-6",
]

HF_MCQ_MODELS: List[str] = [
    "google/flan-t5-large",
    "google/flan-t5-base",
    "microsoft/DialoGPT-large",
    "gpt2",
    "distilgpt2",
]

GEMINI_MODELS: List[str] = [
    "gemini-2.0-flash",
    "gemini-2.0-flash-lite",
]


def _is_instruction_tuned(name: str) -> bool:
    lowered = name.lower()
    return "flan-t5" in lowered or lowered.startswith("gemini")


def build_candidate(name: str, task: Task) -> ModelCandidate:
    """Derive invocation parameters for ``name`` from its model family."""
    instruction = _is_instruction_tuned(name)

    if task is Task.SUMMARIZATION:
        # Length bounds depend on the document and are filled in per request
        return ModelCandidate(
            name=name,
            task=task,
            prompt_style=PromptStyle.INSTRUCTION if instruction else PromptStyle.DIRECT,
            temperature=0.7 if instruction else 0.3,
            top_p=0.9 if instruction else None,
            do_sample=not instruction,
        )

    return ModelCandidate(
        name=name,
        task=task,
        prompt_style=PromptStyle.INSTRUCTION,
        temperature=0.7 if instruction else 0.8,
        top_p=0.9 if instruction else None,
        do_sample=True,
        max_length=800 if instruction else 500,
    )


def parse_model_list(value: Optional[str]) -> List[str]:
    """Split a comma-separated override into model names, dropping blanks."""
    if not value:
        return []
    return [name.strip() for name in value.split(",") if name.strip()]


def build_candidates(names: Sequence[str], task: Task) -> List[ModelCandidate]:
    return [build_candidate(name, task) for name in names]
