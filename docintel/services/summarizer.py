"""Summarization task for the model cascade.

Builds a per-candidate request (instruction prompt for instruction-tuned
models, plain text otherwise) and validates what comes back.
"""

import re
from typing import Tuple

from docintel.exceptions import OutputValidationError
from docintel.models.candidates import ModelCandidate, PromptStyle, Task
from docintel.services.model_cascade import CascadeTask
from docintel.services.model_invoker import InferencePayload, InferenceRequest
from docintel.services.summary_composer import summarize_extractively
from docintel.utils.normalizers import collapse_whitespace

SUMMARY_INPUT_CHARS = 2000
MIN_MODEL_SUMMARY_CHARS = 50

# A "fragmented" summary has many sentence pieces but little text
FRAGMENTED_PIECES = 10
FRAGMENTED_MAX_CHARS = 200

SUMMARY_PROMPT = """Summarize the following text in a clear, structured way. Include:
1. Main topic/problem statement
2. Key points and findings
3. Important conclusions

Text: {text}

Summary:"""


def summary_length_bounds(word_count: int) -> Tuple[int, int]:
    """Return ``(min_length, max_length)`` for a text of ``word_count`` words.

    The target is about 20% of the source, clamped to 150..400.
    """
    target = max(150, min(400, int(word_count * 0.2)))
    max_length = min(512, target + 50)
    min_length = max(100, int(target * 0.6))
    return min_length, max_length


class SummarizationTask(CascadeTask[str]):
    """Summarize one text through the cascade."""

    task = Task.SUMMARIZATION

    def __init__(
        self,
        text: str,
        input_chars: int = SUMMARY_INPUT_CHARS,
        min_summary_chars: int = MIN_MODEL_SUMMARY_CHARS,
    ):
        self.text = text
        self.input_chars = input_chars
        self.min_summary_chars = min_summary_chars
        self.min_length, self.max_length = summary_length_bounds(len(text.split()))

    def build_request(self, candidate: ModelCandidate) -> InferenceRequest:
        excerpt = self.text[:self.input_chars]
        if candidate.prompt_style is PromptStyle.INSTRUCTION:
            inputs = SUMMARY_PROMPT.format(text=excerpt)
        else:
            inputs = excerpt

        return InferenceRequest(
            inputs=inputs,
            parameters={
                "max_length": candidate.max_length or self.max_length,
                "min_length": candidate.min_length if candidate.min_length is not None else self.min_length,
                "do_sample": candidate.do_sample,
                "temperature": candidate.temperature,
                "top_p": candidate.top_p,
            },
        )

    def parse(self, payload: InferencePayload) -> str:
        summary = payload.text.strip()
        if len(summary) <= self.min_summary_chars:
            raise OutputValidationError(
                f"summary too short ({len(summary)} chars, need more than {self.min_summary_chars})"
            )

        cleaned = collapse_whitespace(summary)

        if len(re.split(r"[.!?]", cleaned)) > FRAGMENTED_PIECES and len(cleaned) < FRAGMENTED_MAX_CHARS:
            structured = summarize_extractively(self.text)
            return structured if len(structured) > len(cleaned) else cleaned

        return cleaned
