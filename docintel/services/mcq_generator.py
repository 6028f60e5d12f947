"""Multiple-choice question generation.

Two paths:

- ``MCQGenerationTask``: one instruction prompt run through the MCQ cascade.
  Model output has no enforced schema, so parsing is best effort: the first
  bracket-delimited array in the raw text is decoded and every well-formed
  element kept.
- ``generate_intelligent_mcqs``: deterministic fallback built from word
  frequencies and sentences of the source text. Always returns exactly five
  valid MCQs for non-empty input.
"""

import json
import logging
import re
from typing import Any, List, Optional, Sequence

from pydantic import ValidationError

from docintel.exceptions import OutputValidationError
from docintel.models.candidates import ModelCandidate, Task
from docintel.models.mcq import MCQ, OPTION_COUNT
from docintel.models.processing import MCQ_COUNT
from docintel.services.model_cascade import CascadeTask
from docintel.services.model_invoker import InferencePayload, InferenceRequest
from docintel.services.text_analyzer import normalize_word, rank_terms, split_sentences

logger = logging.getLogger(__name__)

MCQ_INPUT_CHARS = 1500

MCQ_PROMPT = """You are an expert educator. Create exactly 5 diverse multiple-choice questions (mix what/why/how/which/identify) based on the text below. Each question must be clear and concise. Vary structure and avoid revealing answers in the question. Return ONLY valid JSON array with objects: {{"question": "...", "options": ["A","B","C","D"], "answer": "one of the options"}}.

Text:
{text}

JSON Array:"""

# Greedy: from the first "[" to the last "]"
_JSON_ARRAY = re.compile(r"\[[\s\S]*\]")

# Fallback generation
FALLBACK_TERM_MIN_LENGTH = 5
FALLBACK_TERM_LIMIT = 10
MIN_QUESTION_SENTENCE_CHARS = 30
OPTION_MAX_CHARS = 80
GENERIC_TERM = "the topic"
GENERIC_SUBJECT = "the subject"

QUESTION_TEMPLATES = (
    'What is mentioned about "{term}"?',
    'According to the text, which statement is true regarding "{term}"?',
    'How does the text describe "{term}"?',
    'Why is "{term}" important according to the document?',
    'Identify the key aspect of "{term}" mentioned in the text.',
)

DISTRACTORS = (
    "It is not discussed in the text",
    "The text provides conflicting information",
    "Further research is needed on this topic",
)

PADDING_OPTIONS = (
    "It is the primary topic discussed",
    "It is mentioned briefly",
    "It is not relevant to the document",
    "It requires additional context",
)


def build_mcq_prompt(text: str, input_chars: int = MCQ_INPUT_CHARS) -> str:
    return MCQ_PROMPT.format(text=text[:input_chars])


def extract_json_array(raw: str) -> Optional[Any]:
    """Decode the first bracket-delimited array found in ``raw``.

    Tries the greedy ``[ ... ]`` span first, then the shortest valid array
    starting at the first ``[``. Returns None when neither decodes to a list.
    """
    if not raw:
        return None

    match = _JSON_ARRAY.search(raw)
    if match is None:
        return None

    try:
        decoded = json.loads(match.group(0))
    except json.JSONDecodeError:
        try:
            decoded, _ = json.JSONDecoder().raw_decode(raw[match.start():])
        except json.JSONDecodeError:
            return None

    return decoded if isinstance(decoded, list) else None


def _coerce_mcq(item: Any) -> Optional[MCQ]:
    if not isinstance(item, dict):
        return None

    question = item.get("question")
    options = item.get("options")
    if not isinstance(question, str) or not isinstance(options, list):
        return None
    if len(options) != OPTION_COUNT or not all(isinstance(option, str) for option in options):
        return None

    answer = item.get("answer")
    stripped = [option.strip() for option in options]
    if not isinstance(answer, str) or answer.strip() not in stripped:
        answer = stripped[0]

    try:
        return MCQ(question=question, options=options, answer=answer)
    except ValidationError:
        return None


def parse_mcqs(raw: str) -> List[MCQ]:
    """Parse well-formed MCQs out of free-form model output.

    Raises:
        OutputValidationError: If no array is found or no element is well formed
    """
    decoded = extract_json_array(raw)
    if decoded is None:
        raise OutputValidationError("no JSON array found in model output")

    mcqs = [mcq for mcq in (_coerce_mcq(item) for item in decoded) if mcq is not None]
    if not mcqs:
        raise OutputValidationError(f"none of {len(decoded)} array elements is a well-formed MCQ")
    return mcqs[:MCQ_COUNT]


class MCQGenerationTask(CascadeTask[List[MCQ]]):
    """Generate MCQs for one text through the cascade."""

    task = Task.MCQ

    def __init__(self, text: str, input_chars: int = MCQ_INPUT_CHARS):
        self.prompt = build_mcq_prompt(text, input_chars)

    def build_request(self, candidate: ModelCandidate) -> InferenceRequest:
        return InferenceRequest(
            inputs=self.prompt,
            parameters={
                "max_length": candidate.max_length,
                "temperature": candidate.temperature,
                "top_p": candidate.top_p,
                "do_sample": candidate.do_sample,
            },
        )

    def parse(self, payload: InferencePayload) -> List[MCQ]:
        return parse_mcqs(payload.text)


def _find_key_term(sentence: str, important_words: Sequence[str]) -> str:
    words = [normalize_word(word) for word in sentence.split()]
    for word in words:
        if len(word) >= FALLBACK_TERM_MIN_LENGTH and word in important_words:
            return word
    for word in words:
        if len(word) > FALLBACK_TERM_MIN_LENGTH:
            return word
    return GENERIC_TERM


def _padding_mcq(top_term: Optional[str]) -> MCQ:
    return MCQ(
        question=f'What is the main focus regarding "{top_term or GENERIC_SUBJECT}" in this document?',
        options=list(PADDING_OPTIONS),
        answer=PADDING_OPTIONS[0],
    )


def generate_intelligent_mcqs(text: str) -> List[MCQ]:
    """Deterministically synthesize exactly five MCQs from ``text``.

    The first five sentences of at least 30 characters each become one
    question, using the templates in turn; the sentence itself (cut to 80
    characters) is the correct option. Missing slots are padded with a
    generic question about the top-ranked term.
    """
    important_words = rank_terms(text, min_length=FALLBACK_TERM_MIN_LENGTH, limit=FALLBACK_TERM_LIMIT)

    mcqs: List[MCQ] = []
    for sentence in split_sentences(text):
        if len(mcqs) == MCQ_COUNT:
            break
        if len(sentence) < MIN_QUESTION_SENTENCE_CHARS:
            continue

        correct = sentence[:OPTION_MAX_CHARS] + ("..." if len(sentence) > OPTION_MAX_CHARS else "")
        if correct in DISTRACTORS:
            continue

        term = _find_key_term(sentence, important_words)
        template = QUESTION_TEMPLATES[len(mcqs) % len(QUESTION_TEMPLATES)]
        mcqs.append(MCQ(
            question=template.format(term=term),
            options=[correct, *DISTRACTORS],
            answer=correct,
        ))

    top_term = important_words[0] if important_words else None
    while len(mcqs) < MCQ_COUNT:
        mcqs.append(_padding_mcq(top_term))

    return mcqs[:MCQ_COUNT]
