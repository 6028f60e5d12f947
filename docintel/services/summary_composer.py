"""Deterministic structured summary built from TextAnalysis output.

Sections, in order:

1. Introduction (always present for non-empty input)
2. Main Points (bulleted important sentences)
3. Approach (first method-related important sentence)
4. Key Findings (first result-related important sentence)
5. Conclusion (final paragraph)
"""

import re
from typing import List, Optional, Sequence

from docintel.services.text_analyzer import TextAnalysis, analyze_text
from docintel.utils.normalizers import tidy_summary

PROBLEM_INDICATORS = (
    "problem", "issue", "challenge", "aim", "goal", "purpose", "objective",
    "propose", "present", "introduce", "study", "research", "investigate",
)
METHOD_INDICATORS = (
    "method", "approach", "technique", "algorithm", "system", "framework",
    "model", "process", "procedure",
)
RESULT_INDICATORS = (
    "result", "finding", "show", "demonstrate", "achieve", "obtain",
    "observe", "conclude", "indicate",
)

INTRO_MAX_CHARS = 250
INTRO_EXTEND_BELOW = 150
MAIN_POINT_MIN_CHARS = 40
MAIN_POINT_MAX_CHARS = 250
MAIN_POINT_LIMIT = 6
CONCLUSION_MIN_CHARS = 50
CONCLUSION_MAX_CHARS = 200
BULLET = "•"

_TERMINAL_PUNCTUATION = re.compile(r"[.!?]$")


def _first_matching(sentences: Sequence[str], indicators: Sequence[str]) -> Optional[str]:
    for sentence in sentences:
        lowered = sentence.lower()
        if any(indicator in lowered for indicator in indicators):
            return sentence
    return None


def _terminate(sentence: str) -> str:
    sentence = sentence.strip()
    return sentence if _TERMINAL_PUNCTUATION.search(sentence) else sentence + "."


def _truncate(text: str, limit: int) -> str:
    return text[:limit] + "..." if len(text) > limit else text


def _introduction(analysis: TextAnalysis, fallback_text: str) -> str:
    intro = list(analysis.intro_section) or list(analysis.sentences[:2])
    if not intro:
        return _truncate(fallback_text.strip(), INTRO_MAX_CHARS)

    problem_sentence = _first_matching(intro, PROBLEM_INDICATORS)
    if problem_sentence is None:
        return _truncate(" ".join(intro[:2]), INTRO_MAX_CHARS)

    text = problem_sentence
    if len(problem_sentence) < INTRO_EXTEND_BELOW and len(intro) > 1:
        following = intro[1] if intro[0] == problem_sentence else intro[0]
        text = f"{problem_sentence} {following}"
    return text


def _main_points(analysis: TextAnalysis) -> List[str]:
    points: List[str] = []
    for sentence in analysis.important_sentences:
        if sentence in points:
            continue
        if MAIN_POINT_MIN_CHARS < len(sentence) < MAIN_POINT_MAX_CHARS:
            points.append(sentence)
    return points[:MAIN_POINT_LIMIT]


def compose_summary(analysis: TextAnalysis) -> str:
    """Assemble the structured summary string.

    When no sentence qualifies for the introduction, the analysed source
    text stands in for it.

    Args:
        analysis: Output of ``analyze_text``

    Returns:
        Cleaned, non-empty summary whenever the analysed text was non-empty
    """
    intro = _introduction(analysis, analysis.source_text)
    sections: List[str] = [_terminate(intro) if intro.strip() else ""]

    points = _main_points(analysis)
    if points:
        bullets = "\n".join(f"{BULLET} {_terminate(point)}" for point in points)
        sections.append(f"Main Points:\n{bullets}")

    method_sentence = _first_matching(analysis.important_sentences, METHOD_INDICATORS)
    if method_sentence:
        sections.append(f"Approach: {_terminate(method_sentence)}")

    result_sentence = _first_matching(analysis.important_sentences, RESULT_INDICATORS)
    if result_sentence:
        sections.append(f"Key Findings: {_terminate(result_sentence)}")

    if analysis.paragraphs:
        conclusion = analysis.paragraphs[-1].strip()
        if len(conclusion) > CONCLUSION_MIN_CHARS:
            text = _truncate(conclusion, CONCLUSION_MAX_CHARS)
            sections.append(f"Conclusion: {_terminate(text)}")

    return tidy_summary("\n\n".join(section for section in sections if section.strip()))


def summarize_extractively(text: str) -> str:
    """Analyse ``text`` and compose its structured summary."""
    return compose_summary(analyze_text(text))
