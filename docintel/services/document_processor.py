"""Top-level document pipeline: summary plus five MCQs for one document.

Stages:

    RECEIVED -> SHORT_PATH | CHUNKED_PATH -> SUMMARY_READY -> MCQ_READY -> DONE

Documents of up to ``long_document_words`` words are summarized in one go.
Longer ones are chunked, and the first, middle and last chunks summarized
separately and then combined. Every model step falls back to the
deterministic extractive summary or MCQ generator, so the only error that
reaches the caller is ``InputError``.
"""

import logging
import time
import uuid
from enum import Enum
from functools import lru_cache
from typing import List, Optional, Tuple

from docintel.config import PipelineConfig, Settings, get_settings
from docintel.models.candidates import Task
from docintel.models.document import Document
from docintel.models.mcq import MCQ
from docintel.models.processing import MCQ_COUNT, ProcessingResult
from docintel.services.chunker import chunk_text, select_priority_chunks
from docintel.services.gemini_client import get_gemini_client
from docintel.services.mcq_generator import MCQGenerationTask, generate_intelligent_mcqs
from docintel.services.model_cascade import ModelCascade
from docintel.services.model_invoker import GeminiInvoker, HuggingFaceInvoker, ModelInvoker
from docintel.services.summarizer import SummarizationTask
from docintel.services.summary_composer import summarize_extractively
from docintel.utils.circuit_breaker import CircuitBreaker

logger = logging.getLogger(__name__)

EXTRACTIVE_SOURCE = "extractive"
FALLBACK_SOURCE = "fallback"
SECTION_SEPARATOR = "\n\n"


class PipelineStage(str, Enum):
    RECEIVED = "received"
    SHORT_PATH = "short_path"
    CHUNKED_PATH = "chunked_path"
    SUMMARY_READY = "summary_ready"
    MCQ_READY = "mcq_ready"
    DONE = "done"


class DocumentProcessor:
    """Turns cleaned document text into a ``ProcessingResult``.

    Args:
        summary_cascade: Cascade over the summarization candidates
        mcq_cascade: Cascade over the MCQ candidates
        config: Length thresholds and input caps
    """

    def __init__(
        self,
        summary_cascade: ModelCascade,
        mcq_cascade: ModelCascade,
        config: Optional[PipelineConfig] = None,
    ):
        self.summary_cascade = summary_cascade
        self.mcq_cascade = mcq_cascade
        self.config = config or PipelineConfig()

    async def process_document(self, text: str) -> ProcessingResult:
        """Summarize ``text`` and generate exactly five MCQs for it.

        Raises:
            InputError: If the text is empty or shorter than ``min_input_chars``
        """
        start_time = time.time()
        request_id = str(uuid.uuid4())
        stage = PipelineStage.RECEIVED

        document = Document.from_text(text, self.config.min_input_chars)
        word_count = document.word_count
        logger.info(f"Processing document: {word_count} words")

        chunk_count = 1
        if word_count <= self.config.long_document_words:
            method = "short"
            stage = self._advance(stage, PipelineStage.SHORT_PATH)
            summary, summary_source = await self._summarize(document.text)
        else:
            method = "chunked"
            stage = self._advance(stage, PipelineStage.CHUNKED_PATH)
            summary, summary_source, chunk_count = await self._summarize_long(document.text)

        summary = summary.strip()
        if len(summary) < self.config.summary_min_chars:
            logger.warning("Summary too short, enhancing with extraction")
            enhanced = summarize_extractively(document.text)
            if len(enhanced) > len(summary):
                summary = enhanced
                summary_source = EXTRACTIVE_SOURCE
        stage = self._advance(stage, PipelineStage.SUMMARY_READY)
        logger.info(f"Summary generated: {len(summary)} characters")

        mcqs, mcq_source = await self._generate_mcqs(document.text)
        stage = self._advance(stage, PipelineStage.MCQ_READY)

        processing_time_ms = int((time.time() - start_time) * 1000)
        metadata = {
            "method": method,
            "word_count": word_count,
            "chunk_count": chunk_count,
            "summary_source": summary_source,
            "mcq_source": mcq_source,
            "processing_time_ms": processing_time_ms,
            "request_id": request_id,
        }
        result = ProcessingResult(summary=summary, mcqs=mcqs, processing_metadata=metadata)
        self._advance(stage, PipelineStage.DONE)

        logger.info(
            "Document processed",
            extra={**metadata, "summary_chars": len(summary), "mcq_count": len(mcqs)},
        )
        return result

    async def aclose(self) -> None:
        """Close the invokers behind both cascades (once each)."""
        closed: List[ModelInvoker] = []
        for cascade in (self.summary_cascade, self.mcq_cascade):
            if any(invoker is cascade.invoker for invoker in closed):
                continue
            await cascade.invoker.aclose()
            closed.append(cascade.invoker)

    async def _summarize(self, text: str) -> Tuple[str, str]:
        """Model summary of ``text``, or the extractive summary when every model fails."""
        task = SummarizationTask(
            text,
            input_chars=self.config.summary_input_chars,
            min_summary_chars=self.config.min_model_summary_chars,
        )
        result = await self.summary_cascade.run(task)
        if not result.exhausted:
            return result.value, result.model

        logger.info("All summarization models failed, using extractive summary")
        return summarize_extractively(text), EXTRACTIVE_SOURCE

    async def _summarize_long(self, text: str) -> Tuple[str, str, int]:
        chunks = chunk_text(text, self.config.chunk_words)
        priority = select_priority_chunks(chunks)
        logger.info(f"Document is very long, summarizing {len(priority)} of {len(chunks)} sections")

        section_summaries: List[str] = []
        sources: List[str] = []
        for chunk in priority:
            summary, source = await self._summarize(chunk.text)
            if len(summary) > self.config.chunk_summary_min_chars:
                section_summaries.append(summary)
                sources.append(source)
            else:
                logger.warning(f"Section {chunk.index} summary too short ({len(summary)} chars), skipping")

        if not section_summaries:
            logger.warning("All section summaries failed, summarizing start of document")
            summary, source = await self._summarize(text[:self.config.chunk_fallback_chars])
            return summary, source, len(chunks)

        combined = SECTION_SEPARATOR.join(section_summaries)
        if len(combined) > self.config.resummarize_threshold_chars:
            summary, source = await self._summarize(combined)
            return summary, source, len(chunks)

        return combined, ",".join(dict.fromkeys(sources)), len(chunks)

    async def _generate_mcqs(self, text: str) -> Tuple[List[MCQ], str]:
        result = await self.mcq_cascade.run(MCQGenerationTask(text, self.config.mcq_input_chars))
        if result.exhausted:
            logger.info("All MCQ models failed, using intelligent fallback")
            return generate_intelligent_mcqs(text), FALLBACK_SOURCE

        mcqs = list(result.value)[:MCQ_COUNT]
        if len(mcqs) < MCQ_COUNT:
            logger.info(f"Model returned {len(mcqs)} MCQs, padding with fallback questions")
            mcqs.extend(generate_intelligent_mcqs(text)[:MCQ_COUNT - len(mcqs)])
        return mcqs, result.model

    @staticmethod
    def _advance(current: PipelineStage, target: PipelineStage) -> PipelineStage:
        """Record a stage transition in the debug log.

        Stages are a trace only; no control flow branches on them.
        """
        logger.debug(f"Pipeline stage {current.value} -> {target.value}")
        return target


def build_invoker(settings: Settings) -> ModelInvoker:
    """Create the invoker for the configured inference provider."""
    if settings.inference_provider == "gemini":
        return GeminiInvoker(
            get_gemini_client(settings.gemini_api_key),
            timeout_seconds=settings.request_timeout_seconds,
        )
    return HuggingFaceInvoker(
        api_key=settings.hf_api_key,
        base_url=settings.hf_api_url,
        timeout_seconds=settings.request_timeout_seconds,
    )


def build_document_processor(
    settings: Optional[Settings] = None,
    offline: bool = False,
    breaker: Optional[CircuitBreaker] = None,
) -> DocumentProcessor:
    """Wire settings into a ready DocumentProcessor.

    Both cascades share one breaker for the upstream service. With
    ``offline=True`` the candidate lists are empty and only the
    deterministic fallbacks run.
    """
    settings = settings or get_settings()
    breaker = breaker or CircuitBreaker(
        failure_threshold=settings.breaker_failure_threshold,
        reset_timeout=settings.breaker_reset_timeout_seconds,
        name=settings.inference_provider,
    )
    invoker = build_invoker(settings)

    summary_candidates = [] if offline else settings.candidates(Task.SUMMARIZATION)
    mcq_candidates = [] if offline else settings.candidates(Task.MCQ)

    return DocumentProcessor(
        summary_cascade=ModelCascade(invoker, summary_candidates, breaker, settings.max_retries),
        mcq_cascade=ModelCascade(invoker, mcq_candidates, breaker, settings.max_retries),
        config=settings.pipeline_config(),
    )


@lru_cache
def get_document_processor() -> DocumentProcessor:
    """Get the process-wide DocumentProcessor (and its shared breaker)."""
    return build_document_processor()
