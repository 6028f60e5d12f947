"""Ordered model cascade with circuit breaking and conditional retry.

Each candidate is tried in turn, one at a time:

    breaker.call(retry_on_condition(invoker.invoke, is_retryable, max_retries))

The first payload that passes the task's validation wins. An open circuit,
exhausted retries, a permanent upstream error or an invalid payload all move
on to the next candidate. When the list runs out the cascade returns an
exhausted ``CascadeResult``; it never raises upstream errors to its caller,
who is expected to run a deterministic fallback instead.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Generic, List, Optional, Sequence, Tuple, TypeVar

from docintel.exceptions import CircuitOpenError, OutputValidationError, UpstreamError
from docintel.models.candidates import ModelCandidate, Task
from docintel.services.model_invoker import InferencePayload, InferenceRequest, ModelInvoker
from docintel.utils.circuit_breaker import CircuitBreaker
from docintel.utils.retry import MAX_RETRIES, is_retryable, retry_on_condition

logger = logging.getLogger(__name__)

T = TypeVar("T")

OUTCOME_ACCEPTED = "accepted"
OUTCOME_CIRCUIT_OPEN = "circuit_open"
OUTCOME_UPSTREAM_ERROR = "upstream_error"
OUTCOME_INVALID_OUTPUT = "invalid_output"
OUTCOME_UNEXPECTED_ERROR = "unexpected_error"


class CascadeTask(ABC, Generic[T]):
    """Task-specific request building and response validation."""

    task: Task

    @abstractmethod
    def build_request(self, candidate: ModelCandidate) -> InferenceRequest:
        """Return the request to send to ``candidate``."""

    @abstractmethod
    def parse(self, payload: InferencePayload) -> T:
        """Validate ``payload`` and convert it into the task result.

        Raises:
            OutputValidationError: If the payload is unusable
        """


@dataclass(frozen=True)
class CandidateAttempt:
    model: str
    outcome: str
    error: Optional[str] = None


@dataclass(frozen=True)
class CascadeResult(Generic[T]):
    """Outcome of a full cascade run.

    ``value`` and ``model`` are set when a candidate was accepted; otherwise
    the cascade is exhausted and ``attempts`` explains why.
    """

    value: Optional[T]
    model: Optional[str]
    attempts: Tuple[CandidateAttempt, ...]

    @property
    def exhausted(self) -> bool:
        return self.value is None


class ModelCascade:
    """Tries an ordered candidate list against one shared circuit breaker.

    Args:
        invoker: Issues single model calls
        candidates: Ordered candidates for one task
        breaker: Breaker for the upstream service, shared across requests
        max_retries: Retries per candidate for retryable errors
    """

    def __init__(
        self,
        invoker: ModelInvoker,
        candidates: Sequence[ModelCandidate],
        breaker: CircuitBreaker,
        max_retries: int = MAX_RETRIES,
    ):
        self.invoker = invoker
        self.candidates: Tuple[ModelCandidate, ...] = tuple(candidates)
        self.breaker = breaker
        self.max_retries = max_retries

    async def run(self, task: CascadeTask[T]) -> CascadeResult[T]:
        attempts: List[CandidateAttempt] = []

        for candidate in self.candidates:
            logger.info(f"Attempting {task.task.value} with model: {candidate.name}")
            request = task.build_request(candidate)

            try:
                payload = await self._invoke(candidate, request)
                value = task.parse(payload)
            except CircuitOpenError as e:
                logger.warning(f"Model {candidate.name} skipped: {e}")
                attempts.append(CandidateAttempt(candidate.name, OUTCOME_CIRCUIT_OPEN, str(e)))
                continue
            except UpstreamError as e:
                logger.warning(f"Model {candidate.name} failed ({type(e).__name__}): {e}")
                attempts.append(CandidateAttempt(candidate.name, OUTCOME_UPSTREAM_ERROR, str(e)))
                continue
            except OutputValidationError as e:
                logger.warning(f"Model {candidate.name} response not usable, trying next model: {e}")
                attempts.append(CandidateAttempt(candidate.name, OUTCOME_INVALID_OUTPUT, str(e)))
                continue
            except Exception as e:
                logger.error(f"Model {candidate.name} raised unexpected error: {e}", exc_info=True)
                attempts.append(CandidateAttempt(candidate.name, OUTCOME_UNEXPECTED_ERROR, str(e)))
                continue

            logger.info(f"Successful {task.task.value} with model: {candidate.name}")
            attempts.append(CandidateAttempt(candidate.name, OUTCOME_ACCEPTED))
            return CascadeResult(value=value, model=candidate.name, attempts=tuple(attempts))

        logger.info(f"All {task.task.value} models exhausted ({len(attempts)} tried)")
        return CascadeResult(value=None, model=None, attempts=tuple(attempts))

    async def _invoke(self, candidate: ModelCandidate, request: InferenceRequest) -> InferencePayload:
        async def attempt() -> InferencePayload:
            return await self.invoker.invoke(candidate, request)

        async def guarded() -> InferencePayload:
            return await retry_on_condition(attempt, is_retryable, self.max_retries)

        return await self.breaker.call(guarded)
