"""Single-call model invokers for hosted inference APIs.

An invoker issues exactly one request to one named model and either returns a
normalized ``InferencePayload`` or raises one of the upstream errors from
``docintel.exceptions``:

- 503 / "loading" error body  -> ModelLoadingError (retryable)
- 429                         -> RateLimitedError (retryable)
- 408 / client timeout        -> UpstreamTimeoutError (retryable)
- connection failure          -> NetworkError (retryable)
- 410                         -> EndpointGoneError
- any other error status      -> UpstreamClientError

Retrying, circuit breaking and payload validation are the cascade's job.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from docintel.exceptions import (
    EndpointGoneError,
    ModelLoadingError,
    NetworkError,
    RateLimitedError,
    UpstreamClientError,
    UpstreamError,
    UpstreamTimeoutError,
)
from docintel.models.candidates import ModelCandidate
from docintel.utils.retry import extract_status_code

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 120.0


@dataclass(frozen=True)
class InferenceRequest:
    """Input text plus generation parameters for one call."""

    inputs: str
    parameters: Dict[str, Any] = field(default_factory=dict)

    def compact_parameters(self) -> Dict[str, Any]:
        return {key: value for key, value in self.parameters.items() if value is not None}


@dataclass(frozen=True)
class InferencePayload:
    """Normalized success response; ``text`` is empty when no text was found."""

    model: str
    text: str
    raw: Any = None


def classify_status(status_code: int, model: str, message: str = "") -> UpstreamError:
    """Map an HTTP error status onto the upstream error taxonomy."""
    if status_code == 503:
        return ModelLoadingError(
            "Model is loading. Please wait a moment and try again.", model=model, status_code=status_code
        )
    if status_code == 429:
        return RateLimitedError(
            "Rate limit exceeded. Please try again later.", model=model, status_code=status_code
        )
    if status_code == 408:
        return UpstreamTimeoutError(
            "Request timeout. The model is taking too long to respond.", model=model, status_code=status_code
        )
    if status_code == 410:
        return EndpointGoneError(
            "API endpoint deprecated. Please update the model configuration.", model=model, status_code=status_code
        )
    detail = f" - {message}" if message else ""
    return UpstreamClientError(f"API error: {status_code}{detail}", model=model, status_code=status_code)


def extract_generated_text(data: Any) -> str:
    """Pull summary or generated text out of the known response shapes."""
    if isinstance(data, str):
        return data

    item = data[0] if isinstance(data, list) and data else data
    if isinstance(item, dict):
        for key in ("summary_text", "generated_text"):
            value = item.get(key)
            if isinstance(value, str):
                return value
    return ""


class ModelInvoker(ABC):
    """Common contract for calling a hosted model once."""

    @abstractmethod
    async def invoke(self, candidate: ModelCandidate, request: InferenceRequest) -> InferencePayload:
        """Issue one request for ``candidate`` and normalize the outcome."""

    async def aclose(self) -> None:
        """Release network resources held by the invoker."""


class HuggingFaceInvoker(ModelInvoker):
    """Invoker for the Hugging Face Inference API (``POST {base_url}/{model}``)."""

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = "https://router.huggingface.co/models",
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        client: Optional[httpx.AsyncClient] = None,
    ):
        if not api_key:
            logger.warning("HF_API_KEY is not set. Model calls will fail and fall back to extraction.")

        headers = {"Content-Type": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"

        self._base_url = base_url.rstrip("/")
        self._headers = headers
        self._client = client or httpx.AsyncClient(timeout=timeout_seconds)

    async def invoke(self, candidate: ModelCandidate, request: InferenceRequest) -> InferencePayload:
        url = f"{self._base_url}/{candidate.name}"
        body = {"inputs": request.inputs, "parameters": request.compact_parameters()}

        try:
            response = await self._client.post(url, json=body, headers=self._headers)
        except httpx.TimeoutException as e:
            raise UpstreamTimeoutError(
                "Request timeout. The model is taking too long to respond.", model=candidate.name
            ) from e
        except httpx.TransportError as e:
            raise NetworkError(f"Network error: {e}", model=candidate.name) from e

        try:
            data: Any = response.json()
        except ValueError:
            data = response.text

        error_message = data.get("error") if isinstance(data, dict) else None

        if response.status_code >= 400:
            raise classify_status(response.status_code, candidate.name, str(error_message or response.reason_phrase))

        if error_message:
            if "loading" in str(error_message).lower():
                raise ModelLoadingError(str(error_message), model=candidate.name, status_code=response.status_code)
            raise UpstreamClientError(str(error_message), model=candidate.name, status_code=response.status_code)

        return InferencePayload(model=candidate.name, text=extract_generated_text(data), raw=data)

    async def aclose(self) -> None:
        await self._client.aclose()


class GeminiInvoker(ModelInvoker):
    """Invoker backed by the google-genai SDK.

    The SDK call is blocking, so it runs in a worker thread bounded by the
    request timeout. A timed-out thread is left to finish; its result is
    discarded.
    """

    def __init__(self, client: genai.Client, timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS):
        self._client = client
        self._timeout_seconds = timeout_seconds

    async def invoke(self, candidate: ModelCandidate, request: InferenceRequest) -> InferencePayload:
        params = request.compact_parameters()
        config = types.GenerateContentConfig(
            temperature=params.get("temperature"),
            top_p=params.get("top_p"),
            max_output_tokens=params.get("max_length"),
        )

        def _call() -> Any:
            return self._client.models.generate_content(
                model=candidate.name,
                contents=request.inputs,
                config=config,
            )

        try:
            response = await asyncio.wait_for(asyncio.to_thread(_call), timeout=self._timeout_seconds)
        except asyncio.TimeoutError as e:
            raise UpstreamTimeoutError(
                "Request timeout. The model is taking too long to respond.", model=candidate.name
            ) from e
        except genai_errors.APIError as e:
            status_code = extract_status_code(e) or 500
            raise classify_status(status_code, candidate.name, str(e.message or "")) from e
        except httpx.TimeoutException as e:
            raise UpstreamTimeoutError(
                "Request timeout. The model is taking too long to respond.", model=candidate.name
            ) from e
        except httpx.TransportError as e:
            raise NetworkError(f"Network error: {e}", model=candidate.name) from e

        text = response.text if response is not None else None
        return InferencePayload(model=candidate.name, text=text or "", raw=response)
