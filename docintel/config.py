"""Configuration management for the document-intelligence pipeline.

This module uses Pydantic Settings to load configuration from environment
variables. All settings are validated at startup to catch configuration
errors early. Model candidate lists are resolved once here and never
reloaded mid-request.
"""

from functools import lru_cache
from typing import List, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from docintel.models.candidates import (
    GEMINI_MODELS,
    HF_MCQ_MODELS,
    HF_SUMMARIZATION_MODELS,
    ModelCandidate,
    Task,
    build_candidates,
    parse_model_list,
)


class PipelineConfig(BaseModel):
    """Tunables consumed by the DocumentProcessor. All lengths are in characters
    unless the name says words.
    """

    model_config = ConfigDict(frozen=True)

    long_document_words: int = Field(default=3000, gt=0)
    chunk_words: int = Field(default=1000, gt=0)
    summary_min_chars: int = Field(default=100, ge=0)
    resummarize_threshold_chars: int = Field(default=500, ge=0)
    chunk_fallback_chars: int = Field(default=3000, gt=0)
    chunk_summary_min_chars: int = Field(default=50, ge=0)
    min_model_summary_chars: int = Field(default=50, ge=0)
    summary_input_chars: int = Field(default=2000, gt=0)
    mcq_input_chars: int = Field(default=1500, gt=0)
    min_input_chars: int = Field(default=50, ge=1)


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    API keys are optional: without them every model call fails and the
    deterministic fallbacks produce the result.
    """

    # Inference provider
    inference_provider: Literal["huggingface", "gemini"] = Field(
        default="huggingface",
        description="Which hosted inference API the model cascades call"
    )

    # Hugging Face Inference API
    hf_api_key: Optional[str] = Field(
        default=None,
        description="Hugging Face API token"
    )
    hf_api_url: str = Field(
        default="https://router.huggingface.co/models",
        description="Base URL; the model name is appended as a path segment"
    )

    # Gemini API
    gemini_api_key: Optional[str] = Field(
        default=None,
        description="Google Gemini API key (required when inference_provider=gemini)"
    )

    request_timeout_seconds: float = Field(
        default=120.0,
        gt=0,
        description="Hard timeout for a single inference call"
    )

    # Comma-separated model overrides
    summarization_models: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("SUMMARIZATION_MODELS", "HF_SUMMARIZATION_MODELS"),
        description="Ordered, comma-separated summarization candidates"
    )
    mcq_models: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("MCQ_MODELS", "HF_MCQ_MODELS"),
        description="Ordered, comma-separated MCQ generation candidates"
    )

    # Circuit breaker / retry
    breaker_failure_threshold: int = Field(default=5, ge=1)
    breaker_reset_timeout_seconds: float = Field(default=60.0, gt=0)
    max_retries: int = Field(default=3, ge=0)

    # Pipeline tunables
    long_document_words: int = Field(default=3000, gt=0)
    chunk_words: int = Field(default=1000, gt=0)
    summary_min_chars: int = Field(default=100, ge=0)
    resummarize_threshold_chars: int = Field(default=500, ge=0)
    chunk_fallback_chars: int = Field(default=3000, gt=0)
    chunk_summary_min_chars: int = Field(default=50, ge=0)
    min_model_summary_chars: int = Field(default=50, ge=0)
    summary_input_chars: int = Field(default=2000, gt=0)
    mcq_input_chars: int = Field(default=1500, gt=0)
    min_input_chars: int = Field(default=50, ge=1)

    log_level: str = Field(default="INFO")

    # Model configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("hf_api_key", "gemini_api_key")
    @classmethod
    def blank_key_is_none(cls, v: Optional[str]) -> Optional[str]:
        """Treat empty or whitespace-only keys as unset."""
        if v is None or not v.strip():
            return None
        return v.strip()

    @field_validator("hf_api_url")
    @classmethod
    def validate_hf_api_url(cls, v: str) -> str:
        """Validate that the inference URL is present and uses HTTPS."""
        url = v.strip().rstrip("/")
        if not url.startswith("https://"):
            raise ValueError(
                "HF_API_URL must start with https:// "
                f"(got: {url[:20]}...)"
            )
        return url

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"LOG_LEVEL must be a standard logging level (got: {v})")
        return level

    @model_validator(mode="after")
    def validate_provider_credentials(self) -> "Settings":
        if self.inference_provider == "gemini" and not self.gemini_api_key:
            raise ValueError(
                "GEMINI_API_KEY must be set when INFERENCE_PROVIDER=gemini. "
                "Get your API key from https://ai.google.dev/"
            )
        return self

    def candidate_names(self, task: Task) -> List[str]:
        """Return the ordered model names for ``task``, honouring overrides."""
        override = self.summarization_models if task is Task.SUMMARIZATION else self.mcq_models
        names = parse_model_list(override)
        if names:
            return names
        if self.inference_provider == "gemini":
            return list(GEMINI_MODELS)
        return list(HF_SUMMARIZATION_MODELS if task is Task.SUMMARIZATION else HF_MCQ_MODELS)

    def candidates(self, task: Task) -> List[ModelCandidate]:
        return build_candidates(self.candidate_names(task), task)

    def pipeline_config(self) -> PipelineConfig:
        return PipelineConfig(
            long_document_words=self.long_document_words,
            chunk_words=self.chunk_words,
            summary_min_chars=self.summary_min_chars,
            resummarize_threshold_chars=self.resummarize_threshold_chars,
            chunk_fallback_chars=self.chunk_fallback_chars,
            chunk_summary_min_chars=self.chunk_summary_min_chars,
            min_model_summary_chars=self.min_model_summary_chars,
            summary_input_chars=self.summary_input_chars,
            mcq_input_chars=self.mcq_input_chars,
            min_input_chars=self.min_input_chars,
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached Settings instance.

    This function uses lru_cache to ensure settings are loaded only once
    and reused across the application lifetime.

    Returns:
        Settings: Validated application settings

    Raises:
        ValueError: If environment variables are invalid
    """
    return Settings()
