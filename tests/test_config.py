"""Tests for configuration management."""

import pytest
from pydantic import ValidationError

from docintel.config import PipelineConfig, Settings, get_settings
from docintel.models.candidates import GEMINI_MODELS, HF_MCQ_MODELS, HF_SUMMARIZATION_MODELS, Task

ENV_VARS = (
    "INFERENCE_PROVIDER",
    "HF_API_KEY",
    "HF_API_URL",
    "GEMINI_API_KEY",
    "SUMMARIZATION_MODELS",
    "HF_SUMMARIZATION_MODELS",
    "MCQ_MODELS",
    "HF_MCQ_MODELS",
    "LONG_DOCUMENT_WORDS",
    "LOG_LEVEL",
    "MAX_RETRIES",
)


class TestSettings:
    """Test Settings class validation and loading."""

    def test_settings_defaults(self, clean_env):
        """Test that Settings loads without any environment variables."""
        settings = Settings(_env_file=None)

        assert settings.inference_provider == "huggingface"
        assert settings.hf_api_key is None
        assert settings.hf_api_url == "https://router.huggingface.co/models"
        assert settings.request_timeout_seconds == 120.0
        assert settings.breaker_failure_threshold == 5
        assert settings.breaker_reset_timeout_seconds == 60.0
        assert settings.max_retries == 3
        assert settings.log_level == "INFO"

    def test_settings_with_valid_env_vars(self, clean_env):
        """Test that Settings reads keys and tunables from the environment."""
        clean_env.setenv("HF_API_KEY", "hf-test-key")
        clean_env.setenv("LONG_DOCUMENT_WORDS", "2500")
        clean_env.setenv("LOG_LEVEL", "debug")

        settings = Settings(_env_file=None)

        assert settings.hf_api_key == "hf-test-key"
        assert settings.long_document_words == 2500
        assert settings.log_level == "DEBUG"

    def test_settings_strips_whitespace_from_keys(self, clean_env):
        """Test that whitespace around API keys is stripped."""
        clean_env.setenv("HF_API_KEY", "  hf-test-key  ")

        settings = Settings(_env_file=None)

        assert settings.hf_api_key == "hf-test-key"

    def test_whitespace_only_key_is_unset(self, clean_env):
        """Test that a whitespace-only key counts as missing."""
        clean_env.setenv("HF_API_KEY", "   ")

        settings = Settings(_env_file=None)

        assert settings.hf_api_key is None

    def test_gemini_provider_requires_api_key(self, clean_env):
        """Test that INFERENCE_PROVIDER=gemini without a key raises ValidationError."""
        clean_env.setenv("INFERENCE_PROVIDER", "gemini")

        with pytest.raises(ValidationError) as exc_info:
            Settings(_env_file=None)

        assert "GEMINI_API_KEY" in str(exc_info.value)

    def test_unknown_provider_raises_error(self, clean_env):
        """Test that only known providers are accepted."""
        clean_env.setenv("INFERENCE_PROVIDER", "openai")

        with pytest.raises(ValidationError):
            Settings(_env_file=None)

    def test_insecure_hf_api_url_raises_error(self, clean_env):
        """Test that a non-HTTPS inference URL is rejected."""
        clean_env.setenv("HF_API_URL", "http://router.huggingface.co/models")

        with pytest.raises(ValidationError) as exc_info:
            Settings(_env_file=None)

        assert "https://" in str(exc_info.value)

    def test_hf_api_url_trailing_slash_removed(self, clean_env):
        """Test that a trailing slash on the inference URL is dropped."""
        clean_env.setenv("HF_API_URL", "https://example.test/models/")

        settings = Settings(_env_file=None)

        assert settings.hf_api_url == "https://example.test/models"

    def test_invalid_log_level_raises_error(self, clean_env):
        """Test that unknown log levels are rejected."""
        clean_env.setenv("LOG_LEVEL", "chatty")

        with pytest.raises(ValidationError):
            Settings(_env_file=None)


class TestCandidateLists:
    """Test resolution of ordered model candidates."""

    def test_default_huggingface_candidates(self, clean_env):
        """Test that the built-in lists are used without overrides."""
        settings = Settings(_env_file=None)

        assert settings.candidate_names(Task.SUMMARIZATION) == HF_SUMMARIZATION_MODELS
        assert settings.candidate_names(Task.MCQ) == HF_MCQ_MODELS

    def test_override_keeps_order_and_drops_blanks(self, clean_env):
        """Test that a comma-separated override replaces the defaults in order."""
        clean_env.setenv("SUMMARIZATION_MODELS", " facebook/bart-large-cnn, ,google/flan-t5-base ")

        settings = Settings(_env_file=None)

        assert settings.candidate_names(Task.SUMMARIZATION) == [
            "facebook/bart-large-cnn",
            "google/flan-t5-base",
        ]
        assert settings.candidate_names(Task.MCQ) == HF_MCQ_MODELS

    def test_hf_prefixed_override_alias(self, clean_env):
        """Test that HF_MCQ_MODELS is accepted as an override name."""
        clean_env.setenv("HF_MCQ_MODELS", "gpt2")

        settings = Settings(_env_file=None)

        assert settings.candidate_names(Task.MCQ) == ["gpt2"]

    def test_gemini_provider_defaults(self, clean_env):
        """Test that the Gemini provider uses the Gemini model list."""
        clean_env.setenv("INFERENCE_PROVIDER", "gemini")
        clean_env.setenv("GEMINI_API_KEY", "test-gemini-api-key")

        settings = Settings(_env_file=None)

        assert settings.candidate_names(Task.SUMMARIZATION) == GEMINI_MODELS
        assert settings.candidate_names(Task.MCQ) == GEMINI_MODELS

    def test_candidates_carry_task(self, clean_env):
        """Test that built candidates are tagged with their task."""
        settings = Settings(_env_file=None)

        candidates = settings.candidates(Task.MCQ)

        assert [c.name for c in candidates] == HF_MCQ_MODELS
        assert all(c.task is Task.MCQ for c in candidates)

    def test_pipeline_config_from_settings(self, clean_env):
        """Test that pipeline tunables flow into PipelineConfig."""
        clean_env.setenv("LONG_DOCUMENT_WORDS", "1200")

        config = Settings(_env_file=None).pipeline_config()

        assert isinstance(config, PipelineConfig)
        assert config.long_document_words == 1200
        assert config.chunk_words == 1000
        assert config.summary_min_chars == 100
        assert config.resummarize_threshold_chars == 500

    def test_input_caps_and_floors_from_environment(self, clean_env):
        """Test that prompt caps and summary floors can be set from the environment."""
        clean_env.setenv("CHUNK_FALLBACK_CHARS", "2500")
        clean_env.setenv("CHUNK_SUMMARY_MIN_CHARS", "40")
        clean_env.setenv("MIN_MODEL_SUMMARY_CHARS", "60")
        clean_env.setenv("SUMMARY_INPUT_CHARS", "1800")
        clean_env.setenv("MCQ_INPUT_CHARS", "1200")

        config = Settings(_env_file=None).pipeline_config()

        assert config.chunk_fallback_chars == 2500
        assert config.chunk_summary_min_chars == 40
        assert config.min_model_summary_chars == 60
        assert config.summary_input_chars == 1800
        assert config.mcq_input_chars == 1200

    def test_input_cap_must_be_positive(self, clean_env):
        """Test that a zero prompt cap is rejected."""
        clean_env.setenv("MCQ_INPUT_CHARS", "0")

        with pytest.raises(ValidationError):
            Settings(_env_file=None)


class TestGetSettings:
    """Test get_settings() function."""

    def test_get_settings_returns_settings_instance(self, clean_env):
        """Test that get_settings returns a Settings instance."""
        settings = get_settings()

        assert isinstance(settings, Settings)

    def test_get_settings_caches_result(self, clean_env):
        """Test that get_settings returns the same cached instance."""
        settings1 = get_settings()
        settings2 = get_settings()

        assert settings1 is settings2

    def test_get_settings_raises_error_on_invalid_config(self, clean_env):
        """Test that get_settings raises error when config is invalid."""
        clean_env.setenv("INFERENCE_PROVIDER", "gemini")

        with pytest.raises(ValidationError):
            get_settings()


# Pytest fixtures
@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Remove pipeline variables from the environment and clear the settings cache."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    # Keep a developer's .env out of the way
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield monkeypatch
    get_settings.cache_clear()
