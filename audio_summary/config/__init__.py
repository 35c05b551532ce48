"""Pipeline configuration loaded from environment variables."""
from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from ..errors import ConfigurationError

logger = logging.getLogger(__name__)

MEGABYTE = 1024 * 1024

# Completion models that accept larger per-chunk budgets.
LARGE_CONTEXT_MODEL_PREFIXES = ("gpt-4o", "gpt-4.1", "claude-3-5", "claude-3-7", "claude-sonnet")

DEFAULT_TRANSCRIPTION_MODELS = {
    "openai": "whisper-1",
    "groq": "whisper-large-v3-turbo",
    "deepgram": "nova-2",
}
DEFAULT_COMPLETION_MODELS = {
    "openai": "gpt-4o-mini",
    "anthropic": "claude-3-5-haiku-latest",
    "groq": "llama-3.1-8b-instant",
}
TRANSCRIPTION_SERVICES = tuple(DEFAULT_TRANSCRIPTION_MODELS)
COMPLETION_SERVICES = tuple(DEFAULT_COMPLETION_MODELS)


def load_environment(env_file: Optional[Path] = None) -> Optional[Path]:
    """Load a .env file into the process environment without overriding it.

    Args:
        env_file: Explicit .env path; when omitted the current and parent
            directories and the home directory are searched in order

    Returns:
        The path that was loaded, or None when no file was found
    """
    candidates = [env_file] if env_file else [Path(".env"), Path("../.env"), Path.home() / ".env"]
    for env_path in candidates:
        if env_path.exists():
            load_dotenv(env_path, override=False)
            logger.debug(f"Loaded environment from {env_path}")
            return env_path
    return None


def _parse_bool(value: str | bool | None) -> bool:
    """Parse boolean value from various formats."""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return value.lower() in ("true", "1", "yes", "on", "enabled")


def _parse_list(value: str | List[str] | None, delimiter: str = ",") -> List[str]:
    """Parse list value from string or return as-is if already a list."""
    if isinstance(value, list):
        return value
    if isinstance(value, str):
        return [item.strip() for item in value.split(delimiter) if item.strip()]
    return []


def _getenv(key: str, default: str = "") -> str:
    """Get environment variable with default."""
    return os.getenv(key, default)


def _getenv_int(key: str, default: int) -> int:
    """Get integer environment variable with validation.

    Raises:
        ValueError: If value cannot be parsed as integer
    """
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError as e:
        raise ValueError(
            f"Invalid integer value for {key}='{value}'. Expected integer, got: {value}"
        ) from e


def _getenv_float(key: str, default: float) -> float:
    """Get float environment variable with validation.

    Raises:
        ValueError: If value cannot be parsed as float
    """
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError as e:
        raise ValueError(
            f"Invalid float value for {key}='{value}'. Expected float, got: {value}"
        ) from e


def _getenv_optional_int(key: str) -> Optional[int]:
    value = os.getenv(key)
    if not value:
        return None
    return _getenv_int(key, 0)


@dataclass
class Config:
    """Pipeline configuration loaded from environment variables."""

    # ========== Paths ==========
    temp_dir: Optional[Path] = field(
        default_factory=lambda: Path(_getenv("TEMP_DIR")) if _getenv("TEMP_DIR") else None
    )

    # ========== File Handling ==========
    max_file_size: int = field(default_factory=lambda: _getenv_int("MAX_FILE_SIZE", 200 * MEGABYTE))
    allowed_extensions: List[str] = field(
        default_factory=lambda: _parse_list(
            _getenv("ALLOWED_EXTENSIONS", ".mp3,.m4a,.wav,.mp4,.mpeg,.mpga,.webm,.ogg,.oga,.flac")
        )
    )
    max_chunk_size_mb: int = field(default_factory=lambda: _getenv_int("MAX_CHUNK_SIZE_MB", 24))
    fail_on_no_duration: bool = field(
        default_factory=lambda: _parse_bool(_getenv("FAIL_ON_NO_DURATION", "false"))
    )
    delete_source_after_run: bool = field(
        default_factory=lambda: _parse_bool(_getenv("DELETE_SOURCE_AFTER_RUN", "true"))
    )

    # ========== Logging ==========
    log_level: str = field(default_factory=lambda: _getenv("LOG_LEVEL", "INFO").upper())
    log_file: Optional[str] = field(default_factory=lambda: _getenv("LOG_FILE") or None)
    rich_output: bool = field(default_factory=lambda: _parse_bool(_getenv("RICH_OUTPUT", "true")))

    # ========== Provider Settings ==========
    transcription_service: str = field(
        default_factory=lambda: _getenv("TRANSCRIPTION_SERVICE", "openai").lower()
    )
    transcription_model: str = field(
        default_factory=lambda: _getenv("TRANSCRIPTION_MODEL")
    )
    completion_service: str = field(
        default_factory=lambda: _getenv("COMPLETION_SERVICE", "openai").lower()
    )
    completion_model: str = field(default_factory=lambda: _getenv("COMPLETION_MODEL"))
    moderation_model: str = field(
        default_factory=lambda: _getenv("MODERATION_MODEL", "omni-moderation-latest")
    )
    transcription_prompt: Optional[str] = field(
        default_factory=lambda: _getenv("TRANSCRIPTION_PROMPT") or None
    )
    groq_base_url: Optional[str] = field(default_factory=lambda: _getenv("GROQ_BASE_URL") or None)

    # ========== API Keys ==========
    OPENAI_API_KEY: Optional[str] = field(default_factory=lambda: _getenv("OPENAI_API_KEY") or None)
    ANTHROPIC_API_KEY: Optional[str] = field(
        default_factory=lambda: _getenv("ANTHROPIC_API_KEY") or None
    )
    DEEPGRAM_API_KEY: Optional[str] = field(
        default_factory=lambda: _getenv("DEEPGRAM_API_KEY") or None
    )
    GROQ_API_KEY: Optional[str] = field(default_factory=lambda: _getenv("GROQ_API_KEY") or None)

    # ========== Concurrency Settings ==========
    transcription_max_concurrent: int = field(
        default_factory=lambda: _getenv_int("TRANSCRIPTION_MAX_CONCURRENT", 30)
    )
    transcription_min_interval: float = field(
        default_factory=lambda: _getenv_float("TRANSCRIPTION_MIN_INTERVAL", 0.033)
    )
    summarization_max_concurrent: Optional[int] = field(
        default_factory=lambda: _getenv_optional_int("SUMMARIZATION_MAX_CONCURRENT")
    )
    summarization_min_interval: float = field(
        default_factory=lambda: _getenv_float("SUMMARIZATION_MIN_INTERVAL", 0.0)
    )
    moderation_max_concurrent: int = field(
        default_factory=lambda: _getenv_int("MODERATION_MAX_CONCURRENT", 35)
    )
    translation_max_concurrent: int = field(
        default_factory=lambda: _getenv_int("TRANSLATION_MAX_CONCURRENT", 35)
    )

    # ========== Retry Settings ==========
    max_retries: int = field(default_factory=lambda: _getenv_int("MAX_API_RETRIES", 3))
    retry_delay: float = field(default_factory=lambda: _getenv_float("API_RETRY_DELAY", 1.0))
    max_retry_delay: float = field(default_factory=lambda: _getenv_float("MAX_RETRY_DELAY", 60.0))
    retry_exponential_base: float = field(
        default_factory=lambda: _getenv_float("RETRY_EXPONENTIAL_BASE", 2.0)
    )
    retry_jitter: bool = field(
        default_factory=lambda: _parse_bool(_getenv("RETRY_JITTER_ENABLED", "true"))
    )

    # ========== Summarization Settings ==========
    summary_max_tokens: Optional[int] = field(
        default_factory=lambda: _getenv_optional_int("SUMMARY_MAX_TOKENS")
    )
    split_search_window: int = field(default_factory=lambda: _getenv_int("SPLIT_SEARCH_WINDOW", 100))
    temperature: float = field(default_factory=lambda: _getenv_float("SUMMARY_TEMPERATURE", 0.2))
    summary_sections: List[str] = field(
        default_factory=lambda: _parse_list(
            _getenv("SUMMARY_SECTIONS", "summary,main_points,action_items,follow_up,related_topics")
        )
    )
    verbosity: str = field(default_factory=lambda: _getenv("SUMMARY_VERBOSITY", "medium").lower())
    summary_language: Optional[str] = field(
        default_factory=lambda: _getenv("SUMMARY_LANGUAGE") or None
    )
    translate_transcript: bool = field(
        default_factory=lambda: _parse_bool(_getenv("TRANSLATE_TRANSCRIPT", "false"))
    )
    tokenizer_encoding: str = field(
        default_factory=lambda: _getenv("TOKENIZER_ENCODING", "cl100k_base")
    )

    # ========== Moderation ==========
    disable_moderation: bool = field(
        default_factory=lambda: _parse_bool(_getenv("DISABLE_MODERATION", "false"))
    )

    def __post_init__(self):
        """Fill in the default model for each configured service."""
        if not self.transcription_model:
            self.transcription_model = DEFAULT_TRANSCRIPTION_MODELS.get(self.transcription_service, "")
        if not self.completion_model:
            self.completion_model = DEFAULT_COMPLETION_MODELS.get(self.completion_service, "")

    def __repr__(self) -> str:
        """Return repr with redacted API keys for security."""
        sensitive_fields = {"OPENAI_API_KEY", "ANTHROPIC_API_KEY", "DEEPGRAM_API_KEY", "GROQ_API_KEY"}
        items = []
        for field_name in self.__dataclass_fields__:
            value = getattr(self, field_name)
            if field_name in sensitive_fields and value:
                items.append(f"{field_name}='***REDACTED***'")
            else:
                items.append(f"{field_name}={value!r}")
        return f"Config({', '.join(items)})"

    @property
    def max_chunk_size(self) -> int:
        """Maximum size in bytes of a single transcription upload."""
        return self.max_chunk_size_mb * MEGABYTE

    @property
    def effective_summary_max_tokens(self) -> int:
        """Per-chunk token budget, defaulting by completion model."""
        if self.summary_max_tokens:
            return self.summary_max_tokens
        if self.completion_model.startswith(LARGE_CONTEXT_MODEL_PREFIXES):
            return 5000
        return 2750

    @property
    def effective_summarization_max_concurrent(self) -> int:
        """Summarization cap; Anthropic accounts get a lower default."""
        if self.summarization_max_concurrent:
            return self.summarization_max_concurrent
        return 15 if self.completion_service == "anthropic" else 35

    def api_key_for(self, service: str) -> Optional[str]:
        """Return the API key configured for a provider service name."""
        return {
            "openai": self.OPENAI_API_KEY,
            "anthropic": self.ANTHROPIC_API_KEY,
            "deepgram": self.DEEPGRAM_API_KEY,
            "groq": self.GROQ_API_KEY,
        }.get(service)

    def validate_settings(self) -> None:
        """Validate limits and options that do not depend on the providers.

        Raises:
            ConfigurationError: If a limit or option is invalid
        """
        if self.max_chunk_size_mb < 1:
            raise ConfigurationError("MAX_CHUNK_SIZE_MB must be at least 1")
        if self.transcription_max_concurrent < 1 or self.effective_summarization_max_concurrent < 1:
            raise ConfigurationError("Concurrency limits must be at least 1")
        if self.verbosity not in ("low", "medium", "high"):
            raise ConfigurationError(f"Unknown verbosity: {self.verbosity}")

    def validate(self) -> None:
        """Validate the services, API keys and settings needed to run the pipeline.

        Raises:
            ConfigurationError: If a service is unsupported, a required key is
                missing or a setting is invalid
        """
        self.validate_settings()
        if self.transcription_service not in TRANSCRIPTION_SERVICES:
            raise ConfigurationError(
                f"Unsupported transcription service: {self.transcription_service}. "
                f"Available: {', '.join(TRANSCRIPTION_SERVICES)}"
            )
        if self.completion_service not in COMPLETION_SERVICES:
            raise ConfigurationError(
                f"Unsupported completion service: {self.completion_service}. "
                f"Available: {', '.join(COMPLETION_SERVICES)}"
            )
        for service in (self.transcription_service, self.completion_service):
            if not self.api_key_for(service):
                env_name = f"{service.upper()}_API_KEY"
                raise ConfigurationError(
                    f"{env_name} environment variable not found or invalid. "
                    f"Set it in your environment or create a .env file with: "
                    f"{env_name}=your-api-key-here"
                )
        if not self.disable_moderation and not self.OPENAI_API_KEY:
            raise ConfigurationError(
                "Moderation requires OPENAI_API_KEY; set DISABLE_MODERATION=true to skip it"
            )


# Singleton instance with thread-safe initialization
_config_instance: Optional[Config] = None
_config_lock = threading.Lock()


def get_config() -> Config:
    """Get global config instance (singleton pattern, thread-safe)."""
    global _config_instance
    if _config_instance is None:
        with _config_lock:
            # Double-check pattern to prevent race conditions
            if _config_instance is None:
                load_environment()
                _config_instance = Config()
    return _config_instance


def reset_config() -> None:
    """Drop the cached config instance."""
    global _config_instance
    with _config_lock:
        _config_instance = None


__all__ = ["Config", "get_config", "reset_config", "load_environment", "MEGABYTE"]
