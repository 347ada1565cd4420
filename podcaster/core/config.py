"""
Centralised configuration via Pydantic Settings.

Reads from .env in dev and from the process environment in production.
Construct once at process start (``get_settings()``) and pass the instance
into the pipeline and its services.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from podcaster.core.errors import ErrorKind, PipelineError

AIProvider = Literal["xai", "openai", "google"]

# Auto-detection order when AI_PROVIDER is not set
AI_PROVIDER_PRIORITY: tuple[AIProvider, ...] = ("xai", "openai", "google")

# (summary tier, main tier) per provider
AI_PROVIDER_MODELS: dict[str, tuple[str, str]] = {
    "xai": ("grok-4-1-fast-non-reasoning", "grok-4-1-fast"),
    "openai": ("gpt-5-mini", "gpt-5"),
    "google": ("gemini-2.5-flash", "gemini-2.5-pro"),
}

_PROVIDER_ENV_KEYS = {
    "xai": "XAI_API_KEY",
    "openai": "OPENAI_API_KEY",
    "google": "GOOGLE_API_KEY",
}


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Application ─────────────────────────────────────────
    app_env: Literal["development", "staging", "production"] = "development"
    log_level: str = "INFO"
    log_format: Literal["auto", "console", "json"] = "auto"
    cors_origins: list[str] = ["http://localhost:3000"]
    api_key: str = "change-me"

    # ── LLM provider ───────────────────────────────────────
    ai_provider: AIProvider | None = None
    xai_api_key: str = ""
    openai_api_key: str = ""
    google_api_key: str = ""
    xai_base_url: str = "https://api.x.ai/v1"

    # Model routing: summary tier for summarize/critique, main tier for draft/revise
    model_summary: str | None = None
    model_main: str | None = None

    # ── Text-to-speech (OpenAI only) ───────────────────────
    tts_model: str = "gpt-4o-mini-tts"
    tts_voice: str = "nova"
    tts_instructions: str = (
        "You are a podcaster reading today's latest news articles to your audience, "
        "with excitement and intrigue in your voice to engage listeners and entertain them. "
        "Add pauses in between what you're saying to emphasize."
    )

    # ── Podcast generation ─────────────────────────────────
    story_count: int = Field(default=10, ge=1, description="Number of HN stories to include")
    improvement_iterations: int = Field(
        default=5, ge=0, description="Cap on critique/revise passes over the script"
    )
    output_dir: str = "./output"
    skip_audio: bool = Field(default=False, description="Write the transcript only")
    podcast_timezone: str = "UTC"

    # ── Data collection ─────────────────────────────────────
    hn_api_base: str = "https://hacker-news.firebaseio.com/v0"
    hn_max_concurrency: int = Field(default=16, ge=1)
    hn_max_retries: int = Field(default=3, ge=1)
    hn_backoff_base: float = 1.0
    request_timeout: float = 20.0
    download_max_concurrency: int = Field(default=10, ge=1)
    content_wordwrap: int = Field(default=130, ge=20)

    @field_validator("podcast_timezone")
    @classmethod
    def check_timezone(cls, v: str) -> str:
        """Reject unknown IANA zone names at load time, not mid-run."""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone {v!r}") from e
        return v

    def resolve_ai_provider(self) -> AIProvider:
        """Explicit AI_PROVIDER wins; otherwise the first provider with a key."""
        if self.ai_provider is not None:
            if not self.api_key_for(self.ai_provider):
                raise PipelineError(
                    ErrorKind.CONFIGURATION,
                    f"{_PROVIDER_ENV_KEYS[self.ai_provider]} is required when using "
                    f"the {self.ai_provider} provider",
                )
            return self.ai_provider

        for provider in AI_PROVIDER_PRIORITY:
            if self.api_key_for(provider):
                return provider

        raise PipelineError(
            ErrorKind.CONFIGURATION,
            "No AI provider configured. Set AI_PROVIDER or provide an API key "
            "(XAI_API_KEY, OPENAI_API_KEY or GOOGLE_API_KEY)",
        )

    def api_key_for(self, provider: str) -> str:
        return {
            "xai": self.xai_api_key,
            "openai": self.openai_api_key,
            "google": self.google_api_key,
        }[provider]

    def model_for(self, tier: Literal["summary", "main"]) -> str:
        summary_default, main_default = AI_PROVIDER_MODELS[self.resolve_ai_provider()]
        if tier == "summary":
            return self.model_summary or summary_default
        return self.model_main or main_default

    def validate_for_run(self, skip_audio: bool | None = None) -> None:
        """Fail fast on missing credentials before any network call is made."""
        self.resolve_ai_provider()
        skip = self.skip_audio if skip_audio is None else skip_audio
        if not skip and not self.openai_api_key:
            raise PipelineError(
                ErrorKind.CONFIGURATION,
                "OPENAI_API_KEY is required for text-to-speech (or set SKIP_AUDIO=true)",
            )


@lru_cache
def get_settings() -> Settings:
    try:
        return Settings()
    except ValidationError as e:
        raise PipelineError(
            ErrorKind.CONFIGURATION, f"Invalid configuration: {e}", cause=e
        ) from e
