"""
Service wiring: builds every external collaborator from Settings.

Centralises creation so the pipeline only ever sees the abstract interfaces
and tests can hand it fakes instead.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

import httpx

from podcaster.core.config import Settings
from podcaster.services.extractor import ContentExtractor, WebContentExtractor
from podcaster.services.hackernews import HackerNewsClient, StorySource
from podcaster.services.language_model import LanguageModelService, build_language_model_service
from podcaster.services.speech import SpeechSynthesizer, build_speech_synthesizer


@dataclass(frozen=True)
class PipelineServices:
    story_source: StorySource
    extractor: ContentExtractor
    language_model: LanguageModelService
    synthesizer: SpeechSynthesizer | None = None  # None when audio is skipped


@asynccontextmanager
async def open_services(settings: Settings, skip_audio: bool | None = None) -> AsyncIterator[PipelineServices]:
    """Validate credentials, build all services and close the shared HTTP client on exit."""
    skip = settings.skip_audio if skip_audio is None else skip_audio
    settings.validate_for_run(skip_audio=skip)

    async with httpx.AsyncClient(timeout=settings.request_timeout) as client:
        yield PipelineServices(
            story_source=HackerNewsClient(
                client,
                base_url=settings.hn_api_base,
                max_attempts=settings.hn_max_retries,
                backoff_base=settings.hn_backoff_base,
            ),
            extractor=WebContentExtractor(client, wordwrap=settings.content_wordwrap),
            language_model=build_language_model_service(settings),
            synthesizer=None if skip else build_speech_synthesizer(settings),
        )
