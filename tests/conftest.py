"""
Shared pytest fixtures for unit tests.

Every external collaborator has a deterministic in-memory fake here, so no
network access or API keys are needed.
"""

from __future__ import annotations

from collections.abc import Sequence

import pytest

from podcaster.agents.state import Story, StoryWithText
from podcaster.core.config import Settings
from podcaster.core.errors import ErrorKind, PipelineError
from podcaster.services.extractor import ContentExtractor
from podcaster.services.factory import PipelineServices
from podcaster.services.hackernews import StorySource
from podcaster.services.language_model import LanguageModelService
from podcaster.services.speech import SpeechSynthesizer

# 2024-01-15 10:30:00 UTC, a Monday
POSTED_AT = 1705314600


def make_item(item_id: int, **overrides) -> dict:
    """Raw Hacker News item JSON as the API returns it."""
    item = {
        "id": item_id,
        "title": f"Story {item_id}",
        "url": f"https://example.com/{item_id}",
        "score": 100 + item_id,
        "by": f"user{item_id}",
        "time": POSTED_AT,
        "type": "story",
        "descendants": 3,
        "kids": [item_id * 10, item_id * 10 + 1],
    }
    item.update(overrides)
    return item


# ── Fakes ───────────────────────────────────────────────────
class FakeStorySource(StorySource):
    """Serves items from a dict; an Exception value is raised for that id."""

    def __init__(self, items: dict[int, dict | Exception], ids: list[int] | None = None) -> None:
        self.items = items
        self.ids = list(items) if ids is None else ids
        self.fetched: list[int] = []

    async def top_story_ids(self) -> list[int]:
        return list(self.ids)

    async def fetch_story(self, story_id: int) -> Story:
        self.fetched.append(story_id)
        item = self.items[story_id]
        if isinstance(item, Exception):
            raise item
        return Story.model_validate(item)


class FakeExtractor(ContentExtractor):
    """Returns canned text per URL; an Exception value is raised for that URL."""

    def __init__(self, texts: dict[str, str | Exception] | None = None) -> None:
        self.texts = texts or {}
        self.urls: list[str] = []

    async def extract(self, url: str) -> str:
        self.urls.append(url)
        text = self.texts.get(url, f"Article text for {url}")
        if isinstance(text, Exception):
            raise text
        return text


class FakeLanguageModel(LanguageModelService):
    """
    Records every call as (operation, args...).

    ``critiques`` are returned in order; once exhausted every critique asks
    for another change, so the loop only stops at the iteration cap.
    ``failures`` maps an operation name to the exception it raises.
    """

    def __init__(
        self,
        critiques: Sequence[str] = (),
        failures: dict[str, Exception] | None = None,
    ) -> None:
        self.calls: list[tuple] = []
        self._critiques = list(critiques)
        self._failures = failures or {}
        self._revisions = 0

    def ops(self) -> list[str]:
        return [call[0] for call in self.calls]

    def _record(self, operation: str, *args) -> None:
        self.calls.append((operation, *args))
        if operation in self._failures:
            raise self._failures[operation]

    async def summarize(self, text: str) -> str:
        self._record("summarize", text)
        return f"Summary: {text}"

    async def draft_script(self, summaries: Sequence[str], date: str) -> str:
        self._record("draft_script", list(summaries), date)
        return f"Welcome to the show, it is {date}.\n\n" + "\n\n".join(summaries) + "\n\nThanks for listening."

    async def critique(self, summaries: Sequence[str], script: str) -> str:
        self._record("critique", list(summaries), script)
        if self._critiques:
            return self._critiques.pop(0)
        return "Slow down in the second story."

    async def revise(self, critique: str, summaries: Sequence[str], script: str) -> str:
        self._record("revise", critique, list(summaries), script)
        self._revisions += 1
        return f"{script}\n\nRevision {self._revisions}."


class FakeSynthesizer(SpeechSynthesizer):
    """Audio bytes are the chunk text, tagged; optionally fails on the Nth call."""

    def __init__(self, fail_at: int | None = None, error: Exception | None = None) -> None:
        self.chunks: list[str] = []
        self._fail_at = fail_at
        self._error = error or PipelineError(ErrorKind.SYNTHESIS, "speech service unavailable")

    async def synthesize(self, text: str) -> bytes:
        self.chunks.append(text)
        if self._fail_at is not None and len(self.chunks) == self._fail_at:
            raise self._error
        return f"<audio:{text}>".encode()


# ── Fixtures ────────────────────────────────────────────────
@pytest.fixture
def settings(tmp_path) -> Settings:
    """Isolated settings: no .env file, OpenAI credentials, output under tmp_path."""
    return Settings(
        _env_file=None,
        ai_provider="openai",
        openai_api_key="sk-test",
        xai_api_key="",
        google_api_key="",
        api_key="test-api-key",
        output_dir=str(tmp_path / "output"),
        improvement_iterations=5,
        story_count=3,
        skip_audio=False,
        podcast_timezone="UTC",
    )


@pytest.fixture
def sample_items() -> dict[int, dict]:
    return {1: make_item(1), 2: make_item(2), 3: make_item(3)}


@pytest.fixture
def sample_story() -> Story:
    return Story.model_validate(make_item(1, title="Show HN: A tiny database", url="https://example.com/db"))


@pytest.fixture
def sample_story_with_text(sample_story: Story) -> StoryWithText:
    return StoryWithText.from_story(sample_story, "A small embeddable database written in an afternoon.")


@pytest.fixture
def story_source(sample_items) -> FakeStorySource:
    return FakeStorySource(sample_items)


@pytest.fixture
def extractor() -> FakeExtractor:
    return FakeExtractor()


@pytest.fixture
def language_model() -> FakeLanguageModel:
    return FakeLanguageModel()


@pytest.fixture
def synthesizer() -> FakeSynthesizer:
    return FakeSynthesizer()


@pytest.fixture
def services(story_source, extractor, language_model, synthesizer) -> PipelineServices:
    return PipelineServices(
        story_source=story_source,
        extractor=extractor,
        language_model=language_model,
        synthesizer=synthesizer,
    )
