"""
Hacker News story source over the public Firebase API.

Two read-only endpoints: the ordered top-story id list and one JSON object
per item. Every failure surfaces as a SOURCE PipelineError.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

import httpx
from pydantic import PositiveInt, TypeAdapter, ValidationError
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from podcaster.agents.state import Story
from podcaster.core.errors import ErrorKind, PipelineError
from podcaster.core.logging import get_logger

logger = get_logger(__name__)

_TOP_STORIES = TypeAdapter(list[PositiveInt])


class StorySource(ABC):
    """Ordered top-story ids plus per-id metadata lookup."""

    @abstractmethod
    async def top_story_ids(self) -> list[int]: ...

    @abstractmethod
    async def fetch_story(self, story_id: int) -> Story: ...


class HackerNewsClient(StorySource):
    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str = "https://hacker-news.firebaseio.com/v0",
        max_attempts: int = 3,
        backoff_base: float = 1.0,
    ) -> None:
        self._client = client
        self._base_url = base_url.rstrip("/")
        self._max_attempts = max_attempts
        self._backoff_base = backoff_base

    async def top_story_ids(self) -> list[int]:
        data = await self._get_json(f"{self._base_url}/topstories.json")
        try:
            ids = _TOP_STORIES.validate_python(data)
        except ValidationError as e:
            raise PipelineError(
                ErrorKind.SOURCE, "Top stories response failed validation", cause=e
            ) from e
        logger.debug("top_stories_fetched", count=len(ids))
        return ids

    async def fetch_story(self, story_id: int) -> Story:
        data = await self._get_json(f"{self._base_url}/item/{story_id}.json")
        if data is None:
            # Deleted or unknown items come back as a JSON null
            raise PipelineError(ErrorKind.SOURCE, f"Story {story_id} not found", status_code=404)
        try:
            return Story.model_validate(data)
        except ValidationError as e:
            raise PipelineError(
                ErrorKind.SOURCE, f"Story {story_id} failed validation", cause=e
            ) from e

    async def _get_json(self, url: str) -> Any:
        """GET with exponential backoff on transport errors. Non-2xx is not retried."""
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self._max_attempts),
                wait=wait_exponential(multiplier=self._backoff_base, max=10),
                retry=retry_if_exception_type(httpx.TransportError),
                reraise=True,
            ):
                with attempt:
                    resp = await self._client.get(url)
                    resp.raise_for_status()
                    return resp.json()
        except httpx.HTTPStatusError as e:
            raise PipelineError(
                ErrorKind.SOURCE,
                f"Hacker News request failed: {e.response.status_code} {e.response.reason_phrase}",
                status_code=e.response.status_code,
                cause=e,
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise PipelineError(ErrorKind.SOURCE, f"Hacker News request failed: {e}", cause=e) from e
