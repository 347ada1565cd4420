"""
Content download: fetch article text for every selected story.

Failures degrade the story's text to "" and never abort the batch.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence

from podcaster.agents.state import Story, StoryWithText
from podcaster.core.logging import get_logger
from podcaster.services.extractor import ContentExtractor, is_pdf_url

logger = get_logger(__name__)


async def download_stories(
    stories: Sequence[Story],
    extractor: ContentExtractor,
    max_concurrency: int = 10,
) -> list[StoryWithText]:
    semaphore = asyncio.Semaphore(max_concurrency)

    async def download(story: Story) -> StoryWithText:
        url = story.url or ""
        async with semaphore:
            try:
                text = await extractor.extract(url)
            except Exception as e:
                logger.warning("content_download_failed", title=story.title, url=url, error=str(e))
                return StoryWithText.from_story(story, "")

        logger.debug("content_downloaded", title=story.title, pdf=is_pdf_url(url), chars=len(text))
        return StoryWithText.from_story(story, text or "")

    results = await asyncio.gather(*(download(s) for s in stories))

    logger.info(
        "content_download_complete",
        succeeded=sum(1 for s in results if s.text),
        total=len(results),
    )
    return list(results)
