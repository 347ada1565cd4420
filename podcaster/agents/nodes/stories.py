"""
Story selection: top-story ids → eligible Story objects, in source order.

Per-id lookups are isolated: a failed or malformed item is logged and dropped
like any other ineligible item. Only the id list itself is fatal.
"""

from __future__ import annotations

import asyncio

from podcaster.agents.state import Story
from podcaster.core.errors import ErrorKind, PipelineError
from podcaster.core.logging import get_logger
from podcaster.services.hackernews import StorySource

logger = get_logger(__name__)


async def select_stories(source: StorySource, count: int, max_concurrency: int = 16) -> list[Story]:
    """Return at most ``count`` eligible stories in top-story order."""
    if count < 1:
        raise PipelineError(ErrorKind.VALIDATION, f"Story count must be positive, got {count}")

    try:
        story_ids = await source.top_story_ids()
    except PipelineError:
        raise
    except Exception as e:
        raise PipelineError(
            ErrorKind.SOURCE, "Failed to fetch top stories from Hacker News", cause=e
        ) from e
    logger.info("top_stories_fetched", id_count=len(story_ids), requested=count)

    semaphore = asyncio.Semaphore(max_concurrency)

    async def lookup(story_id: int) -> Story | None:
        async with semaphore:
            try:
                return await source.fetch_story(story_id)
            except Exception as e:
                logger.warning("story_lookup_failed", story_id=story_id, error=str(e))
                return None

    # gather keeps id order regardless of completion order
    resolved = await asyncio.gather(*(lookup(i) for i in story_ids))
    eligible = [s for s in resolved if s is not None and s.is_eligible]
    selected = eligible[:count]

    logger.info(
        "stories_selected",
        resolved=sum(1 for s in resolved if s is not None),
        eligible=len(eligible),
        selected=len(selected),
    )
    if len(selected) < count * 0.5:
        logger.warning("few_eligible_stories", selected=len(selected), requested=count)
    return selected
