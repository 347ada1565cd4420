"""
Summarizer: one LLM summary per downloaded story, wrapped into the text
block that the script drafter and the refinement loop consume.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from datetime import datetime
from zoneinfo import ZoneInfo

from podcaster.agents.state import StoryWithText
from podcaster.core.logging import get_logger
from podcaster.services.language_model import LanguageModelService

logger = get_logger(__name__)

MISSING_CONTENT_SUMMARY = "Content could not be fetched"


def format_long_datetime(dt: datetime) -> str:
    """e.g. 'Monday, January 15, 2024 at 10:30 AM UTC'."""
    return f"{dt:%A}, {dt:%B} {dt.day}, {dt:%Y} at {dt:%I:%M %p %Z}"


def format_posted_date(timestamp: int, timezone: str = "UTC") -> str:
    return format_long_datetime(datetime.fromtimestamp(timestamp, tz=ZoneInfo(timezone)))


def format_story_content(story: StoryWithText, summary: str, timezone: str = "UTC") -> str:
    return (
        f"## {story.title}\n"
        f"Posted Date: {format_posted_date(story.timestamp, timezone)}\n"
        f"URL: {story.url}\n"
        "\n"
        "### Story Text\n"
        f"{story.text}\n"
        "\n"
        "### Summary and Talking Points\n"
        f"{summary}"
    ).strip()


async def summarize_stories(
    stories: Sequence[StoryWithText],
    llm: LanguageModelService,
    timezone: str = "UTC",
) -> list[str]:
    """Formatted summary blocks, one per story, in input order."""

    async def summarize(index: int, story: StoryWithText) -> str:
        if not story.text:
            logger.warning("summary_skipped", story_index=index + 1, title=story.title, reason="no content")
            return format_story_content(story, MISSING_CONTENT_SUMMARY, timezone)

        logger.debug("summarizing_story", story_index=index + 1, title=story.title)
        summary = await llm.summarize(story.text)
        return format_story_content(story, summary, timezone)

    summaries = await asyncio.gather(*(summarize(i, s) for i, s in enumerate(stories)))
    logger.info(
        "summarization_complete",
        summaries=len(summaries),
        placeholders=sum(1 for s in stories if not s.text),
    )
    return list(summaries)
