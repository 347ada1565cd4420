"""Unit tests for story selection, content download, summarisation and drafting."""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime

import pytest

from conftest import FakeExtractor, FakeLanguageModel, FakeStorySource, make_item
from podcaster.agents.nodes.content import download_stories
from podcaster.agents.nodes.script_writer import draft_script
from podcaster.agents.nodes.stories import select_stories
from podcaster.agents.nodes.summarizer import (
    MISSING_CONTENT_SUMMARY,
    format_long_datetime,
    format_posted_date,
    format_story_content,
    summarize_stories,
)
from podcaster.agents.state import Story, StoryWithText
from podcaster.core.errors import ErrorKind, PipelineError


# ── Story selection ─────────────────────────────────────────
class TestSelectStories:
    async def test_filters_ineligible_and_keeps_source_order(self):
        source = FakeStorySource(
            {
                5: make_item(5),
                4: make_item(4, type="job"),
                3: make_item(3, url=None),
                2: make_item(2),
                1: make_item(1),
            }
        )
        stories = await select_stories(source, count=10)

        assert [s.id for s in stories] == [5, 2, 1]
        assert all(s.is_eligible for s in stories)

    async def test_returns_at_most_count(self):
        source = FakeStorySource({i: make_item(i) for i in range(1, 21)})
        stories = await select_stories(source, count=4)
        assert [s.id for s in stories] == [1, 2, 3, 4]

    async def test_order_survives_out_of_order_completion(self):
        class SlowFirstSource(FakeStorySource):
            async def fetch_story(self, story_id: int) -> Story:
                await asyncio.sleep(0.02 if story_id == 1 else 0)
                return await super().fetch_story(story_id)

        source = SlowFirstSource({1: make_item(1), 2: make_item(2), 3: make_item(3)})
        stories = await select_stories(source, count=3, max_concurrency=3)
        assert [s.id for s in stories] == [1, 2, 3]

    async def test_failed_lookup_is_dropped(self):
        source = FakeStorySource(
            {
                1: make_item(1),
                2: PipelineError(ErrorKind.SOURCE, "Story 2 not found", status_code=404),
                3: make_item(3),
            }
        )
        stories = await select_stories(source, count=3)
        assert [s.id for s in stories] == [1, 3]

    async def test_unexpected_lookup_error_is_dropped(self):
        source = FakeStorySource({1: make_item(1), 2: ConnectionError("reset"), 3: make_item(3)})
        stories = await select_stories(source, count=3)
        assert [s.id for s in stories] == [1, 3]

    async def test_id_list_failure_is_fatal(self):
        class BrokenSource(FakeStorySource):
            async def top_story_ids(self) -> list[int]:
                raise ConnectionError("no route to host")

        with pytest.raises(PipelineError) as exc_info:
            await select_stories(BrokenSource({}), count=3)
        assert exc_info.value.kind is ErrorKind.SOURCE
        assert isinstance(exc_info.value.cause, ConnectionError)

    async def test_non_positive_count_rejected(self, story_source):
        with pytest.raises(PipelineError) as exc_info:
            await select_stories(story_source, count=0)
        assert exc_info.value.kind is ErrorKind.VALIDATION


# ── Content download ────────────────────────────────────────
class TestDownloadStories:
    async def test_failures_degrade_to_empty_text(self):
        stories = [Story.model_validate(make_item(i)) for i in (1, 2, 3)]
        extractor = FakeExtractor(
            {
                "https://example.com/2": PipelineError(ErrorKind.EXTRACTION, "403 Forbidden"),
                "https://example.com/3": RuntimeError("unexpected"),
            }
        )

        results = await download_stories(stories, extractor)

        assert [r.id for r in results] == [1, 2, 3]
        assert [r.text for r in results] == ["Article text for https://example.com/1", "", ""]

    async def test_keeps_story_metadata(self, sample_story):
        [result] = await download_stories([sample_story], FakeExtractor({"https://example.com/db": "body"}))

        assert isinstance(result, StoryWithText)
        assert result.title == sample_story.title
        assert result.author == sample_story.author
        assert result.text == "body"

    async def test_empty_input(self):
        assert await download_stories([], FakeExtractor()) == []


# ── Summarisation ───────────────────────────────────────────
class TestSummarizer:
    def test_long_datetime_format(self):
        dt = datetime(2024, 1, 15, 10, 30, tzinfo=UTC)
        assert format_long_datetime(dt) == "Monday, January 15, 2024 at 10:30 AM UTC"

    def test_posted_date_honours_timezone(self, sample_story):
        assert format_posted_date(sample_story.timestamp, "UTC") == "Monday, January 15, 2024 at 10:30 AM UTC"
        assert "05:30 AM" in format_posted_date(sample_story.timestamp, "America/New_York")

    def test_story_content_block(self, sample_story_with_text):
        block = format_story_content(sample_story_with_text, "Talking points.")

        assert block.startswith("## Show HN: A tiny database\n")
        assert "Posted Date: Monday, January 15, 2024 at 10:30 AM UTC" in block
        assert "URL: https://example.com/db" in block
        assert "### Story Text\nA small embeddable database" in block
        assert block.endswith("### Summary and Talking Points\nTalking points.")

    async def test_summaries_in_input_order(self, sample_story):
        stories = [
            StoryWithText.from_story(sample_story.model_copy(update={"title": f"T{i}"}), f"text {i}")
            for i in range(3)
        ]
        llm = FakeLanguageModel()

        summaries = await summarize_stories(stories, llm)

        assert [s.splitlines()[0] for s in summaries] == ["## T0", "## T1", "## T2"]
        assert "Summary: text 1" in summaries[1]

    async def test_empty_text_uses_placeholder_without_model_call(self, sample_story):
        llm = FakeLanguageModel()

        [summary] = await summarize_stories([StoryWithText.from_story(sample_story, "")], llm)

        assert MISSING_CONTENT_SUMMARY in summary
        assert llm.calls == []

    async def test_model_failure_propagates(self, sample_story_with_text):
        failure = PipelineError(ErrorKind.GENERATION, "quota exceeded", stage="summarize")
        llm = FakeLanguageModel(failures={"summarize": failure})

        with pytest.raises(PipelineError) as exc_info:
            await summarize_stories([sample_story_with_text], llm)
        assert exc_info.value is failure


# ── Drafting ────────────────────────────────────────────────
class TestDraftScript:
    async def test_passes_all_summaries_and_date(self):
        llm = FakeLanguageModel()
        now = datetime(2024, 1, 15, 10, 30, tzinfo=UTC)

        script = await draft_script(["## A", "## B"], llm, now=now)

        [(op, summaries, date)] = llm.calls
        assert op == "draft_script"
        assert summaries == ["## A", "## B"]
        assert date == "Monday, January 15, 2024 at 10:30 AM UTC"
        assert "## A" in script and "## B" in script

    async def test_blank_draft_is_generation_error(self):
        class BlankModel(FakeLanguageModel):
            async def draft_script(self, summaries, date):
                return "   \n"

        with pytest.raises(PipelineError) as exc_info:
            await draft_script(["## A"], BlankModel())
        assert exc_info.value.kind is ErrorKind.GENERATION
