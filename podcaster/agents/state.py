"""
Pipeline data model and LangGraph state.

Stories are validated straight from the Hacker News item JSON and are frozen
once fetched. PodcastState is the single dict flowing through every graph
node; nodes return partial updates.
"""

from __future__ import annotations

from datetime import datetime
from typing import TypedDict

from pydantic import BaseModel, ConfigDict, Field


class Story(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: int
    title: str
    url: str | None = None
    score: int
    author: str = Field(alias="by")
    timestamp: int = Field(alias="time")  # unix seconds
    type: str
    descendants: int | None = None
    kids: tuple[int, ...] | None = None

    @property
    def is_eligible(self) -> bool:
        return self.type == "story" and bool(self.url)


class StoryWithText(Story):
    text: str = ""  # empty means extraction failed

    @classmethod
    def from_story(cls, story: Story, text: str) -> StoryWithText:
        return cls(**story.model_dump(), text=text)


class RefinementState(BaseModel):
    """One point in the critique/revise loop. Replaced, never mutated."""

    model_config = ConfigDict(frozen=True)

    script: str
    iteration: int = 0
    should_continue: bool = True

    def can_continue(self, max_iterations: int) -> bool:
        return self.should_continue and self.iteration < max_iterations


class PipelineResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    transcript_path: str
    audio_path: str  # "" when audio was skipped
    story_count: int
    generated_at: datetime
    duration_ms: int


class PodcastState(TypedDict):
    """Top-level state for the podcast graph."""

    # ── Run options ─────────────────────────────────────────
    run_id: str
    story_count: int
    output_dir: str
    skip_audio: bool
    max_iterations: int

    # ── Data pipeline ───────────────────────────────────────
    stories: list[Story]
    stories_with_text: list[StoryWithText]
    summaries: list[str]

    # ── Script ──────────────────────────────────────────────
    script: str
    refinement: RefinementState

    # ── Outputs ─────────────────────────────────────────────
    transcript_path: str
    audio_path: str
    current_step: str
