"""
Podcast generation graph: sequences every stage of a run.

Flow:
  START → fetch_stories → download_content → summarize → draft_script
  → refine_script → write_transcript → (skip_audio) END
                                      → synthesize_audio → END

Collaborators are injected through PipelineServices; nodes close over them
and only read/write PodcastState.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Literal

from langgraph.graph import END, START, StateGraph

from podcaster.agents.nodes.content import download_stories
from podcaster.agents.nodes.recorder import output_paths, output_timestamp, record_podcast, write_transcript
from podcaster.agents.nodes.refinement import refine_script
from podcaster.agents.nodes.script_writer import draft_script
from podcaster.agents.nodes.stories import select_stories
from podcaster.agents.nodes.summarizer import summarize_stories
from podcaster.agents.state import PodcastState
from podcaster.core.config import Settings
from podcaster.core.errors import ErrorKind, PipelineError
from podcaster.core.logging import get_logger
from podcaster.services.factory import PipelineServices

logger = get_logger(__name__)

NodeFn = Callable[[PodcastState], Awaitable[dict]]


def _stage(name: str, fn: NodeFn) -> NodeFn:
    """Tag failures with the stage they came from; PipelineErrors pass through."""

    async def node(state: PodcastState) -> dict:
        try:
            return await fn(state)
        except Exception as e:
            raise PipelineError.wrap(e, stage=name)

    return node


def _route_after_transcript(state: PodcastState) -> Literal["synthesize_audio", "__end__"]:
    """Conditional edge: audio is optional."""
    if state["skip_audio"]:
        logger.info("audio_skipped", reason="skip_audio enabled")
        return END
    return "synthesize_audio"


def build_graph(services: PipelineServices, settings: Settings):
    """
    Construct and compile the podcast pipeline graph.

    Args:
        services: Story source, extractor, language model and (optional) synthesizer.
        settings: Concurrency bounds and formatting options.

    Returns:
        Compiled StateGraph ready for .ainvoke().
    """

    async def fetch_stories_node(state: PodcastState) -> dict:
        stories = await select_stories(
            services.story_source, state["story_count"], max_concurrency=settings.hn_max_concurrency
        )
        if not stories:
            raise PipelineError(ErrorKind.VALIDATION, "No valid stories found to process")
        return {"stories": stories, "current_step": "stories_selected"}

    async def download_content_node(state: PodcastState) -> dict:
        stories_with_text = await download_stories(
            state["stories"], services.extractor, max_concurrency=settings.download_max_concurrency
        )
        return {"stories_with_text": stories_with_text, "current_step": "content_downloaded"}

    async def summarize_node(state: PodcastState) -> dict:
        summaries = await summarize_stories(
            state["stories_with_text"], services.language_model, timezone=settings.podcast_timezone
        )
        return {"summaries": summaries, "current_step": "summarized"}

    async def draft_script_node(state: PodcastState) -> dict:
        script = await draft_script(state["summaries"], services.language_model, timezone=settings.podcast_timezone)
        return {"script": script, "current_step": "script_drafted"}

    async def refine_script_node(state: PodcastState) -> dict:
        final = await refine_script(
            state["script"], state["summaries"], services.language_model, state["max_iterations"]
        )
        return {"script": final.script, "refinement": final, "current_step": "script_refined"}

    async def write_transcript_node(state: PodcastState) -> dict:
        transcript_path, _ = output_paths(state["output_dir"], output_timestamp(), state["run_id"])
        write_transcript(state["script"], transcript_path)
        return {"transcript_path": str(transcript_path), "audio_path": "", "current_step": "transcript_written"}

    async def synthesize_audio_node(state: PodcastState) -> dict:
        if services.synthesizer is None:
            raise PipelineError(ErrorKind.CONFIGURATION, "No speech synthesizer configured")
        audio_path = Path(state["transcript_path"]).with_suffix(".mp3")
        await record_podcast(state["script"], audio_path, services.synthesizer)
        return {"audio_path": str(audio_path), "current_step": "audio_synthesized"}

    workflow = StateGraph(PodcastState)

    # ── Nodes (sequential) ──────────────────────────────────
    workflow.add_node("fetch_stories", _stage("fetch_stories", fetch_stories_node))
    workflow.add_node("download_content", _stage("download_content", download_content_node))
    workflow.add_node("summarize", _stage("summarize", summarize_node))
    workflow.add_node("draft_script", _stage("draft_script", draft_script_node))
    workflow.add_node("refine_script", _stage("refine_script", refine_script_node))
    workflow.add_node("write_transcript", _stage("write_transcript", write_transcript_node))
    workflow.add_node("synthesize_audio", _stage("synthesize_audio", synthesize_audio_node))

    # ── Edges ───────────────────────────────────────────────
    workflow.add_edge(START, "fetch_stories")
    workflow.add_edge("fetch_stories", "download_content")
    workflow.add_edge("download_content", "summarize")
    workflow.add_edge("summarize", "draft_script")
    workflow.add_edge("draft_script", "refine_script")
    workflow.add_edge("refine_script", "write_transcript")

    # Conditional after transcript: audio or done
    workflow.add_conditional_edges("write_transcript", _route_after_transcript, ["synthesize_audio", END])
    workflow.add_edge("synthesize_audio", END)

    app = workflow.compile()
    logger.debug("pipeline_graph_compiled", node_count=len(workflow.nodes))
    return app
