"""
Script drafting: all formatted summaries in, one spoken monologue out.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from zoneinfo import ZoneInfo

from podcaster.agents.nodes.summarizer import format_long_datetime
from podcaster.core.errors import ErrorKind, PipelineError
from podcaster.core.logging import get_logger
from podcaster.services.language_model import LanguageModelService

logger = get_logger(__name__)


async def draft_script(
    summaries: Sequence[str],
    llm: LanguageModelService,
    now: datetime | None = None,
    timezone: str = "UTC",
) -> str:
    now = now or datetime.now(ZoneInfo(timezone))
    logger.info("drafting_script", stories=len(summaries))

    script = await llm.draft_script(summaries, format_long_datetime(now))
    if not script.strip():
        raise PipelineError(
            ErrorKind.GENERATION, "Language model returned an empty podcast script", stage="draft_script"
        )

    logger.info("script_drafted", characters=len(script))
    return script
