"""
Language model service: summaries, script drafting, critique and revision.

Uses tiered model routing:
  - summary tier for per-story summaries and editorial critique
  - main tier for drafting and revising the full script
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Literal

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import BaseMessage, HumanMessage, SystemMessage

from podcaster.core.config import Settings
from podcaster.core.errors import ErrorKind, PipelineError
from podcaster.core.logging import get_logger

logger = get_logger(__name__)

SHOW_NAME = "Hacker Insight"

# Returned verbatim by the critique when the script needs no further edits
NO_IMPROVEMENTS_MARKER = "NO_IMPROVEMENTS_NEEDED"


# ═══════════════════════════════════════════════════════════════
# Prompts
# ═══════════════════════════════════════════════════════════════
HOST_STYLE_PROMPT = f"""You are the host of "{SHOW_NAME}", a tech podcast that makes complex topics
accessible. Talk like you're explaining things to a curious friend who is smart but not a specialist.

VOICE:
- Natural contractions, varied sentence length, genuine enthusiasm
- Explain jargon and acronyms briefly the first time they come up
- Describe what code or SQL does instead of reading it aloud

STRUCTURE:
- Greeting and today's date, then a short preview of a few highlights
- Every story gets its own section with similar depth
- Simple spoken transitions between stories
- A brief recap and a warm sign-off

Output plain paragraphs separated by blank lines. No lists, headings, labels,
stage directions, sound cues or emojis."""

SUMMARIZE_SYSTEM_PROMPT = """You prepare article briefs for a podcast host explaining tech news to a
general audience. For the article provided, cover:
1. The core story: what happened or what was built, in plain language
2. Why it matters: the "so what" that makes it interesting
3. Key details: the most surprising or memorable specifics
4. Context: background a general listener needs
5. Technical terms: jargon that needs explaining, with simple definitions

Finish with talking points, each with a sentence on why it is worth telling someone.
Do not include code snippets; describe what code does in plain English."""

CRITIQUE_SYSTEM_PROMPT = f"""You are a demanding podcast editor. Find specific improvements, do not give
the script a pass. Check for:
- Stories that are skipped or only mentioned in passing
- Code, SQL or syntax read aloud
- Dense sentences cramming in too many facts (quote them)
- Unexplained jargon or acronyms
- Uneven depth between stories
- Phrasing that reads as written rather than spoken
- A missing or abrupt outro
- Platform calls to action such as "subscribe", "like" or "comment below"

Quote the exact text that needs work and explain how to fix it.
Respond with exactly "{NO_IMPROVEMENTS_MARKER}" only if you cannot find anything to improve."""


def build_summary_prompt(text: str) -> str:
    return (
        "Summarise this page and write talking points for someone who hasn't read it.\n\n"
        f"## Story\n{text}"
    )


def build_draft_prompt(summaries: Sequence[str], date: str) -> str:
    count = len(summaries)
    stories = "\n\n".join(summaries)
    return f"""Write the script for today's episode of "{SHOW_NAME}". Today is {date}.

Cover ALL {count} stories below, each in its own section of two or three flowing paragraphs.
Open with a friendly greeting that mentions the date and previews three or four highlights.
Close with a short recap and a sign-off inviting listeners back next time. Do not mention
subscribing, likes, comments or any other platform-specific call to action, and do not
include stage directions or formatting.

Here are all {count} stories:

{stories}

Write the complete script as plain paragraphs."""


def build_critique_prompt(summaries: Sequence[str], script: str) -> str:
    stories = "\n\n".join(summaries)
    return f"Stories:\n{stories}\n\nCurrent Script:\n{script}"


def build_revision_prompt(critique: str, summaries: Sequence[str], script: str) -> str:
    stories = "\n\n".join(summaries)
    return f"""Revise this podcast script using the editor's feedback. Make the smallest edits that
address each point and keep the existing structure, story order and voice.

Editor's feedback:
{critique}

Original stories (for reference):
{stories}

Current script:
{script}

Return the full revised script as plain paragraphs only."""


# ═══════════════════════════════════════════════════════════════
# Service interface + LangChain implementation
# ═══════════════════════════════════════════════════════════════
class LanguageModelService(ABC):
    """Text generation capabilities the pipeline depends on."""

    @abstractmethod
    async def summarize(self, text: str) -> str: ...

    @abstractmethod
    async def draft_script(self, summaries: Sequence[str], date: str) -> str: ...

    @abstractmethod
    async def critique(self, summaries: Sequence[str], script: str) -> str:
        """Editorial feedback on the script, or NO_IMPROVEMENTS_MARKER."""

    @abstractmethod
    async def revise(self, critique: str, summaries: Sequence[str], script: str) -> str: ...


class ChatLanguageModelService(LanguageModelService):
    def __init__(self, summary_llm: BaseChatModel, main_llm: BaseChatModel) -> None:
        self._summary_llm = summary_llm
        self._main_llm = main_llm

    async def summarize(self, text: str) -> str:
        return await self._complete(
            "summarize",
            self._summary_llm,
            [SystemMessage(content=SUMMARIZE_SYSTEM_PROMPT), HumanMessage(content=build_summary_prompt(text))],
        )

    async def draft_script(self, summaries: Sequence[str], date: str) -> str:
        return await self._complete(
            "draft_script",
            self._main_llm,
            [SystemMessage(content=HOST_STYLE_PROMPT), HumanMessage(content=build_draft_prompt(summaries, date))],
        )

    async def critique(self, summaries: Sequence[str], script: str) -> str:
        return await self._complete(
            "critique",
            self._summary_llm,
            [
                SystemMessage(content=CRITIQUE_SYSTEM_PROMPT),
                HumanMessage(content=build_critique_prompt(summaries, script)),
            ],
        )

    async def revise(self, critique: str, summaries: Sequence[str], script: str) -> str:
        return await self._complete(
            "revise",
            self._main_llm,
            [
                SystemMessage(content=HOST_STYLE_PROMPT),
                HumanMessage(content=build_revision_prompt(critique, summaries, script)),
            ],
        )

    async def _complete(self, operation: str, llm: BaseChatModel, messages: list[BaseMessage]) -> str:
        try:
            response = await llm.ainvoke(messages)
        except Exception as e:
            logger.error("llm_call_failed", operation=operation, error=str(e))
            raise PipelineError(
                ErrorKind.GENERATION, f"Language model {operation} call failed: {e}", stage=operation, cause=e
            ) from e

        text = _message_text(response.content)
        logger.debug("llm_call_complete", operation=operation, response_length=len(text))
        return text


def _message_text(content: str | list) -> str:
    """Flatten provider content blocks into plain text."""
    if isinstance(content, str):
        return content
    parts = []
    for block in content:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts)


def build_chat_model(settings: Settings, tier: Literal["summary", "main"]) -> BaseChatModel:
    """Chat model for the configured provider and tier."""
    provider = settings.resolve_ai_provider()
    model = settings.model_for(tier)

    if provider == "google":
        from langchain_google_genai import ChatGoogleGenerativeAI

        return ChatGoogleGenerativeAI(model=model, google_api_key=settings.google_api_key)

    from langchain_openai import ChatOpenAI

    if provider == "xai":
        # xAI serves an OpenAI-compatible chat completions endpoint
        return ChatOpenAI(model=model, api_key=settings.xai_api_key, base_url=settings.xai_base_url)
    return ChatOpenAI(model=model, api_key=settings.openai_api_key)


def build_language_model_service(settings: Settings) -> ChatLanguageModelService:
    return ChatLanguageModelService(
        summary_llm=build_chat_model(settings, "summary"),
        main_llm=build_chat_model(settings, "main"),
    )
