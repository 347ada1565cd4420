"""
Text-to-speech via the OpenAI speech API.

One call per paragraph-sized chunk; every chunk uses the same model and voice
so the returned MP3 frames can be byte-concatenated.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from openai import AsyncOpenAI, OpenAIError

from podcaster.core.config import Settings
from podcaster.core.errors import ErrorKind, PipelineError


class SpeechSynthesizer(ABC):
    """Text chunk in, audio bytes out."""

    @abstractmethod
    async def synthesize(self, text: str) -> bytes: ...


class OpenAISpeechSynthesizer(SpeechSynthesizer):
    def __init__(
        self,
        client: AsyncOpenAI,
        model: str = "gpt-4o-mini-tts",
        voice: str = "nova",
        instructions: str | None = None,
    ) -> None:
        self._client = client
        self._model = model
        self._voice = voice
        self._instructions = instructions

    async def synthesize(self, text: str) -> bytes:
        extra = {"instructions": self._instructions} if self._instructions else {}
        try:
            response = await self._client.audio.speech.create(
                model=self._model,
                voice=self._voice,
                input=text,
                response_format="mp3",
                **extra,
            )
        except OpenAIError as e:
            raise PipelineError(
                ErrorKind.SYNTHESIS,
                f"Speech synthesis failed: {e}",
                status_code=getattr(e, "status_code", None),
                cause=e,
            ) from e
        return response.content


def build_speech_synthesizer(settings: Settings) -> OpenAISpeechSynthesizer:
    return OpenAISpeechSynthesizer(
        client=AsyncOpenAI(api_key=settings.openai_api_key),
        model=settings.tts_model,
        voice=settings.tts_voice,
        instructions=settings.tts_instructions,
    )
