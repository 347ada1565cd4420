"""
Output writers: transcript text and chunked audio synthesis.

Audio is synthesised one paragraph at a time into indexed part files
(``<stem>-<i><suffix>``) which are then byte-concatenated in index order.
This relies on every chunk sharing one fixed MP3 format.
"""

from __future__ import annotations

import re
from datetime import UTC, datetime
from pathlib import Path

from podcaster.core.errors import ErrorKind, PipelineError
from podcaster.core.logging import get_logger
from podcaster.services.speech import SpeechSynthesizer

logger = get_logger(__name__)

_PARAGRAPH_BREAK = re.compile(r"\n\s*\n")


def output_timestamp(now: datetime | None = None) -> str:
    """YYYY-MM-DD_HH-MM-SS, safe for file names."""
    return (now or datetime.now(UTC)).strftime("%Y-%m-%d_%H-%M-%S")


def output_paths(output_dir: str | Path, timestamp: str, run_id: str | None = None) -> tuple[Path, Path]:
    """(transcript, audio) paths for one run; the run id prefix keeps same-second runs apart."""
    stem = f"{timestamp}_{run_id[:8]}" if run_id else timestamp
    base = Path(output_dir)
    return base / f"{stem}_podcast.txt", base / f"{stem}_podcast.mp3"


def write_transcript(script: str, path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(script, encoding="utf-8")
    logger.info("transcript_saved", path=str(path), characters=len(script))
    return path


def split_into_chunks(script: str) -> list[str]:
    """Paragraph-sized chunks, trimmed, empties dropped."""
    return [chunk.strip() for chunk in _PARAGRAPH_BREAK.split(script) if chunk.strip()]


def chunk_path(output_path: Path, index: int) -> Path:
    return output_path.with_name(f"{output_path.stem}-{index}{output_path.suffix}")


def concatenate_chunks(part_files: list[Path], output_path: Path) -> int:
    """Append part files to output_path in order; returns bytes written."""
    written = 0
    with output_path.open("wb") as out:
        for part in part_files:
            written += out.write(part.read_bytes())
    return written


def remove_chunks(part_files: list[Path]) -> None:
    for part in part_files:
        try:
            part.unlink(missing_ok=True)
        except OSError as e:
            # Non-fatal: leftover parts only waste disk
            logger.warning("chunk_cleanup_failed", path=str(part), error=str(e))


async def record_podcast(script: str, output_path: Path, synthesizer: SpeechSynthesizer) -> Path:
    chunks = split_into_chunks(script)
    if not chunks:
        raise PipelineError(ErrorKind.VALIDATION, "Script has no text to synthesise", stage="synthesize_audio")

    output_path.parent.mkdir(parents=True, exist_ok=True)
    logger.info("audio_generation_started", chunks=len(chunks))

    part_files: list[Path] = []
    try:
        for i, chunk in enumerate(chunks):
            logger.debug("synthesizing_chunk", chunk=i + 1, total=len(chunks), characters=len(chunk))
            try:
                audio = await synthesizer.synthesize(chunk)
            except PipelineError:
                raise
            except Exception as e:
                raise PipelineError(
                    ErrorKind.SYNTHESIS,
                    f"Speech synthesis failed for chunk {i + 1}/{len(chunks)}: {e}",
                    cause=e,
                ) from e

            part = chunk_path(output_path, i)
            part_files.append(part)
            part.write_bytes(audio)

        size = concatenate_chunks(part_files, output_path)
    except Exception:
        # No partial audio is kept
        output_path.unlink(missing_ok=True)
        raise
    finally:
        remove_chunks(part_files)

    logger.info("audio_saved", path=str(output_path), chunks=len(part_files), bytes=size)
    return output_path
