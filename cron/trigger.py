"""
Cron job / command-line entry point.

Runs one podcast generation and exits. Suitable for a scheduled service, e.g.
    0 9 * * *   python -m cron.trigger --stories 10

IMPORTANT: This script must exit cleanly after completion.
The shared HTTP client is closed before the process returns its exit code.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
import uuid

from podcaster.agents.pipeline import PodcastPipeline
from podcaster.core.config import get_settings
from podcaster.core.errors import PipelineError
from podcaster.core.logging import get_logger, setup_logging
from podcaster.services.factory import open_services

logger = get_logger("cron")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hn-podcaster",
        description="Generate a podcast episode from the current Hacker News top stories.",
    )
    parser.add_argument("--stories", type=int, default=None, help="number of stories to cover")
    parser.add_argument(
        "--iterations", type=int, default=None, help="maximum critique/revise passes"
    )
    parser.add_argument("--output-dir", default=None, help="directory for transcript and audio")
    parser.add_argument(
        "--skip-audio",
        action="store_true",
        default=None,
        help="write the transcript only",
    )
    return parser


async def main(argv: list[str] | None = None) -> int:
    """Run the pipeline once and wait for completion."""
    args = build_parser().parse_args(argv)
    run_id = str(uuid.uuid4())

    try:
        settings = get_settings()
    except PipelineError as e:
        # logging is not configured yet; fall back to stderr
        print(f"configuration error: {e.message}", file=sys.stderr)
        return 1

    setup_logging(settings)
    logger.info("cron_triggered", run_id=run_id)

    try:
        async with open_services(settings, skip_audio=args.skip_audio) as services:
            result = await PodcastPipeline(services, settings).run(
                story_count=args.stories,
                output_dir=args.output_dir,
                skip_audio=args.skip_audio,
                max_iterations=args.iterations,
                run_id=run_id,
            )
    except PipelineError as e:
        logger.error("cron_failed", run_id=run_id, **e.to_dict())
        return 1

    logger.info(
        "cron_completed",
        run_id=run_id,
        transcript=result.transcript_path,
        audio=result.audio_path or None,
        stories=result.story_count,
        duration_ms=result.duration_ms,
    )
    return 0


def cli() -> None:
    exit_code = asyncio.run(main())
    sys.exit(exit_code)


if __name__ == "__main__":
    cli()
