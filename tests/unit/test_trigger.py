"""Unit tests for the cron / command-line entry point."""

from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path

import pytest

from conftest import FakeExtractor, FakeLanguageModel, FakeStorySource, make_item
from cron import trigger
from podcaster.core.errors import ErrorKind, PipelineError
from podcaster.services.factory import PipelineServices


@pytest.fixture
def fake_services():
    return PipelineServices(
        story_source=FakeStorySource({i: make_item(i) for i in (1, 2, 3, 4)}),
        extractor=FakeExtractor(),
        language_model=FakeLanguageModel(),
    )


@pytest.fixture
def patched(monkeypatch, settings, fake_services):
    """Route the entry point to fake services; records the skip_audio it was opened with."""
    opened = {}

    @asynccontextmanager
    async def fake_open_services(s, skip_audio=None):
        opened["skip_audio"] = skip_audio
        yield fake_services

    monkeypatch.setattr(trigger, "get_settings", lambda: settings)
    monkeypatch.setattr(trigger, "setup_logging", lambda s: None)
    monkeypatch.setattr(trigger, "open_services", fake_open_services)
    return opened


class TestParser:
    def test_defaults_defer_to_settings(self):
        args = trigger.build_parser().parse_args([])
        assert args.stories is None
        assert args.iterations is None
        assert args.output_dir is None
        assert args.skip_audio is None

    def test_overrides(self):
        args = trigger.build_parser().parse_args(
            ["--stories", "5", "--iterations", "1", "--output-dir", "/tmp/ep", "--skip-audio"]
        )
        assert (args.stories, args.iterations, args.output_dir, args.skip_audio) == (5, 1, "/tmp/ep", True)


class TestMain:
    async def test_success_exits_zero(self, patched, settings, fake_services, tmp_path):
        out = tmp_path / "episodes"

        code = await trigger.main(["--stories", "2", "--iterations", "1", "--output-dir", str(out), "--skip-audio"])

        assert code == 0
        assert patched["skip_audio"] is True
        assert [p.suffix for p in out.iterdir()] == [".txt"]
        ops = fake_services.language_model.ops()
        assert ops.count("summarize") == 2
        assert ops.count("critique") == 1

    async def test_pipeline_error_exits_one(self, patched, monkeypatch):
        failing = PipelineError(ErrorKind.GENERATION, "model overloaded")
        monkeypatch.setattr(FakeLanguageModel, "draft_script", _raise(failing))

        code = await trigger.main(["--skip-audio"])

        assert code == 1

    async def test_configuration_error_exits_one(self, monkeypatch):
        def broken_settings():
            raise PipelineError(ErrorKind.CONFIGURATION, "Invalid configuration")

        monkeypatch.setattr(trigger, "get_settings", broken_settings)

        assert await trigger.main([]) == 1

    async def test_missing_credentials_exit_one(self, monkeypatch, settings):
        s = settings.model_copy(update={"openai_api_key": "", "xai_api_key": "", "google_api_key": ""})
        monkeypatch.setattr(trigger, "get_settings", lambda: s)
        monkeypatch.setattr(trigger, "setup_logging", lambda s: None)

        assert await trigger.main(["--output-dir", str(Path(s.output_dir))]) == 1


def _raise(error: Exception):
    async def method(self, *args, **kwargs):
        raise error

    return method
