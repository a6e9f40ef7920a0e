"""
Tests for the image builder.
"""

import pytest
import requests

from snipbox.core.config import RunnerConfig
from snipbox.core.exceptions import BuildError, TransportFailure
from snipbox.languages.variants import PYTHON
from snipbox.sandbox.builder import ImageBuilder

from docker_fakes import FakeDockerClient

SPEC = PYTHON.resolve({"version": "3.11", "bundle": "none"})


@pytest.fixture
def builder(fake_client, event_sink):
    return ImageBuilder(client=fake_client, config=RunnerConfig(), events=event_sink)


class TestBuild:
    @pytest.mark.asyncio
    async def test_build_tags_image(self, builder, fake_client, event_sink):
        await builder.build(SPEC)

        (tag, dockerfile, kwargs) = fake_client.builds[0]
        assert tag == "snipbox/python:3.11-none"
        assert dockerfile == SPEC.dockerfile
        assert kwargs["rm"] is True
        assert "snipbox/python:3.11-none" in fake_client.image_tags
        assert event_sink.types == ["build_started", "build_finished"]

    @pytest.mark.asyncio
    async def test_error_chunk_fails_build(self, builder, fake_client, event_sink):
        fake_client.build_progress = [
            {"stream": "Step 1/3 : FROM python:3.11-slim\n"},
            {"error": "pull access denied", "errorDetail": {"message": "pull access denied"}},
        ]

        with pytest.raises(BuildError, match="pull access denied") as exc_info:
            await builder.build(SPEC)

        assert exc_info.value.image == "snipbox/python:3.11-none"
        assert "snipbox/python:3.11-none" not in fake_client.image_tags
        assert event_sink.types == ["build_started", "build_failed"]
        assert event_sink.events[-1].detail["error"] == "pull access denied"

    @pytest.mark.asyncio
    async def test_engine_failure_is_build_error(self, builder, fake_client, monkeypatch):
        def unreachable(**kwargs):
            raise requests.exceptions.ConnectionError("daemon gone")

        monkeypatch.setattr(fake_client.api, "build", unreachable)

        with pytest.raises(BuildError, match="daemon gone"):
            await builder.build(SPEC)

    @pytest.mark.asyncio
    async def test_build_error_has_user_message(self, builder, fake_client):
        fake_client.build_progress = [{"error": "no space left on device"}]
        with pytest.raises(BuildError) as exc_info:
            await builder.build(SPEC)
        assert "no space left on device" in exc_info.value.user_message


class TestImageExists:
    @pytest.mark.asyncio
    async def test_missing_then_present(self, builder):
        assert not await builder.image_exists(SPEC)
        await builder.build(SPEC)
        assert await builder.image_exists(SPEC)

    @pytest.mark.asyncio
    async def test_engine_failure(self, monkeypatch):
        client = FakeDockerClient()

        def unreachable(name):
            raise requests.exceptions.ConnectionError("daemon gone")

        monkeypatch.setattr(client.images, "get", unreachable)
        builder = ImageBuilder(client=client)

        with pytest.raises(TransportFailure):
            await builder.image_exists(SPEC)
