"""
Image builder for RunSpecs.
"""

from __future__ import annotations

import asyncio
import tempfile
from pathlib import Path

import docker
from docker.errors import ImageNotFound

from ..core.config import RunnerConfig
from ..core.exceptions import BuildError, TransportFailure
from ..core.logging import get_logger
from ..languages.spec import RunSpec
from .client import ENGINE_ERRORS, EngineClientMixin
from .events import LoggingEventSink, SandboxEvent, SandboxEventSink, SandboxEventType

logger = get_logger(__name__)


def _build_error_message(chunk: dict) -> str:
    detail = chunk.get("errorDetail") or {}
    return str(detail.get("message") or chunk.get("error") or chunk).strip()


class ImageBuilder(EngineClientMixin):
    """
    Builds the image behind a RunSpec.

    The builder has no caching or retry policy of its own: callers build after
    the executor reports an unrecognized image and retry the run once.
    """

    def __init__(
        self,
        client: docker.DockerClient | None = None,
        config: RunnerConfig | None = None,
        events: SandboxEventSink | None = None,
    ):
        self._client = client
        self.config = config or RunnerConfig()
        self.events = events or LoggingEventSink()

    async def build(self, spec: RunSpec) -> None:
        """
        Build and tag the image for spec.

        Raises:
            BuildError: a build step failed or the engine could not be reached
        """
        image = self.config.image_tag(spec.image_name)
        self._emit(SandboxEventType.BUILD_STARTED, image)

        with tempfile.TemporaryDirectory(prefix="snipbox-build-") as context_dir:
            dockerfile = Path(context_dir) / "Dockerfile"
            dockerfile.write_text(spec.dockerfile, encoding="utf-8")
            try:
                await self._stream_build(image, context_dir)
            except BuildError as exc:
                self._emit(SandboxEventType.BUILD_FAILED, image, error=exc.detail)
                raise

        self._emit(SandboxEventType.BUILD_FINISHED, image)

    async def _stream_build(self, image: str, context_dir: str) -> None:
        try:
            progress = await asyncio.to_thread(
                self.client.api.build,
                path=context_dir,
                tag=image,
                rm=True,
                forcerm=True,
                decode=True,
            )
            while True:
                chunk = await asyncio.to_thread(next, progress, None)
                if chunk is None:
                    break
                if "error" in chunk or "errorDetail" in chunk:
                    raise BuildError(image, _build_error_message(chunk))
                line = str(chunk.get("stream", "")).strip()
                if line:
                    logger.debug("%s: %s", image, line)
        except ENGINE_ERRORS as exc:
            raise BuildError(image, str(exc)) from exc

    async def image_exists(self, spec: RunSpec) -> bool:
        """Whether the image for spec is already present locally."""
        image = self.config.image_tag(spec.image_name)
        try:
            await asyncio.to_thread(self.client.images.get, image)
        except ImageNotFound:
            return False
        except ENGINE_ERRORS as exc:
            raise TransportFailure("inspect image", str(exc)) from exc
        return True

    def _emit(self, event_type: SandboxEventType, image: str, **detail) -> None:
        self.events.emit(SandboxEvent(event_type=event_type, image=image, detail=detail))
