"""
Sandbox executor: runs a RunSpec against submitted code in a throwaway container.

Every Docker SDK call is blocking and runs in a worker thread, so each
create/copy/start/stop/remove call and each log chunk read is a suspension
point. Log reads can block for as long as the program runs, so each run reads
its logs on its own thread and never occupies the shared pool that stop and
wait calls go through. Every container that gets created is removed before
``run_code`` returns or raises.
"""

from __future__ import annotations

import asyncio
import functools
import io
import os
import tarfile
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import PurePosixPath
from typing import Any

import docker
from docker.errors import APIError, ImageNotFound, NotFound

from ..core.config import RunnerConfig
from ..core.exceptions import TransportFailure, UnrecognizedImageError
from ..core.logging import get_logger
from ..languages.spec import RunSpec
from .client import ENGINE_ERRORS, EngineClientMixin
from .events import LoggingEventSink, SandboxEvent, SandboxEventSink, SandboxEventType
from .output import Output, OutputCollector

logger = get_logger(__name__)

SANDBOX_USER = "65534:65534"  # nobody
SANDBOX_UID = 65534
SANDBOX_WORKDIR = "/tmp"

# Engine answers for a stop request on a container that is not running
_ALREADY_STOPPED = {304, 404}


def code_archive(code_path: str, source: str) -> tuple[str, bytes]:
    """Pack source into a single-file tar archive for ``put_archive``."""
    path = PurePosixPath(code_path)
    data = source.encode("utf-8")

    info = tarfile.TarInfo(path.name)
    info.size = len(data)
    info.mode = 0o644
    info.uid = info.gid = SANDBOX_UID
    info.mtime = int(time.time())

    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w") as tar:
        tar.addfile(info, io.BytesIO(data))
    return str(path.parent), buf.getvalue()


class SandboxExecutor(EngineClientMixin):
    """Runs code in isolated, resource-bounded containers."""

    def __init__(
        self,
        client: docker.DockerClient | None = None,
        config: RunnerConfig | None = None,
        events: SandboxEventSink | None = None,
    ):
        self._client = client
        self.config = config or RunnerConfig()
        self.events = events or LoggingEventSink()

    def container_options(self) -> dict[str, Any]:
        """Fixed security profile for every sandbox container."""
        options: dict[str, Any] = {
            "user": SANDBOX_USER,
            "cap_drop": ["ALL"],
            "security_opt": ["no-new-privileges"],
            "privileged": False,
            "network_mode": "none",
            "working_dir": SANDBOX_WORKDIR,
            "stop_signal": "SIGKILL",
            "labels": {"snipbox.sandbox": "true"},
        }
        if self.config.pids_limit > 0:
            options["pids_limit"] = self.config.pids_limit
        if self.config.cpus > 0:
            options["nano_cpus"] = int(self.config.cpus * 1_000_000_000)
        if self.config.memory_bytes > 0:
            options["mem_limit"] = self.config.memory_bytes
            options["memswap_limit"] = self.config.memory_bytes
        return options

    async def run_code(self, spec: RunSpec, source: str) -> Output:
        """
        Run source with the image behind spec.

        Args:
            spec: Resolved recipe; its image must already be built
            source: Program text written to ``spec.code_path``

        Returns:
            Exit status and captured output. Timeouts and overflowing output
            still return an Output.

        Raises:
            UnrecognizedImageError: the image has not been built
            TransportFailure: the engine failed or could not be reached
        """
        image = self.config.image_tag(spec.image_name)
        container = await self._create(image)
        try:
            return await self._run(container, image, spec, source)
        finally:
            await self._remove(container, image)

    async def _create(self, image: str):
        try:
            container = await asyncio.to_thread(
                self.client.containers.create, image, **self.container_options()
            )
        except ImageNotFound as exc:
            raise UnrecognizedImageError(image) from exc
        except ENGINE_ERRORS as exc:
            raise TransportFailure("create container", str(exc)) from exc
        self._emit(SandboxEventType.CREATED, image, container)
        return container

    async def _run(self, container, image: str, spec: RunSpec, source: str) -> Output:
        directory, archive = code_archive(spec.code_path, source)
        await self._call("copy code", container.put_archive, directory, archive)

        await self._call("start container", container.start)
        self._emit(SandboxEventType.STARTED, image, container)

        stream = await self._call(
            "attach logs", container.logs, stream=True, follow=True, stdout=True, stderr=True
        )
        collector = OutputCollector(self.config.output_budget)
        reader = ThreadPoolExecutor(max_workers=1, thread_name_prefix="snipbox-logs")
        try:
            status, reason = await self._supervise(container, image, stream, collector, reader)
        finally:
            # A read still blocked here ends once the container is removed.
            reader.shutdown(wait=False)

        self._emit(
            SandboxEventType.STOPPED,
            image,
            container,
            status=status,
            reason=reason,
            codepoints=collector.codepoints,
        )
        return Output(status=status, tty=collector.getvalue())

    async def _supervise(
        self, container, image: str, stream, collector: OutputCollector, reader: ThreadPoolExecutor
    ) -> tuple[int, str]:
        """Race the drain against the timeout. Returns (exit status, stop reason)."""
        run_task = asyncio.ensure_future(self._drain_then_wait(container, stream, collector, reader))
        run_task.add_done_callback(_retrieve_exception)

        done, _ = await asyncio.wait({run_task}, timeout=self.config.timeout_seconds)
        if run_task in done:
            status = run_task.result()
            if status is None:
                reason = "output overflow"
                await self._force_stop(container, image, reason)
                status = await self._wait(container)
            else:
                reason = "exited"
        else:
            reason = "timeout"
            await self._force_stop(container, image, reason)
            status = await self._wait(container)
            # Logs are only read after the stop is confirmed, so nothing is lost here.
            await self._finish_drain(run_task, stream, collector)
        return status, reason

    async def _drain(self, stream, collector: OutputCollector, reader: ThreadPoolExecutor) -> bool:
        """Read log chunks until the stream ends (True) or the budget overflows (False)."""
        while True:
            chunk = await self._call("read logs", next, stream, None, executor=reader)
            if chunk is None:
                return True
            if not collector.feed(chunk):
                stream.close()
                return False

    async def _drain_then_wait(
        self, container, stream, collector: OutputCollector, reader: ThreadPoolExecutor
    ) -> int | None:
        if not await self._drain(stream, collector, reader):
            return None
        return await self._wait(container, executor=reader)

    async def _finish_drain(self, run_task: asyncio.Future, stream, collector: OutputCollector) -> None:
        done, _ = await asyncio.wait({run_task}, timeout=self.config.drain_grace_seconds)
        if run_task not in done:
            logger.warning("log stream still open after stop, discarding the rest")
            collector.close()
            stream.close()
            return
        if not run_task.cancelled() and run_task.exception() is not None:
            logger.debug("final log drain failed: %s", run_task.exception())

    async def _wait(self, container, executor: ThreadPoolExecutor | None = None) -> int:
        result = await self._call("wait for container", container.wait, executor=executor)
        return int(result.get("StatusCode", -1))

    async def _force_stop(self, container, image: str, reason: str) -> None:
        self._emit(SandboxEventType.FORCE_STOPPING, image, container, reason=reason)
        try:
            await asyncio.to_thread(container.stop, timeout=0)
        except APIError as exc:
            if exc.status_code in _ALREADY_STOPPED:
                return
            self._containment_lost(container, image, exc)
        except ENGINE_ERRORS as exc:
            self._containment_lost(container, image, exc)

    def _containment_lost(self, container, image: str, exc: Exception) -> None:
        # A container we cannot stop may keep running untrusted code.
        self._emit(SandboxEventType.CONTAINMENT_LOST, image, container, error=str(exc))
        logger.critical("could not force-stop container %s, aborting: %s", container.id, exc)
        os.abort()

    async def _remove(self, container, image: str) -> None:
        try:
            await asyncio.to_thread(container.remove, force=True)
        except NotFound:
            pass
        except ENGINE_ERRORS as exc:
            raise TransportFailure("remove container", str(exc)) from exc
        self._emit(SandboxEventType.REMOVED, image, container)

    async def _call(
        self, operation: str, func, *args, executor: ThreadPoolExecutor | None = None, **kwargs
    ):
        """Run a blocking SDK call on executor (the shared pool when None)."""
        try:
            if executor is None:
                return await asyncio.to_thread(func, *args, **kwargs)
            loop = asyncio.get_running_loop()
            return await loop.run_in_executor(executor, functools.partial(func, *args, **kwargs))
        except ENGINE_ERRORS as exc:
            raise TransportFailure(operation, str(exc)) from exc

    def _emit(self, event_type: SandboxEventType, image: str, container=None, **detail) -> None:
        container_id = getattr(container, "short_id", None) or getattr(container, "id", None)
        self.events.emit(
            SandboxEvent(event_type=event_type, image=image, container_id=container_id, detail=detail)
        )


def _retrieve_exception(task: asyncio.Future) -> None:
    # The drain task can outlive run_code when teardown raises first.
    if not task.cancelled():
        task.exception()
