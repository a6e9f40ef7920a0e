"""
Lifecycle events for sandbox containers and image builds.

The executor and builder report every lifecycle transition to an injected
sink instead of logging ad hoc. `LoggingEventSink` is the default.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Protocol

from ..core.logging import get_logger


class SandboxEventType(Enum):
    """Lifecycle points reported by the sandbox."""

    # Container lifecycle
    CREATED = "created"
    STARTED = "started"
    FORCE_STOPPING = "force_stopping"
    STOPPED = "stopped"
    REMOVED = "removed"
    CONTAINMENT_LOST = "containment_lost"

    # Image builds
    BUILD_STARTED = "build_started"
    BUILD_FINISHED = "build_finished"
    BUILD_FAILED = "build_failed"


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(slots=True)
class SandboxEvent:
    """One structured lifecycle event."""

    event_type: SandboxEventType
    image: str
    container_id: str | None = None
    detail: dict[str, Any] = field(default_factory=dict)
    timestamp: str = field(default_factory=_utc_now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "event": self.event_type.value,
            "image": self.image,
            "container": self.container_id,
            "timestamp": self.timestamp,
            **self.detail,
        }


class SandboxEventSink(Protocol):
    """Receiver for sandbox lifecycle events."""

    def emit(self, event: SandboxEvent) -> None:
        """Handle one event."""


_LEVELS = {
    SandboxEventType.FORCE_STOPPING: logging.WARNING,
    SandboxEventType.BUILD_FAILED: logging.ERROR,
    SandboxEventType.CONTAINMENT_LOST: logging.CRITICAL,
}


class LoggingEventSink:
    """Writes events as key=value records through a logger."""

    def __init__(self, logger: logging.Logger | None = None):
        self.logger = logger or get_logger("snipbox.sandbox.events")

    def emit(self, event: SandboxEvent) -> None:
        level = _LEVELS.get(event.event_type, logging.INFO)
        fields = " ".join(
            f"{key}={value}" for key, value in event.to_dict().items() if value is not None
        )
        self.logger.log(level, fields)
