"""
Container sandbox: image builds and isolated code execution.
"""

from .builder import ImageBuilder
from .client import check_health, connect
from .events import LoggingEventSink, SandboxEvent, SandboxEventSink, SandboxEventType
from .executor import SandboxExecutor
from .output import TRUNCATION_MARKER, Output, OutputCollector

__all__ = [
    "ImageBuilder",
    "LoggingEventSink",
    "Output",
    "OutputCollector",
    "SandboxEvent",
    "SandboxEventSink",
    "SandboxEventType",
    "SandboxExecutor",
    "TRUNCATION_MARKER",
    "check_health",
    "connect",
]
