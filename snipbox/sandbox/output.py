"""
Captured program output and the capture budget.
"""

from __future__ import annotations

from dataclasses import dataclass

TRUNCATION_MARKER = b"..."


@dataclass(frozen=True, slots=True)
class Output:
    """Exit status and combined stdout/stderr of one run."""

    status: int
    tty: bytes

    @property
    def success(self) -> bool:
        return self.status == 0

    @property
    def text(self) -> str:
        return self.tty.decode("utf-8", errors="replace")


class OutputCollector:
    """
    Accumulates log chunks until a codepoint budget is exceeded.

    A chunk that is valid UTF-8 costs its character count. A chunk that does
    not decode (for example a multi-byte sequence split across chunks) costs
    its byte length, which is never less than its character count.
    """

    def __init__(self, budget: int):
        self.budget = budget
        self.codepoints = 0
        self.overflowed = False
        self.closed = False
        self._buf = bytearray()

    def feed(self, chunk: bytes) -> bool:
        """Add a chunk. Returns False once the collector accepts no more output."""
        if self.closed:
            return False

        try:
            self.codepoints += len(chunk.decode("utf-8"))
        except UnicodeDecodeError:
            self.codepoints += len(chunk)

        if self.codepoints > self.budget:
            self._buf += TRUNCATION_MARKER
            self.overflowed = True
            self.closed = True
            return False

        self._buf += chunk
        return True

    def close(self) -> None:
        self.closed = True

    def getvalue(self) -> bytes:
        return bytes(self._buf)
