"""Adapter failure types."""

from __future__ import annotations


class SourceUnavailable(Exception):
    """A metric source could not produce a reading this cycle."""

    def __init__(self, source: str, reason: str) -> None:
        super().__init__(f"{source}: {reason}")
        self.source = source
        self.reason = reason


class GpuInitFailure(SourceUnavailable):
    """GPU probing failed at startup; the adapter stays disabled."""
