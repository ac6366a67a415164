"""Typed telemetry models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


UPS_NOT_AVAILABLE = "N/A"


class SourceState(str, Enum):
    UNINITIALIZED = "uninitialized"
    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"
    DISABLED = "disabled"


@dataclass(frozen=True)
class InterfaceFilterConfig:
    include: frozenset[str] | None = None
    exclude: frozenset[str] | None = None

    @classmethod
    def from_lists(cls, include: list[str] | None, exclude: list[str] | None) -> "InterfaceFilterConfig":
        return cls(
            include=frozenset(include) if include is not None else None,
            exclude=frozenset(exclude) if exclude is not None else None,
        )


@dataclass(frozen=True)
class SamplingSettings:
    interface_filter: InterfaceFilterConfig = field(default_factory=InterfaceFilterConfig)
    include_swap_in_ram: bool = False
    rescan_interval_s: float = 10.0


@dataclass(frozen=True)
class MemoryCounters:
    used: int
    total: int
    swap_used: int
    swap_total: int


@dataclass(frozen=True)
class InterfaceCounters:
    bytes_sent: int
    bytes_recv: int


@dataclass(frozen=True)
class SensorReading:
    label: str
    temp_c: float | None


@dataclass(frozen=True)
class GpuReading:
    load_pct: float | None
    temp_c: float | None
    vram_used_bytes: int | None
    vram_total_bytes: int | None


@dataclass(frozen=True)
class GpuMetrics:
    load_pct: float | None
    temp_c: float | None
    vram_used_mb: float | None
    vram_total_mb: float | None

    @property
    def complete(self) -> bool:
        return None not in (self.load_pct, self.temp_c, self.vram_used_mb, self.vram_total_mb)


@dataclass(frozen=True)
class MetricSnapshot:
    cpu_usage_pct: float
    cpu_temp_c: float | None
    ram_usage_pct: int
    download_mbps: float
    upload_mbps: float
    ups_temp: str
    gpu: GpuMetrics | None
    timestamp: datetime

    @classmethod
    def empty(cls) -> "MetricSnapshot":
        return cls(
            cpu_usage_pct=0.0,
            cpu_temp_c=None,
            ram_usage_pct=0,
            download_mbps=0.0,
            upload_mbps=0.0,
            ups_temp=UPS_NOT_AVAILABLE,
            gpu=None,
            timestamp=datetime.now(timezone.utc),
        )
