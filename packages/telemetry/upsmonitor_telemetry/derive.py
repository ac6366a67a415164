"""Pure conversions from raw counters to display values."""

from __future__ import annotations

from dataclasses import dataclass

from .models import GpuMetrics, GpuReading, InterfaceCounters, MemoryCounters


BYTES_PER_MB_DECIMAL = 1_000_000
BYTES_PER_MIB = 1024 * 1024


def memory_percent(mem: MemoryCounters, include_swap: bool) -> int:
    used = mem.used + (mem.swap_used if include_swap else 0)
    total = mem.total + (mem.swap_total if include_swap else 0)
    if total <= 0:
        return 0
    return max(0, min(100, (used * 100) // total))


def gpu_metrics(reading: GpuReading) -> GpuMetrics:
    return GpuMetrics(
        load_pct=reading.load_pct,
        temp_c=reading.temp_c,
        vram_used_mb=(reading.vram_used_bytes / BYTES_PER_MIB if reading.vram_used_bytes is not None else None),
        vram_total_mb=(reading.vram_total_bytes / BYTES_PER_MIB if reading.vram_total_bytes is not None else None),
    )


@dataclass(frozen=True)
class NetworkRates:
    upload_mbps: float
    download_mbps: float


class NetworkRateTracker:
    """Turns cumulative per-interface counters into MB/s over tracked interfaces.

    A counter that goes backwards (reset, replug) contributes zero for that
    cycle. Interfaces seen for the first time contribute zero until the next
    sample.
    """

    def __init__(self) -> None:
        self._prev: dict[str, InterfaceCounters] = {}
        self._prev_ts: float | None = None

    def reset(self) -> None:
        self._prev = {}
        self._prev_ts = None

    def update(self, counters: dict[str, InterfaceCounters], tracked: tuple[str, ...], now: float) -> NetworkRates:
        sent = 0
        recv = 0
        if self._prev_ts is not None:
            for name in tracked:
                current = counters.get(name)
                previous = self._prev.get(name)
                if current is None or previous is None:
                    continue
                sent += max(current.bytes_sent - previous.bytes_sent, 0)
                recv += max(current.bytes_recv - previous.bytes_recv, 0)
            elapsed = max(now - self._prev_ts, 1e-6)
        else:
            elapsed = 1.0

        self._prev = dict(counters)
        self._prev_ts = now
        return NetworkRates(
            upload_mbps=sent / elapsed / BYTES_PER_MB_DECIMAL,
            download_mbps=recv / elapsed / BYTES_PER_MB_DECIMAL,
        )
