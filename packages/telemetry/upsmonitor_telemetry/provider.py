"""Sampling orchestrator: fuses every telemetry source into one snapshot per tick."""

from __future__ import annotations

import logging
import threading
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Protocol

from .adapters import CpuMemoryAdapter, GpuAdapter, NetworkAdapter, ThermalAdapter, build_gpu_adapter
from .derive import NetworkRateTracker, NetworkRates, gpu_metrics, memory_percent
from .errors import SourceUnavailable
from .interfaces import SYS_CLASS_NET, InterfaceCatalog
from .models import UPS_NOT_AVAILABLE, GpuMetrics, MetricSnapshot, SamplingSettings, SourceState


logger = logging.getLogger("upsmonitor.telemetry")

SOURCES = ("cpu", "memory", "thermal", "network", "gpu", "ups")


class UpsSource(Protocol):
    def read(self) -> str: ...


class TelemetryProvider:
    """Owns the long-lived adapters and derives a MetricSnapshot per ``poll()``.

    Cycles never overlap: ``poll`` serialises on an internal lock.
    """

    def __init__(
        self,
        settings: SamplingSettings | None = None,
        *,
        cpu_memory: CpuMemoryAdapter | None = None,
        thermal: ThermalAdapter | None = None,
        network: NetworkAdapter | None = None,
        gpu: GpuAdapter | None = None,
        ups: UpsSource | None = None,
        net_root: Path = SYS_CLASS_NET,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._settings = settings or SamplingSettings()
        self._clock = clock
        self._lock = threading.Lock()

        self._cpu_memory = cpu_memory or CpuMemoryAdapter()
        self._thermal = thermal or ThermalAdapter()
        self._network = network or NetworkAdapter()
        self._gpu = gpu if gpu is not None else build_gpu_adapter()
        self._ups = ups

        self._catalog = InterfaceCatalog(net_root)
        self._rates = NetworkRateTracker()
        self._states = {name: SourceState.UNINITIALIZED for name in SOURCES}
        if not self._gpu.enabled:
            self._states["gpu"] = SourceState.DISABLED
        if self._ups is None:
            self._states["ups"] = SourceState.DISABLED

        now = self._clock()
        self._catalog.refresh(self._settings.interface_filter, now)
        try:
            self._rates.update(self._network.counters(), self._catalog.interfaces, now)
        except SourceUnavailable as exc:
            logger.debug("initial network counters unavailable: %s", exc)

    @property
    def settings(self) -> SamplingSettings:
        return self._settings

    @property
    def catalog(self) -> InterfaceCatalog:
        return self._catalog

    @property
    def source_states(self) -> dict[str, SourceState]:
        return dict(self._states)

    def apply_settings(self, settings: SamplingSettings) -> None:
        with self._lock:
            filter_changed = settings.interface_filter != self._settings.interface_filter
            self._settings = settings
            if filter_changed:
                self._catalog.invalidate()

    def _mark(self, source: str, ok: bool) -> None:
        previous = self._states[source]
        if previous == SourceState.DISABLED:
            return
        state = SourceState.AVAILABLE if ok else SourceState.UNAVAILABLE
        self._states[source] = state
        if state == previous:
            return
        if previous == SourceState.UNINITIALIZED and ok:
            logger.debug("%s source %s -> %s", source, previous.value, state.value, extra={"event": "source_state"})
        else:
            logger.info("%s source %s -> %s", source, previous.value, state.value, extra={"event": "source_state"})

    def _read(self, source: str, fn: Callable[[], object]) -> object | None:
        try:
            value = fn()
        except SourceUnavailable as exc:
            logger.debug("%s unavailable: %s", source, exc)
            self._mark(source, False)
            return None
        self._mark(source, True)
        return value

    def poll(self) -> MetricSnapshot:
        with self._lock:
            return self._poll_locked()

    def _poll_locked(self) -> MetricSnapshot:
        settings = self._settings
        now = self._clock()

        if self._catalog.is_stale(now, settings.rescan_interval_s):
            self._catalog.refresh(settings.interface_filter, now)

        cpu = self._read("cpu", self._cpu_memory.cpu_percent)
        mem = self._read("memory", self._cpu_memory.memory)
        cpu_temp = self._read("thermal", self._thermal.cpu_temp)
        counters = self._read("network", self._network.counters)

        if counters is not None:
            rates = self._rates.update(counters, self._catalog.interfaces, now)
        else:
            self._rates.reset()
            rates = NetworkRates(upload_mbps=0.0, download_mbps=0.0)

        gpu: GpuMetrics | None = None
        if self._gpu.enabled:
            reading = self._read("gpu", self._gpu.poll)
            if reading is not None:
                gpu = gpu_metrics(reading)

        ups_temp = UPS_NOT_AVAILABLE
        if self._ups is not None:
            ups_temp = self._read("ups", self._ups.read) or UPS_NOT_AVAILABLE

        return MetricSnapshot(
            cpu_usage_pct=float(cpu) if cpu is not None else 0.0,
            cpu_temp_c=cpu_temp,
            ram_usage_pct=memory_percent(mem, settings.include_swap_in_ram) if mem is not None else 0,
            download_mbps=rates.download_mbps,
            upload_mbps=rates.upload_mbps,
            ups_temp=ups_temp,
            gpu=gpu,
            timestamp=datetime.now(timezone.utc),
        )
