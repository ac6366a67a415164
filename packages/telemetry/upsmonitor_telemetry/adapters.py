"""Thin wrappers around psutil and NVML, each failing independently."""

from __future__ import annotations

import logging
from typing import Any

import psutil

from .errors import GpuInitFailure, SourceUnavailable
from .models import GpuReading, InterfaceCounters, MemoryCounters, SensorReading


logger = logging.getLogger("upsmonitor.telemetry")

# Matched case-insensitively against "<chip> <label>".
CPU_SENSOR_CANDIDATES = ("k10temp", "coretemp", "cpu", "tctl")


class CpuMemoryAdapter:
    def __init__(self) -> None:
        # Prime non-blocking CPU measurement.
        psutil.cpu_percent(interval=None)

    def cpu_percent(self) -> float:
        try:
            return float(psutil.cpu_percent(interval=None))
        except Exception as exc:
            raise SourceUnavailable("cpu", str(exc)) from exc

    def memory(self) -> MemoryCounters:
        try:
            vm = psutil.virtual_memory()
            swap = psutil.swap_memory()
        except Exception as exc:
            raise SourceUnavailable("memory", str(exc)) from exc
        return MemoryCounters(used=int(vm.used), total=int(vm.total), swap_used=int(swap.used), swap_total=int(swap.total))


def select_cpu_sensor(
    readings: list[SensorReading],
    candidates: tuple[str, ...] = CPU_SENSOR_CANDIDATES,
) -> SensorReading | None:
    """First reading in enumeration order whose label contains any candidate."""
    for reading in readings:
        label = reading.label.lower()
        if any(c in label for c in candidates):
            return reading
    return None


class ThermalAdapter:
    def readings(self) -> list[SensorReading]:
        sensors = getattr(psutil, "sensors_temperatures", None)
        if sensors is None:
            raise SourceUnavailable("thermal", "sensors not supported on this platform")
        try:
            temps = sensors()
        except Exception as exc:
            raise SourceUnavailable("thermal", str(exc)) from exc

        out: list[SensorReading] = []
        for chip, entries in (temps or {}).items():
            for entry in entries:
                label = f"{chip} {entry.label}".strip() if entry.label else chip
                current = float(entry.current) if entry.current is not None else None
                out.append(SensorReading(label=label, temp_c=current))
        return out

    def cpu_temp(self) -> float:
        reading = select_cpu_sensor(self.readings())
        if reading is None:
            raise SourceUnavailable("thermal", "no cpu sensor")
        if reading.temp_c is None:
            raise SourceUnavailable("thermal", f"{reading.label} has no value")
        return reading.temp_c


class NetworkAdapter:
    def counters(self) -> dict[str, InterfaceCounters]:
        try:
            pernic = psutil.net_io_counters(pernic=True)
        except Exception as exc:
            raise SourceUnavailable("network", str(exc)) from exc
        return {
            name: InterfaceCounters(bytes_sent=int(c.bytes_sent), bytes_recv=int(c.bytes_recv))
            for name, c in (pernic or {}).items()
        }


class GpuAdapter:
    """Disabled GPU source; polling yields nothing."""

    @property
    def enabled(self) -> bool:
        return False

    def poll(self) -> GpuReading | None:
        return None


class NvmlGpuAdapter(GpuAdapter):
    def __init__(self) -> None:
        import pynvml  # type: ignore

        self._nvml = pynvml
        pynvml.nvmlInit()
        if pynvml.nvmlDeviceGetCount() < 1:
            pynvml.nvmlShutdown()
            raise GpuInitFailure("gpu", "no NVML devices")

    @property
    def enabled(self) -> bool:
        return True

    def _read(self, fn, *args: Any) -> Any:
        try:
            return fn(*args)
        except Exception:
            return None

    def poll(self) -> GpuReading:
        nvml = self._nvml
        try:
            h = nvml.nvmlDeviceGetHandleByIndex(0)
        except Exception as exc:
            raise SourceUnavailable("gpu", str(exc)) from exc

        util = self._read(nvml.nvmlDeviceGetUtilizationRates, h)
        temp = self._read(nvml.nvmlDeviceGetTemperature, h, nvml.NVML_TEMPERATURE_GPU)
        mem = self._read(nvml.nvmlDeviceGetMemoryInfo, h)
        return GpuReading(
            load_pct=float(util.gpu) if util is not None else None,
            temp_c=float(temp) if temp is not None else None,
            vram_used_bytes=int(mem.used) if mem is not None else None,
            vram_total_bytes=int(mem.total) if mem is not None else None,
        )


def build_gpu_adapter() -> GpuAdapter:
    try:
        adapter = NvmlGpuAdapter()
    except Exception as exc:
        logger.info("gpu telemetry disabled: %s", exc, extra={"event": "gpu_disabled"})
        return GpuAdapter()
    logger.info("gpu telemetry enabled", extra={"event": "gpu_enabled"})
    return adapter
