"""Panel and details text for a MetricSnapshot."""

from __future__ import annotations

from upsmonitor_core import AppConfig
from upsmonitor_telemetry import UPS_NOT_AVAILABLE, GpuMetrics, MetricSnapshot


SEPARATOR = " | "


def cpu_text(snapshot: MetricSnapshot) -> str:
    temp = f"{snapshot.cpu_temp_c:.0f}°C" if snapshot.cpu_temp_c is not None else "N/A"
    return f"CPU {snapshot.cpu_usage_pct:.0f}% {temp}"


def gpu_text(gpu: GpuMetrics | None) -> str:
    if gpu is None or not gpu.complete:
        return "GPU N/A"
    return (
        f"GPU {gpu.load_pct:.0f}% {gpu.temp_c:.0f}°C "
        f"{gpu.vram_used_mb / 1024.0:.1f}/{gpu.vram_total_mb / 1024.0:.1f}GB"
    )


def ups_text(snapshot: MetricSnapshot) -> str:
    if snapshot.ups_temp == UPS_NOT_AVAILABLE:
        return "UPS N/A"
    return f"UPS {snapshot.ups_temp}°C"


def network_text(snapshot: MetricSnapshot) -> str:
    return f"↓{snapshot.download_mbps:.2f}M/s ↑{snapshot.upload_mbps:.2f}M/s"


def panel_text(snapshot: MetricSnapshot) -> str:
    return SEPARATOR.join(
        [
            cpu_text(snapshot),
            f"RAM {snapshot.ram_usage_pct}%",
            ups_text(snapshot),
            gpu_text(snapshot.gpu),
            network_text(snapshot),
        ]
    )


def details_text(cfg: AppConfig) -> str:
    toggle = "on" if cfg.memory.include_swap_in_ram else "off"
    return f"Include swap in RAM: {toggle}"
