"""Host telemetry sources and the sampling orchestrator."""

from .errors import GpuInitFailure, SourceUnavailable
from .interfaces import InterfaceCatalog, discover
from .models import (
    UPS_NOT_AVAILABLE,
    GpuMetrics,
    InterfaceFilterConfig,
    MetricSnapshot,
    SamplingSettings,
    SourceState,
)
from .provider import TelemetryProvider
from .ups import BackgroundUpsReader, UpsAdapter

__all__ = [
    "BackgroundUpsReader",
    "GpuInitFailure",
    "GpuMetrics",
    "InterfaceCatalog",
    "InterfaceFilterConfig",
    "MetricSnapshot",
    "SamplingSettings",
    "SourceState",
    "SourceUnavailable",
    "TelemetryProvider",
    "UPS_NOT_AVAILABLE",
    "UpsAdapter",
    "discover",
]
