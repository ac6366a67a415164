"""Doctor payload describing the monitor's view of the host."""

from __future__ import annotations

import platform
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Any

from upsmonitor_telemetry import discover

from .config import AppConfig
from .sampler import Sampler


def build_doctor_payload(cfg: AppConfig, sampler: Sampler | None = None) -> dict[str, Any]:
    settings = cfg.sampling_settings()
    payload: dict[str, Any] = {
        "ts_utc": datetime.now(timezone.utc).isoformat(),
        "platform": platform.platform(),
        "python": platform.python_version(),
        "config": asdict(cfg),
        "interfaces": list(discover(settings.interface_filter)),
    }
    if sampler is not None:
        payload["sources"] = {name: state.value for name, state in sampler.provider.source_states.items()}
        payload["snapshot"] = asdict(sampler.latest)
        payload["events"] = sampler.recent_events(limit=50)
    return payload
