"""Fixed-cadence sampling loop that publishes immutable metric snapshots."""

from __future__ import annotations

import logging
import threading
import time
from collections import deque
from datetime import datetime, timezone
from typing import Any, Callable

from upsmonitor_telemetry import BackgroundUpsReader, MetricSnapshot, TelemetryProvider, UpsAdapter

from .config import AppConfig, ConfigPersistError, ConfigStore


logger = logging.getLogger("upsmonitor.core")

SnapshotListener = Callable[[MetricSnapshot], None]


def build_ups_reader(cfg: AppConfig) -> BackgroundUpsReader | None:
    if not cfg.ups.enabled:
        return None
    adapter = UpsAdapter(command=cfg.ups.command, target=cfg.ups.target, timeout_s=cfg.ups.timeout_s)
    return BackgroundUpsReader(adapter, interval_s=cfg.sampling.poll_interval_s)


class Sampler:
    """Drives ``TelemetryProvider.poll`` once per interval on a daemon thread.

    Cycles never overlap: the loop runs each tick to completion and
    ``tick()`` callers from other threads wait on the same lock.
    """

    def __init__(
        self,
        store: ConfigStore,
        provider: TelemetryProvider | None = None,
        ups_reader: BackgroundUpsReader | None = None,
    ) -> None:
        self._store = store
        cfg = store.config
        if provider is None:
            ups_reader = ups_reader if ups_reader is not None else build_ups_reader(cfg)
            provider = TelemetryProvider(cfg.sampling_settings(), ups=ups_reader)
        self._provider = provider
        self._ups_reader = ups_reader
        self.interval_s = cfg.sampling.poll_interval_s

        self._tick_lock = threading.Lock()
        self._latest = MetricSnapshot.empty()
        self._listeners: list[SnapshotListener] = []
        self._events: deque[dict[str, Any]] = deque(maxlen=500)
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self.ticks = 0

        store.subscribe(self._on_config_changed)

    @property
    def provider(self) -> TelemetryProvider:
        return self._provider

    @property
    def latest(self) -> MetricSnapshot:
        return self._latest

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def subscribe(self, listener: SnapshotListener) -> None:
        self._listeners.append(listener)

    def recent_events(self, limit: int = 200) -> list[dict[str, Any]]:
        return list(self._events)[-limit:]

    def _log_event(self, event: str, **fields: Any) -> None:
        row = {"ts_utc": datetime.now(timezone.utc).isoformat(), "event": event}
        row.update(fields)
        self._events.append(row)

    def _on_config_changed(self, cfg: AppConfig) -> None:
        self._provider.apply_settings(cfg.sampling_settings())
        self.interval_s = cfg.sampling.poll_interval_s
        self._log_event("config_applied", include_swap_in_ram=cfg.memory.include_swap_in_ram)

    def set_include_swap_in_ram(self, value: bool) -> bool:
        try:
            return self._store.set_include_swap_in_ram(value)
        except ConfigPersistError as exc:
            logger.error("%s", exc, extra={"event": "config_persist_error"})
            self._log_event("config_persist_error", error=str(exc))
            return False

    def refresh_ups(self) -> None:
        """Query the UPS synchronously; for one-shot commands without the loop."""
        if self._ups_reader is not None:
            self._ups_reader.poll_once()

    def tick(self) -> MetricSnapshot:
        with self._tick_lock:
            previous_states = self._provider.source_states
            snapshot = self._provider.poll()
            self._latest = snapshot
            self.ticks += 1

            states = self._provider.source_states
            for source, state in states.items():
                if previous_states.get(source) != state:
                    self._log_event("source_state", source=source, state=state.value)

        for listener in list(self._listeners):
            listener(snapshot)
        return snapshot

    def _run(self) -> None:
        logger.info("sampling every %.2fs", self.interval_s, extra={"event": "sampler_started"})
        while not self._stop.is_set():
            started = time.monotonic()
            try:
                self.tick()
            except Exception:
                logger.exception("sampling cycle failed", extra={"event": "tick_error"})
                self._log_event("tick_error")
            self._stop.wait(max(0.0, self.interval_s - (time.monotonic() - started)))
        logger.info("sampler stopped", extra={"event": "sampler_stopped"})

    def start(self) -> None:
        if self.running:
            return
        if self._ups_reader is not None:
            self._ups_reader.start()
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="upsmonitor-sampler", daemon=True)
        self._thread.start()

    def stop(self, timeout: float | None = 5.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        if self._ups_reader is not None:
            self._ups_reader.stop(timeout)
