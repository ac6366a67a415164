"""UPS temperature via the NUT ``upsc`` client, polled off the sampling thread."""

from __future__ import annotations

import logging
import subprocess
import threading
import time
from typing import Callable

from .errors import SourceUnavailable
from .models import UPS_NOT_AVAILABLE


UPS_TEMPERATURE_KEY = "ups.temperature"

logger = logging.getLogger("upsmonitor.telemetry")


def parse_ups_temperature(stdout: str) -> str | None:
    for line in stdout.splitlines():
        if UPS_TEMPERATURE_KEY in line:
            parts = line.split(":", 1)
            if len(parts) < 2:
                return None
            return parts[1].strip()
    return None


class UpsAdapter:
    def __init__(
        self,
        command: str = "upsc",
        target: str = "eaton@localhost",
        timeout_s: float = 2.0,
        runner: Callable[..., subprocess.CompletedProcess] = subprocess.run,
    ) -> None:
        self.command = command
        self.target = target
        self.timeout_s = timeout_s
        self._runner = runner

    def read(self) -> str:
        try:
            proc = self._runner(
                [self.command, self.target],
                capture_output=True,
                text=True,
                timeout=self.timeout_s,
                check=False,
            )
        except (OSError, subprocess.SubprocessError) as exc:
            raise SourceUnavailable("ups", str(exc)) from exc

        if proc.returncode != 0:
            raise SourceUnavailable("ups", f"{self.command} exited with {proc.returncode}")
        value = parse_ups_temperature(proc.stdout or "")
        if not value:
            raise SourceUnavailable("ups", f"{UPS_TEMPERATURE_KEY} not reported")
        return value


class BackgroundUpsReader:
    """Runs the UPS query on its own thread and keeps the latest value.

    The sampling cycle only reads ``latest``; a slow ``upsc`` delays the UPS
    field, never the other metrics.
    """

    def __init__(self, adapter: UpsAdapter, interval_s: float = 1.0) -> None:
        self._adapter = adapter
        self._interval_s = interval_s
        self._lock = threading.Lock()
        self._latest = UPS_NOT_AVAILABLE
        self._available: bool | None = None
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def latest(self) -> str:
        with self._lock:
            return self._latest

    @property
    def available(self) -> bool | None:
        with self._lock:
            return self._available

    def read(self) -> str:
        value = self.latest
        if value == UPS_NOT_AVAILABLE:
            raise SourceUnavailable("ups", "no reading yet" if self.available is None else "last query failed")
        return value

    def poll_once(self) -> str:
        try:
            value = self._adapter.read()
            ok = True
        except SourceUnavailable as exc:
            logger.debug("ups unavailable: %s", exc)
            value = UPS_NOT_AVAILABLE
            ok = False
        with self._lock:
            self._latest = value
            self._available = ok
        return value

    def _run(self) -> None:
        while not self._stop.is_set():
            started = time.monotonic()
            self.poll_once()
            self._stop.wait(max(0.0, self._interval_s - (time.monotonic() - started)))

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="upsmonitor-ups", daemon=True)
        self._thread.start()

    def stop(self, timeout: float | None = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
