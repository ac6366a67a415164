"""Physical network interface discovery and the periodically rebuilt catalog."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from .models import InterfaceFilterConfig


SYS_CLASS_NET = Path("/sys/class/net")

logger = logging.getLogger("upsmonitor.telemetry")


def apply_filter(names: list[str], interface_filter: InterfaceFilterConfig) -> list[str]:
    kept = list(names)
    if interface_filter.include is not None:
        kept = [n for n in kept if n in interface_filter.include]
    if interface_filter.exclude is not None:
        kept = [n for n in kept if n not in interface_filter.exclude]
    return kept


def discover(interface_filter: InterfaceFilterConfig, root: Path = SYS_CLASS_NET) -> tuple[str, ...]:
    """Return sorted names of interfaces backed by a real device.

    Loopback, bridges, veth pairs and other virtual devices have no ``device``
    entry under their sysfs directory. An unreadable namespace yields ``()``.
    """
    try:
        entries = os.listdir(root)
    except OSError as exc:
        logger.debug("cannot list %s: %s", root, exc)
        return ()

    physical = sorted(name for name in entries if (root / name / "device").exists())
    return tuple(apply_filter(physical, interface_filter))


class InterfaceCatalog:
    """Physical interfaces currently tracked for throughput.

    Every rebuild replaces the previous tuple wholesale.
    """

    def __init__(self, root: Path = SYS_CLASS_NET) -> None:
        self._root = root
        self.interfaces: tuple[str, ...] = ()
        self.last_refreshed: float | None = None

    def is_stale(self, now: float, max_age_s: float) -> bool:
        return self.last_refreshed is None or (now - self.last_refreshed) > max_age_s

    def invalidate(self) -> None:
        self.last_refreshed = None

    def refresh(self, interface_filter: InterfaceFilterConfig, now: float) -> tuple[str, ...]:
        first = self.last_refreshed is None
        previous = self.interfaces
        self.interfaces = discover(interface_filter, self._root)
        self.last_refreshed = now

        if first or self.interfaces != previous:
            if self.interfaces:
                logger.info(
                    "interface catalog changed: %s",
                    ", ".join(self.interfaces),
                    extra={"event": "catalog_changed"},
                )
            else:
                logger.info("no physical interfaces found", extra={"event": "catalog_empty"})
        return self.interfaces
