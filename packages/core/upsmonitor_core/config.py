"""Persistent monitor settings schema, load/save helpers and the change-notifying store."""

from __future__ import annotations

import json
import logging
import os
import platform
import threading
from dataclasses import asdict, dataclass, field, replace
from pathlib import Path
from typing import Any, Callable

from upsmonitor_telemetry.models import InterfaceFilterConfig, SamplingSettings


CONFIG_VERSION = 2

logger = logging.getLogger("upsmonitor.core")


class ConfigPersistError(Exception):
    """Settings could not be written to disk."""


@dataclass
class InterfacesConfig:
    include: list[str] | None = None
    exclude: list[str] | None = None


@dataclass
class MemoryConfig:
    include_swap_in_ram: bool = False


@dataclass
class SamplingConfig:
    poll_interval_s: float = 1.0
    rescan_interval_s: float = 10.0


@dataclass
class UpsConfig:
    enabled: bool = True
    command: str = "upsc"
    target: str = "eaton@localhost"
    timeout_s: float = 2.0


@dataclass
class LogsConfig:
    keep_files: int = 7


@dataclass
class AppConfig:
    config_version: int = CONFIG_VERSION
    interfaces: InterfacesConfig = field(default_factory=InterfacesConfig)
    memory: MemoryConfig = field(default_factory=MemoryConfig)
    sampling: SamplingConfig = field(default_factory=SamplingConfig)
    ups: UpsConfig = field(default_factory=UpsConfig)
    logs: LogsConfig = field(default_factory=LogsConfig)

    def sampling_settings(self) -> SamplingSettings:
        return SamplingSettings(
            interface_filter=InterfaceFilterConfig.from_lists(self.interfaces.include, self.interfaces.exclude),
            include_swap_in_ram=self.memory.include_swap_in_ram,
            rescan_interval_s=self.sampling.rescan_interval_s,
        )


def config_path() -> Path:
    system = platform.system()
    if system == "Windows":
        base = Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming"))
        return base / "UpsMonitor" / "config.json"
    if system == "Darwin":
        return Path.home() / "Library" / "Application Support" / "UpsMonitor" / "config.json"
    return Path.home() / ".config" / "upsmonitor" / "config.json"


def _merge(dataclass_type, raw: dict[str, Any]):
    defaults = dataclass_type()  # type: ignore[misc]
    for k, v in (raw or {}).items():
        if hasattr(defaults, k):
            setattr(defaults, k, v)
    return defaults


def _name_list(value: Any) -> list[str] | None:
    if value is None:
        return None
    if isinstance(value, str):
        value = [value]
    return [str(v) for v in value if str(v)]


def _normalize_interfaces(cfg: AppConfig) -> None:
    cfg.interfaces.include = _name_list(cfg.interfaces.include)
    cfg.interfaces.exclude = _name_list(cfg.interfaces.exclude)


def _normalize_sampling(cfg: AppConfig) -> None:
    cfg.sampling.poll_interval_s = max(0.25, min(10.0, float(cfg.sampling.poll_interval_s)))
    cfg.sampling.rescan_interval_s = max(cfg.sampling.poll_interval_s, float(cfg.sampling.rescan_interval_s))


def _normalize_ups(cfg: AppConfig) -> None:
    cfg.ups.enabled = bool(cfg.ups.enabled)
    cfg.ups.timeout_s = max(0.1, min(30.0, float(cfg.ups.timeout_s)))
    if not cfg.ups.command:
        cfg.ups.command = "upsc"


def _normalize_logs(cfg: AppConfig) -> None:
    cfg.logs.keep_files = max(2, min(365, int(cfg.logs.keep_files)))


def _migrate(raw: dict[str, Any]) -> dict[str, Any]:
    version = int(raw.get("config_version", 1))
    data = dict(raw)

    if version < 2:
        # v1 was the flat applet shape.
        data["interfaces"] = {
            "include": data.pop("include_interfaces", None),
            "exclude": data.pop("exclude_interfaces", None),
        }
        data["memory"] = {"include_swap_in_ram": bool(data.pop("include_swap_in_ram", False))}
        data["config_version"] = 2

    return data


def load_config(path: Path | None = None) -> AppConfig:
    path = path or config_path()
    if not path.exists():
        return AppConfig()

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        logger.info("error whilst loading config %s: %s", path, exc, extra={"event": "config_load_error"})
        return AppConfig()

    data = _migrate(raw)
    cfg = AppConfig(
        config_version=int(data.get("config_version", CONFIG_VERSION)),
        interfaces=_merge(InterfacesConfig, data.get("interfaces", {})),
        memory=_merge(MemoryConfig, data.get("memory", {})),
        sampling=_merge(SamplingConfig, data.get("sampling", {})),
        ups=_merge(UpsConfig, data.get("ups", {})),
        logs=_merge(LogsConfig, data.get("logs", {})),
    )

    _normalize_interfaces(cfg)
    _normalize_sampling(cfg)
    _normalize_ups(cfg)
    _normalize_logs(cfg)
    return cfg


def save_config(cfg: AppConfig, path: Path | None = None) -> Path:
    cfg.config_version = CONFIG_VERSION
    path = path or config_path()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(asdict(cfg), indent=2, sort_keys=True), encoding="utf-8")
    except OSError as exc:
        raise ConfigPersistError(f"cannot write {path}: {exc}") from exc
    return path


class ConfigStore:
    """Current settings plus persistence and change notification."""

    def __init__(self, path: Path | None = None, config: AppConfig | None = None) -> None:
        self.path = path or config_path()
        self._config = config if config is not None else load_config(self.path)
        self._lock = threading.Lock()
        self._subscribers: list[Callable[[AppConfig], None]] = []

    @property
    def config(self) -> AppConfig:
        return self._config

    def subscribe(self, callback: Callable[[AppConfig], None]) -> None:
        self._subscribers.append(callback)

    def _notify(self) -> None:
        for callback in list(self._subscribers):
            callback(self._config)

    def set_include_swap_in_ram(self, value: bool) -> bool:
        """Persist then apply the swap toggle; returns whether it changed.

        On ConfigPersistError the in-memory value is left as it was.
        """
        value = bool(value)
        with self._lock:
            if self._config.memory.include_swap_in_ram == value:
                return False
            updated = replace(self._config, memory=replace(self._config.memory, include_swap_in_ram=value))
            save_config(updated, self.path)
            self._config = updated
        logger.info("include_swap_in_ram set to %s", value, extra={"event": "config_changed"})
        self._notify()
        return True
