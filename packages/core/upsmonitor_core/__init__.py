"""Core services: settings, logging and the sampling loop."""

from .config import AppConfig, ConfigPersistError, ConfigStore, load_config, save_config
from .diagnostics import build_doctor_payload
from .sampler import Sampler, build_ups_reader

__all__ = [
    "AppConfig",
    "ConfigPersistError",
    "ConfigStore",
    "Sampler",
    "build_doctor_payload",
    "build_ups_reader",
    "load_config",
    "save_config",
]
