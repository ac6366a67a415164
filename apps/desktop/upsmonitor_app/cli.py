"""CLI entrypoints for the monitor panel, one-shot snapshots and diagnostics."""

from __future__ import annotations

import argparse
import json
import sys
import time
from dataclasses import asdict
from pathlib import Path

from upsmonitor_core import ConfigPersistError, ConfigStore, Sampler, build_doctor_payload
from upsmonitor_core.logging_setup import configure_logging, get_logger, install_crash_hooks
from upsmonitor_telemetry import discover

from .formatting import details_text, panel_text


def _print_json(data: object) -> None:
    print(json.dumps(data, indent=2, sort_keys=True, default=str))


def _store(args: argparse.Namespace) -> ConfigStore:
    store = getattr(args, "store", None)
    if store is None:
        store = ConfigStore(Path(args.config).expanduser() if args.config else None)
        args.store = store
    return store


def cmd_run(args: argparse.Namespace) -> int:
    store = _store(args)
    install_crash_hooks(base=store.path.parent)
    sampler = Sampler(store)
    print(details_text(store.config), file=sys.stderr)

    sampler.subscribe(lambda snap: print(panel_text(snap), flush=True))
    sampler.start()
    try:
        while sampler.running:
            time.sleep(0.5)
    except KeyboardInterrupt:
        pass
    finally:
        sampler.stop()
    return 0


def cmd_snapshot(args: argparse.Namespace) -> int:
    store = _store(args)
    sampler = Sampler(store)
    sampler.refresh_ups()
    # Rates need two samples; the provider primes counters at construction.
    time.sleep(args.window)
    snapshot = sampler.tick()
    if args.text:
        print(panel_text(snapshot))
    else:
        _print_json(asdict(snapshot))
    return 0


def cmd_interfaces(args: argparse.Namespace) -> int:
    store = _store(args)
    settings = store.config.sampling_settings()
    _print_json(list(discover(settings.interface_filter)))
    return 0


def cmd_doctor(args: argparse.Namespace) -> int:
    store = _store(args)
    sampler = Sampler(store)
    sampler.refresh_ups()
    sampler.tick()
    _print_json(build_doctor_payload(store.config, sampler))
    return 0


def cmd_set_swap(args: argparse.Namespace) -> int:
    store = _store(args)
    value = args.value == "on"
    try:
        changed = store.set_include_swap_in_ram(value)
    except ConfigPersistError as exc:
        get_logger("app").error("%s", exc, extra={"event": "config_persist_error"})
        changed = False
    ok = store.config.memory.include_swap_in_ram == value
    _print_json({"include_swap_in_ram": store.config.memory.include_swap_in_ram, "changed": changed, "success": ok})
    return 0 if ok else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="upsmonitor", description="Host and UPS telemetry panel")
    parser.add_argument("--config", default=None, help="Optional path to config.json")
    parser.add_argument("--verbose", action="store_true", help="Log per-cycle details")
    sub = parser.add_subparsers(dest="command", required=True)

    run_cmd = sub.add_parser("run", help="Print the panel line every sampling cycle")
    run_cmd.set_defaults(func=cmd_run)

    snap_cmd = sub.add_parser("snapshot", help="Sample once and print the snapshot")
    snap_cmd.add_argument("--window", type=float, default=1.0, help="Seconds between the two samples")
    snap_cmd.add_argument("--text", action="store_true", help="Print the panel line instead of JSON")
    snap_cmd.set_defaults(func=cmd_snapshot)

    iface_cmd = sub.add_parser("interfaces", help="List tracked physical interfaces")
    iface_cmd.set_defaults(func=cmd_interfaces)

    doctor_cmd = sub.add_parser("doctor", help="Print diagnostics and source states")
    doctor_cmd.set_defaults(func=cmd_doctor)

    swap_cmd = sub.add_parser("set-swap", help="Include swap in the RAM percentage")
    swap_cmd.add_argument("value", choices=["on", "off"])
    swap_cmd.set_defaults(func=cmd_set_swap)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    store = _store(args)
    configure_logging(
        keep_files=store.config.logs.keep_files,
        console=True,
        verbose=args.verbose,
        base=store.path.parent,
    )
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
