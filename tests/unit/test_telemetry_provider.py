import sys
import tempfile
import types
import unittest
from pathlib import Path
from unittest import mock

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "packages" / "telemetry"))
sys.path.insert(0, str(Path(__file__).resolve().parent))

from fakes import FakeClock, FakeCpuMemory, FakeGpu, FakeNetwork, FakeThermal, FakeUps, make_sysfs
from upsmonitor_telemetry.adapters import GpuAdapter, build_gpu_adapter
from upsmonitor_telemetry.models import GpuReading, InterfaceFilterConfig, SamplingSettings, SourceState
from upsmonitor_telemetry.provider import TelemetryProvider


class TelemetryProviderTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.net_root = make_sysfs(Path(self._tmp.name), ["eth0"], ["lo"])
        self.clock = FakeClock(100.0)
        self.cpu_memory = FakeCpuMemory()
        self.network = FakeNetwork({"eth0": (1_000_000, 2_000_000), "lo": (0, 0)})

    def tearDown(self):
        self._tmp.cleanup()

    def _provider(self, settings=None, **overrides) -> TelemetryProvider:
        kwargs = dict(
            cpu_memory=self.cpu_memory,
            thermal=FakeThermal(),
            network=self.network,
            gpu=GpuAdapter(),
            ups=FakeUps(),
            net_root=self.net_root,
            clock=self.clock,
        )
        kwargs.update(overrides)
        return TelemetryProvider(settings, **kwargs)

    def test_poll_fuses_all_sources(self):
        provider = self._provider(gpu=FakeGpu(GpuReading(20.0, 55.0, 1024 * 1024 * 1024, 4 * 1024**3)))
        self.clock.advance(1.0)
        self.network.set({"eth0": (3_000_000, 5_000_000), "lo": (90_000_000, 90_000_000)})

        snap = provider.poll()
        self.assertEqual(snap.cpu_usage_pct, 12.5)
        self.assertEqual(snap.cpu_temp_c, 48.0)
        self.assertEqual(snap.ram_usage_pct, 25)
        self.assertAlmostEqual(snap.upload_mbps, 2.0)
        self.assertAlmostEqual(snap.download_mbps, 3.0)
        self.assertEqual(snap.ups_temp, "31.0")
        self.assertEqual(snap.gpu.vram_used_mb, 1024.0)
        self.assertEqual(snap.gpu.vram_total_mb, 4096.0)
        self.assertEqual(provider.source_states["network"], SourceState.AVAILABLE)

    def test_every_source_failing_still_builds_snapshot(self):
        self.cpu_memory.fail = True
        self.network.fail = True
        provider = self._provider(thermal=FakeThermal(None), ups=FakeUps(None))
        self.clock.advance(1.0)

        snap = provider.poll()
        self.assertEqual(snap.cpu_usage_pct, 0.0)
        self.assertIsNone(snap.cpu_temp_c)
        self.assertEqual(snap.ram_usage_pct, 0)
        self.assertEqual((snap.upload_mbps, snap.download_mbps), (0.0, 0.0))
        self.assertEqual(snap.ups_temp, "N/A")
        self.assertIsNone(snap.gpu)
        states = provider.source_states
        for source in ("cpu", "memory", "thermal", "network", "ups"):
            self.assertEqual(states[source], SourceState.UNAVAILABLE)
        self.assertEqual(states["gpu"], SourceState.DISABLED)

    def test_source_recovers_after_failure(self):
        provider = self._provider()
        self.cpu_memory.fail = True
        provider.poll()
        self.assertEqual(provider.source_states["cpu"], SourceState.UNAVAILABLE)
        self.cpu_memory.fail = False
        provider.poll()
        self.assertEqual(provider.source_states["cpu"], SourceState.AVAILABLE)

    def test_gpu_probe_failure_never_retried(self):
        nvml = types.ModuleType("pynvml")
        nvml.calls = 0

        def nvmlInit():
            nvml.calls += 1
            raise RuntimeError("Driver Not Loaded")

        nvml.nvmlInit = nvmlInit
        with mock.patch.dict(sys.modules, {"pynvml": nvml}):
            provider = self._provider(gpu=build_gpu_adapter())
            snaps = [provider.poll() for _ in range(5)]

        self.assertEqual(nvml.calls, 1)
        self.assertTrue(all(s.gpu is None for s in snaps))
        self.assertEqual(provider.source_states["gpu"], SourceState.DISABLED)

    def test_no_ups_source_is_disabled(self):
        provider = self._provider(ups=None)
        self.assertEqual(provider.poll().ups_temp, "N/A")
        self.assertEqual(provider.source_states["ups"], SourceState.DISABLED)

    def test_swap_toggle_applies_next_poll(self):
        provider = self._provider()
        self.assertEqual(provider.poll().ram_usage_pct, 25)

        provider.apply_settings(SamplingSettings(include_swap_in_ram=True))
        self.assertEqual(provider.poll().ram_usage_pct, 50)

        provider.apply_settings(SamplingSettings(include_swap_in_ram=False))
        self.assertEqual(provider.poll().ram_usage_pct, 25)

    def test_catalog_rescanned_after_ten_seconds(self):
        provider = self._provider()
        self.assertEqual(provider.catalog.interfaces, ("eth0",))
        (self.net_root / "eth1" / "device").mkdir(parents=True)

        self.clock.advance(5.0)
        provider.poll()
        self.assertEqual(provider.catalog.interfaces, ("eth0",))

        self.clock.advance(5.5)
        provider.poll()
        self.assertEqual(provider.catalog.interfaces, ("eth0", "eth1"))

    def test_filter_change_rebuilds_catalog_on_next_poll(self):
        provider = self._provider()
        provider.apply_settings(SamplingSettings(interface_filter=InterfaceFilterConfig.from_lists(None, ["eth0"])))
        self.clock.advance(1.0)
        self.network.set({"eth0": (9_000_000, 9_000_000)})
        snap = provider.poll()
        self.assertEqual(provider.catalog.interfaces, ())
        self.assertEqual((snap.upload_mbps, snap.download_mbps), (0.0, 0.0))


if __name__ == "__main__":
    unittest.main()
