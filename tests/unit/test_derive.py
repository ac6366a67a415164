import sys
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "packages" / "telemetry"))

from upsmonitor_telemetry.derive import NetworkRateTracker, gpu_metrics, memory_percent
from upsmonitor_telemetry.models import GpuReading, InterfaceCounters, MemoryCounters


def _c(tx: int, rx: int) -> InterfaceCounters:
    return InterfaceCounters(bytes_sent=tx, bytes_recv=rx)


class MemoryPercentTests(unittest.TestCase):
    def test_truncates_towards_zero(self):
        mem = MemoryCounters(used=2, total=3, swap_used=0, swap_total=0)
        self.assertEqual(memory_percent(mem, include_swap=False), 66)

    def test_swap_adds_to_both_sides(self):
        mem = MemoryCounters(used=25, total=100, swap_used=75, swap_total=100)
        self.assertEqual(memory_percent(mem, include_swap=False), 25)
        self.assertEqual(memory_percent(mem, include_swap=True), 50)

    def test_zero_total_falls_back_to_zero(self):
        mem = MemoryCounters(used=5, total=0, swap_used=0, swap_total=0)
        self.assertEqual(memory_percent(mem, include_swap=False), 0)
        self.assertEqual(memory_percent(mem, include_swap=True), 0)

    def test_result_stays_within_bounds(self):
        for used, total in ((0, 1), (1, 1), (7, 9), (10**12, 10**12 + 1), (12, 10)):
            mem = MemoryCounters(used=used, total=total, swap_used=0, swap_total=0)
            pct = memory_percent(mem, include_swap=False)
            self.assertGreaterEqual(pct, 0)
            self.assertLessEqual(pct, 100)


class NetworkRateTests(unittest.TestCase):
    def test_delta_over_elapsed_in_megabytes(self):
        tracker = NetworkRateTracker()
        tracker.update({"eth0": _c(1_000_000, 2_000_000)}, ("eth0",), now=10.0)
        rates = tracker.update({"eth0": _c(3_000_000, 5_000_000)}, ("eth0",), now=11.0)
        self.assertAlmostEqual(rates.upload_mbps, 2.0)
        self.assertAlmostEqual(rates.download_mbps, 3.0)

    def test_elapsed_time_scales_rate(self):
        tracker = NetworkRateTracker()
        tracker.update({"eth0": _c(0, 0)}, ("eth0",), now=0.0)
        rates = tracker.update({"eth0": _c(4_000_000, 0)}, ("eth0",), now=2.0)
        self.assertAlmostEqual(rates.upload_mbps, 2.0)

    def test_first_sample_is_zero(self):
        rates = NetworkRateTracker().update({"eth0": _c(9_000_000, 9_000_000)}, ("eth0",), now=1.0)
        self.assertEqual((rates.upload_mbps, rates.download_mbps), (0.0, 0.0))

    def test_counter_reset_is_clamped(self):
        tracker = NetworkRateTracker()
        tracker.update({"eth0": _c(5_000_000, 5_000_000), "eth1": _c(0, 0)}, ("eth0", "eth1"), now=0.0)
        rates = tracker.update({"eth0": _c(100, 100), "eth1": _c(1_000_000, 0)}, ("eth0", "eth1"), now=1.0)
        self.assertAlmostEqual(rates.upload_mbps, 1.0)
        self.assertEqual(rates.download_mbps, 0.0)

    def test_untracked_and_new_interfaces_ignored(self):
        tracker = NetworkRateTracker()
        tracker.update({"eth0": _c(0, 0), "lo": _c(0, 0)}, ("eth0",), now=0.0)
        rates = tracker.update(
            {"eth0": _c(1_000_000, 0), "lo": _c(50_000_000, 50_000_000), "eth9": _c(7_000_000, 7_000_000)},
            ("eth0", "eth9"),
            now=1.0,
        )
        self.assertAlmostEqual(rates.upload_mbps, 1.0)
        self.assertEqual(rates.download_mbps, 0.0)


class GpuMetricsTests(unittest.TestCase):
    def test_vram_bytes_to_mebibytes(self):
        gpu = gpu_metrics(GpuReading(load_pct=40.0, temp_c=61.0, vram_used_bytes=512 * 1024 * 1024, vram_total_bytes=8 * 1024**3))
        self.assertEqual(gpu.vram_used_mb, 512.0)
        self.assertEqual(gpu.vram_total_mb, 8192.0)
        self.assertTrue(gpu.complete)

    def test_missing_fields_stay_missing(self):
        gpu = gpu_metrics(GpuReading(load_pct=None, temp_c=50.0, vram_used_bytes=None, vram_total_bytes=None))
        self.assertIsNone(gpu.vram_used_mb)
        self.assertFalse(gpu.complete)


if __name__ == "__main__":
    unittest.main()
