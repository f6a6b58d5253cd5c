"""
Progress estimation from encoder log lines.
"""
import os
import sys
import unittest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from core.progress import LogTimeProgressEstimator, clamp_progress, parse_timestamp


class TestParseTimestamp(unittest.TestCase):
    def test_stats_line(self):
        line = "frame=  240 fps= 61 q=28.0 size=    1024kB time=00:01:02.50 bitrate= 134.2kbits/s"
        self.assertAlmostEqual(parse_timestamp(line), 62.5)

    def test_hours(self):
        self.assertAlmostEqual(parse_timestamp("time=01:00:00.00"), 3600.0)

    def test_no_timestamp(self):
        self.assertIsNone(parse_timestamp("Stream mapping:"))
        self.assertIsNone(parse_timestamp("time=N/A bitrate=N/A"))


class TestLogTimeEstimator(unittest.TestCase):
    def setUp(self):
        self.estimator = LogTimeProgressEstimator(10.0)

    def test_fraction_of_total(self):
        self.assertAlmostEqual(self.estimator.on_log("time=00:00:02.50"), 0.25)

    def test_never_reports_complete(self):
        self.assertEqual(self.estimator.on_log("time=00:00:10.00"), 0.99)
        self.assertEqual(self.estimator.on_log("time=00:00:30.00"), 0.99)

    def test_irrelevant_lines(self):
        self.assertIsNone(self.estimator.on_log("Press [q] to stop"))

    def test_zero_duration(self):
        self.assertIsNone(LogTimeProgressEstimator(0).on_log("time=00:00:01.00"))

    def test_native_progress(self):
        self.assertIsNone(self.estimator.on_progress(0))
        self.assertIsNone(self.estimator.on_progress(-0.2))
        self.assertIsNone(self.estimator.on_progress(None))
        self.assertAlmostEqual(self.estimator.on_progress(0.5), 0.5)
        self.assertEqual(self.estimator.on_progress(1.0), 0.99)

    def test_clamp(self):
        self.assertEqual(clamp_progress(-1), 0.0)
        self.assertEqual(clamp_progress(2), 0.99)


if __name__ == "__main__":
    unittest.main()
