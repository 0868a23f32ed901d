import unittest
from datetime import datetime, timezone

from advisor.domain import HourlyPoint
from advisor.graph import GRAPH_POINTS, hour_label, sample_hourly_temps

KST = 9 * 3600


def _hourly(start_epoch, count, temp_fn=lambda i: 20.0 + i * 0.5):
    return [HourlyPoint(dt=start_epoch + i * 3600, temp=temp_fn(i)) for i in range(count)]


class TestHourLabel(unittest.TestCase):
    def test_labels(self):
        self.assertEqual(hour_label(0), "12am")
        self.assertEqual(hour_label(9), "9am")
        self.assertEqual(hour_label(12), "12pm")
        self.assertEqual(hour_label(15), "3pm")
        self.assertEqual(hour_label(23), "11pm")


class TestSampleHourlyTemps(unittest.TestCase):
    def test_six_points_three_hours_apart(self):
        # 2025-06-04 05:20 UTC is 14:20 in Seoul.
        now = datetime(2025, 6, 4, 5, 20, tzinfo=timezone.utc)
        start = int(datetime(2025, 6, 4, 5, 0, tzinfo=timezone.utc).timestamp())
        series = sample_hourly_temps(_hourly(start, 48), KST, now=now)

        self.assertEqual(len(series), GRAPH_POINTS)
        self.assertEqual([p.hour for p in series], ["2pm", "5pm", "8pm", "11pm", "2am", "5am"])
        # Entry i*3 holds 20 + 1.5*i.
        self.assertEqual([p.temp for p in series], [20, 22, 23, 25, 26, 28])

    def test_rounds_half_up(self):
        now = datetime(2025, 6, 4, 0, 0, tzinfo=timezone.utc)
        start = int(now.timestamp())
        series = sample_hourly_temps(_hourly(start, 24, lambda i: 0.5), 0, now=now)
        self.assertTrue(all(p.temp == 1 for p in series))

    def test_sparse_input_repeats_nearest(self):
        now = datetime(2025, 6, 4, 0, 0, tzinfo=timezone.utc)
        start = int(now.timestamp())
        series = sample_hourly_temps([HourlyPoint(dt=start, temp=18.2)], 0, now=now)
        self.assertEqual(len(series), GRAPH_POINTS)
        self.assertTrue(all(p.temp == 18 for p in series))
        self.assertEqual(series[1].hour, "3am")

    def test_unsorted_input(self):
        now = datetime(2025, 6, 4, 0, 0, tzinfo=timezone.utc)
        start = int(now.timestamp())
        points = list(reversed(_hourly(start, 24, lambda i: float(i))))
        series = sample_hourly_temps(points, 0, now=now)
        self.assertEqual([p.temp for p in series], [0, 3, 6, 9, 12, 15])

    def test_empty_input(self):
        self.assertEqual(sample_hourly_temps([], KST), [])


if __name__ == "__main__":
    unittest.main()
