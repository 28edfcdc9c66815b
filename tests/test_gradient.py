import unittest
from datetime import datetime, timedelta, timezone

from trackheat.core.sample import LocationSample
from trackheat.rendering.gradient import (
    COOL,
    HOT,
    MID,
    Rgba,
    color_for,
    colors_for,
    gradient_rgb,
    normalized_time,
)


class TestGradientMapper(unittest.TestCase):
    def setUp(self):
        self.start_time = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    def create_sample(self, seconds, lat=0.0, lon=0.0):
        return LocationSample(
            latitude=lat,
            longitude=lon,
            timestamp=self.start_time + timedelta(seconds=seconds),
        )

    def test_anchors(self):
        self.assertEqual(gradient_rgb(0.0), COOL)
        self.assertEqual(gradient_rgb(0.5), MID)
        self.assertEqual(gradient_rgb(1.0), HOT)

    def test_three_sample_scenario(self):
        # t=0s, 20s, 40s -> normalized 0, 0.5, 1 -> cool, mid, hot
        samples = [self.create_sample(0), self.create_sample(20), self.create_sample(40)]
        colors = colors_for(samples)

        self.assertEqual(colors[0], (Rgba(0, 100, 255, 0.6), Rgba(0, 100, 255, 0.3)))
        self.assertEqual(colors[1], (Rgba(255, 255, 0, 0.6), Rgba(255, 255, 0, 0.3)))
        self.assertEqual(colors[2], (Rgba(255, 0, 0, 0.6), Rgba(255, 0, 0, 0.3)))

    def test_identical_timestamps_are_hot(self):
        samples = [self.create_sample(10, lat=i) for i in range(4)]
        for stroke, fill in colors_for(samples):
            self.assertEqual(stroke.rgb, HOT)
            self.assertEqual(fill.rgb, HOT)

    def test_single_sample_is_hot(self):
        sample = self.create_sample(0)
        stroke, fill = color_for(sample, sample.timestamp, sample.timestamp)
        self.assertEqual(stroke, Rgba(255, 0, 0, 0.6))
        self.assertEqual(fill, Rgba(255, 0, 0, 0.3))

    def test_quarter_points_truncate(self):
        # ratio 0.5 on each half: 127.5 -> 127, 177.5 -> 177
        oldest = self.start_time
        newest = self.start_time + timedelta(seconds=40)

        stroke, _ = color_for(self.create_sample(10), oldest, newest)
        self.assertEqual(stroke.rgb, (127, 177, 127))

        stroke, _ = color_for(self.create_sample(30), oldest, newest)
        self.assertEqual(stroke.rgb, (255, 127, 0))

    def test_stroke_and_fill_share_rgb(self):
        oldest = self.start_time
        newest = self.start_time + timedelta(seconds=100)
        for seconds in range(0, 101, 7):
            stroke, fill = color_for(self.create_sample(seconds), oldest, newest)
            self.assertEqual(stroke.rgb, fill.rgb)
            self.assertEqual(stroke.a, 0.6)
            self.assertEqual(fill.a, 0.3)

    def test_deterministic(self):
        oldest = self.start_time
        newest = self.start_time + timedelta(seconds=37)
        sample = self.create_sample(13)
        self.assertEqual(color_for(sample, oldest, newest), color_for(sample, oldest, newest))

    def test_normalized_time(self):
        oldest = self.start_time
        newest = self.start_time + timedelta(seconds=40)
        self.assertEqual(normalized_time(oldest, oldest, newest), 0.0)
        self.assertEqual(normalized_time(newest, oldest, newest), 1.0)
        self.assertEqual(normalized_time(oldest, newest, oldest), 1.0)

    def test_colors_for_empty(self):
        self.assertEqual(colors_for([]), [])

    def test_rgba_conversions(self):
        self.assertEqual(Rgba(255, 0, 0).to_hex(), "#ff0000ff")
        self.assertEqual(Rgba(255, 0, 0, 0.6).to_mpl(), (1.0, 0.0, 0.0, 0.6))


if __name__ == '__main__':
    unittest.main()
