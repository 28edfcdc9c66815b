from dataclasses import dataclass
from datetime import datetime
from typing import List, Sequence, Tuple

from trackheat.core.sample import LocationSample, time_bounds

STROKE_ALPHA = 0.6
FILL_ALPHA = 0.3


@dataclass(frozen=True)
class Rgba:
    """Integer RGB channels (0-255) with a float alpha (0-1)."""
    r: int
    g: int
    b: int
    a: float = 1.0

    @property
    def rgb(self) -> Tuple[int, int, int]:
        return (self.r, self.g, self.b)

    def to_hex(self) -> str:
        return "#{:02x}{:02x}{:02x}{:02x}".format(self.r, self.g, self.b, int(self.a * 255))

    def to_mpl(self) -> Tuple[float, float, float, float]:
        """Color tuple in the 0-1 range matplotlib expects."""
        return (self.r / 255.0, self.g / 255.0, self.b / 255.0, self.a)


# Oldest samples are blue, the middle of the range yellow, the newest red.
COOL = (0, 100, 255)
MID = (255, 255, 0)
HOT = (255, 0, 0)


def normalized_time(timestamp: datetime, oldest: datetime, newest: datetime) -> float:
    """
    Position of `timestamp` inside [oldest, newest] as a value in [0, 1].
    A zero (or negative) range counts as the newest position.
    """
    time_range = (newest - oldest).total_seconds()
    if time_range <= 0:
        return 1.0
    return (timestamp - oldest).total_seconds() / time_range


def gradient_rgb(t: float) -> Tuple[int, int, int]:
    """
    Linear blue -> yellow -> red ramp. Channels are truncated, not rounded.
    """
    if t < 0.5:
        ratio = t * 2
        return (
            int(COOL[0] + ratio * (MID[0] - COOL[0])),
            int(COOL[1] + ratio * (MID[1] - COOL[1])),
            int(COOL[2] + ratio * (MID[2] - COOL[2])),
        )

    ratio = (t - 0.5) * 2
    return (
        int(MID[0] + ratio * (HOT[0] - MID[0])),
        int(MID[1] + ratio * (HOT[1] - MID[1])),
        int(MID[2] + ratio * (HOT[2] - MID[2])),
    )


def color_for(sample: LocationSample, oldest: datetime, newest: datetime) -> Tuple[Rgba, Rgba]:
    """
    Maps a sample's recency to a (stroke, fill) color pair.

    Args:
        sample: The sample to color.
        oldest: Timestamp of the oldest sample in the set.
        newest: Timestamp of the newest sample in the set.

    Returns:
        Stroke and fill colors sharing the same RGB, with alpha 0.6 and 0.3.
    """
    r, g, b = gradient_rgb(normalized_time(sample.timestamp, oldest, newest))
    return Rgba(r, g, b, STROKE_ALPHA), Rgba(r, g, b, FILL_ALPHA)


def colors_for(samples: Sequence[LocationSample]) -> List[Tuple[Rgba, Rgba]]:
    """
    Colors a whole sample set against its own time range.
    """
    if not samples:
        return []
    oldest, newest = time_bounds(samples)
    return [color_for(s, oldest, newest) for s in samples]
