from datetime import datetime, timedelta
from typing import List

from trackheat.core.sample import LocationSample, as_utc, utc_now

DEFAULT_LAT = 27.7172
DEFAULT_LON = 85.3240

# Offsets (dlat, dlon) in degrees describing a walk around a block:
# north along a street, east, south, west and back to the start.
WALK_OFFSETS = [
    (0.0, 0.0),
    (0.0005, 0.0001),
    (0.001, 0.0002),
    (0.0015, 0.0003),
    (0.002, 0.0003),
    (0.0021, 0.0008),
    (0.0022, 0.0013),
    (0.0022, 0.0018),
    (0.0021, 0.0023),
    (0.0016, 0.0024),
    (0.0011, 0.0025),
    (0.0006, 0.0025),
    (0.0001, 0.0024),
    (-0.0003, 0.0023),
    (-0.0004, 0.0018),
    (-0.0004, 0.0013),
    (-0.0003, 0.0008),
    (-0.0002, 0.0004),
    (-0.0001, 0.0001),
    (0.0, 0.0),
]

WALK_STEP = timedelta(minutes=2)
WALK_DURATION = timedelta(minutes=40)


def demo_walk(
    start_lat: float = DEFAULT_LAT,
    start_lon: float = DEFAULT_LON,
    end_time: datetime | None = None,
) -> List[LocationSample]:
    """
    Builds a realistic 40 minute walking path of 20 samples, two minutes
    apart, so the heat map gradient can be shown without tracking.

    Args:
        start_lat: Latitude the walk starts and ends at.
        start_lon: Longitude the walk starts and ends at.
        end_time: Reference time; the walk starts 40 minutes before it.
                  Defaults to now.
    """
    start_time = as_utc(end_time or utc_now()) - WALK_DURATION

    return [
        LocationSample(
            latitude=start_lat + dlat,
            longitude=start_lon + dlon,
            timestamp=start_time + i * WALK_STEP,
            accuracy=5.0 + (i % 4),
        )
        for i, (dlat, dlon) in enumerate(WALK_OFFSETS)
    ]
