import matplotlib

matplotlib.use("Agg")

from datetime import datetime, timedelta, timezone

import pytest

from trackheat.core.sample import LocationSample
from trackheat.core.store import LocationStore


@pytest.fixture
def store():
    s = LocationStore()
    yield s
    s.close()


@pytest.fixture
def start_time():
    return datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def three_samples(start_time):
    """Samples at t=0s, 20s and 40s."""
    return [
        LocationSample(latitude=10.0, longitude=20.0, timestamp=start_time, id=1),
        LocationSample(latitude=10.1, longitude=20.1, timestamp=start_time + timedelta(seconds=20), id=2),
        LocationSample(latitude=10.2, longitude=20.2, timestamp=start_time + timedelta(seconds=40), id=3),
    ]
