import asyncio
import logging
import random
from collections import deque
from typing import Iterable

from trackheat.providers.location import Accuracy, LocationFix, LocationProvider

logger = logging.getLogger(__name__)

# Rough size of one metre in degrees of latitude.
_DEG_PER_METRE = 1.0 / 111320.0


class SimulatedLocationProvider(LocationProvider):
    """
    Simulates a device by emitting a random walk around a start coordinate.
    Used to run tracking sessions on machines without a location service.
    """

    def __init__(
        self,
        start_lat: float = 27.7172,
        start_lon: float = 85.3240,
        step_meters: float = 15.0,
        delay: float = 0.0,
        seed: int | None = None,
        failures: Iterable[Exception | None] = (),
    ):
        """
        Args:
            start_lat: Latitude of the first fix.
            start_lon: Longitude of the first fix.
            step_meters: Maximum displacement between consecutive fixes.
            delay: Seconds each request takes, to mimic acquiring a fix.
            seed: Seed for the random walk, for reproducible sessions.
            failures: Scripted outcomes consumed one per request before the
                      walk starts. An exception is raised, None means no fix.
        """
        self._lat = start_lat
        self._lon = start_lon
        self._step = step_meters * _DEG_PER_METRE
        self._delay = delay
        self._rng = random.Random(seed)
        self._script = deque(failures)
        self.requests = 0

    async def get_current_sample(self, timeout: float, accuracy: Accuracy) -> LocationFix | None:
        self.requests += 1
        if self._delay:
            await asyncio.sleep(self._delay)

        if self._script:
            outcome = self._script.popleft()
            if outcome is None:
                return None
            raise outcome

        fix = LocationFix(
            latitude=self._lat,
            longitude=self._lon,
            accuracy=round(self._rng.uniform(3.0, 12.0), 1),
        )
        self._lat += self._rng.uniform(-self._step, self._step)
        self._lon += self._rng.uniform(-self._step, self._step)
        logger.debug("Simulated fix %.6f, %.6f", fix.latitude, fix.longitude)
        return fix

    def position(self) -> LocationFix:
        """Where the simulated device is now, without counting as a request."""
        return LocationFix(latitude=self._lat, longitude=self._lon)
