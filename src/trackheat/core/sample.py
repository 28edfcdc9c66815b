import dataclasses
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, Sequence


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Naive datetimes are taken to be UTC already."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def validate_coordinates(lat: float, lon: float) -> None:
    if not -90.0 <= lat <= 90.0:
        raise ValueError(f"Latitude out of range [-90, 90]: {lat}")
    if not -180.0 <= lon <= 180.0:
        raise ValueError(f"Longitude out of range [-180, 180]: {lon}")


@dataclass(frozen=True)
class LocationSample:
    """
    Represents a single recorded position (lat, lon, t).
    frozen=True keeps samples immutable once created; the store only ever
    appends new samples or removes all of them.
    """
    latitude: float
    longitude: float
    timestamp: datetime
    accuracy: float | None = None
    id: int | None = None

    def __post_init__(self):
        object.__setattr__(self, "timestamp", as_utc(self.timestamp))
        if self.accuracy is not None and self.accuracy < 0:
            raise ValueError(f"Accuracy must be non-negative, got {self.accuracy}")

    @classmethod
    def now(cls, latitude: float, longitude: float, accuracy: float | None = None) -> "LocationSample":
        return cls(latitude=latitude, longitude=longitude, timestamp=utc_now(), accuracy=accuracy)

    def with_id(self, sample_id: int) -> "LocationSample":
        return dataclasses.replace(self, id=sample_id)

    @property
    def tuple(self):
        return (self.latitude, self.longitude, self.timestamp, self.accuracy)


def time_bounds(samples: Iterable[LocationSample]) -> tuple[datetime, datetime]:
    """
    Returns the (oldest, newest) timestamps of a sample set.
    """
    timestamps = [s.timestamp for s in samples]
    if not timestamps:
        raise ValueError("Cannot compute time bounds of an empty sample set")
    return min(timestamps), max(timestamps)


def center_of(samples: Sequence[LocationSample]) -> tuple[float, float]:
    """
    Average latitude and longitude of the samples.
    """
    if not samples:
        raise ValueError("Cannot compute the center of an empty sample set")

    lat = sum(s.latitude for s in samples) / len(samples)
    lon = sum(s.longitude for s in samples) / len(samples)
    return lat, lon
